import sys
import logging
from decimal import Decimal, localcontext
from typing import Dict, Optional, TextIO

from account import Account
from payments_engine import PaymentsEngine

REPORT_PRECISION = Decimal("0.0001")


def format_decimal(value: Decimal) -> str:
    """Format decimal with up to 4 decimal places, removing trailing zeros."""
    with localcontext() as ctx:
        # room for every integer digit plus the four reported places
        ctx.prec = max(ctx.prec, value.adjusted() + 5)
        normalized = value.quantize(REPORT_PRECISION).normalize()
    return f"{normalized:f}"


def write_accounts(accounts: Dict[int, Account], stream: Optional[TextIO] = None) -> None:
    if stream is None:
        stream = sys.stdout
    print("client,available,held,total,locked", file=stream)
    for client_id in sorted(accounts.keys()):
        account = accounts[client_id]
        print(
            f"{client_id},"
            f"{format_decimal(account.available)},"
            f"{format_decimal(account.held)},"
            f"{format_decimal(account.total)},"
            f"{str(account.locked).lower()}",
            file=stream,
        )


def main():
    logging.basicConfig(
        level=logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    if len(sys.argv) != 2:
        print("Usage: python main.py <input.csv>", file=sys.stderr)
        sys.exit(1)

    filepath = sys.argv[1]
    engine = PaymentsEngine()
    accounts = engine.process_file(filepath)

    write_accounts(accounts)

    print(
        f"Processed: {engine.stats.processed}, "
        f"Failed: {engine.stats.failed}, "
        f"Malformed: {engine.stats.malformed}",
        file=sys.stderr,
    )


if __name__ == "__main__":
    main()
