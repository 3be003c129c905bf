import threading
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, localcontext
from enum import Enum
from typing import Optional

from errors import InvalidDataError

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1

# Balances are stored as integer counts of 1/10000 of a unit.
UNITS_PER_WHOLE = 10000

# Largest amount whose units fit an unsigned 64-bit integer.
MAX_AMOUNT = Decimal(2**64 - 1).scaleb(-4)


def to_units(amount: Decimal) -> int:
    """Convert a decimal amount to fixed-point units, rounding half away from zero."""
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(amount.as_tuple().digits) + 5)
        return int((amount * UNITS_PER_WHOLE).to_integral_value(rounding=ROUND_HALF_UP))


def from_units(units: int) -> Decimal:
    # String construction is exact regardless of the context precision.
    return Decimal(f"{units}e-4")


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class ProcessingResult(Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __post_init__(self):
        if not 0 <= self.client_id <= MAX_CLIENT_ID:
            raise InvalidDataError("client id out of range", self.client_id, self.transaction_id)
        if not 0 <= self.transaction_id <= MAX_TRANSACTION_ID:
            raise InvalidDataError("transaction id out of range", self.client_id, self.transaction_id)

        if self.transaction_type.carries_amount and self.amount is None:
            raise InvalidDataError(
                f"{self.transaction_type.value} requires an amount", self.client_id, self.transaction_id
            )
        if not self.transaction_type.carries_amount and self.amount is not None:
            raise InvalidDataError(
                f"{self.transaction_type.value} must not carry an amount", self.client_id, self.transaction_id
            )

        if self.amount is not None:
            if not self.amount.is_finite():
                raise InvalidDataError("amount must be a finite number", self.client_id, self.transaction_id)
            if self.amount.copy_abs() > MAX_AMOUNT:
                raise InvalidDataError(f"amount exceeds {MAX_AMOUNT}", self.client_id, self.transaction_id)

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


class ProcessingStats:
    """Thread-safe counters for tracking processing statistics."""

    def __init__(self):
        self._lock = threading.Lock()
        self.processed = 0
        self.failed = 0
        self.malformed = 0

    def record_success(self):
        with self._lock:
            self.processed += 1

    def record_failure(self):
        with self._lock:
            self.failed += 1

    def record_malformed(self):
        with self._lock:
            self.malformed += 1
