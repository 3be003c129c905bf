import csv
import logging
import threading
from decimal import Decimal, InvalidOperation
from queue import Queue
from typing import Dict, Iterable, Iterator, List, Optional

from account import Account
from models import Transaction, TransactionType, ProcessingResult, ProcessingStats
from registry import AccountRegistry

logger = logging.getLogger(__name__)


def parse_csv_row(row: Dict[Optional[str], Optional[str]]) -> Transaction:
    """
    Parse CSV row into Transaction.

    Raises KeyError, ValueError or decimal.InvalidOperation on malformed rows.
    """
    # DictReader uses a None key for surplus fields and None values for missing ones.
    normalized = {k.strip(): (v or "").strip() for k, v in row.items() if k is not None}

    transaction_type_str = normalized["type"].lower()
    client_id = int(normalized["client"])
    transaction_id = int(normalized["tx"])

    amount = None
    amount_str = normalized.get("amount", "")
    if amount_str:
        amount = Decimal(amount_str)

    return Transaction(
        transaction_type=TransactionType(transaction_type_str),
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def read_transactions(filepath: str, stats: Optional[ProcessingStats] = None) -> Iterator[Transaction]:
    """Yield transactions from a CSV file in file order, skipping malformed rows."""
    with open(filepath, "r", newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            try:
                yield parse_csv_row(row)
            except (KeyError, ValueError, InvalidOperation) as e:
                # InvalidDataError from Transaction is a ValueError
                logger.warning(f"Failed to parse row {row}: {e}")
                if stats is not None:
                    stats.record_malformed()


class PaymentsEngine:
    """
    Replays transactions against client accounts.

    With a single worker every transaction is routed inline in arrival order.
    With more workers a publisher shards transactions by client id, one queue
    per worker, so each client's transactions are still applied in order.
    """

    def __init__(self, num_workers: int = 1, registry: Optional[AccountRegistry] = None):
        if num_workers < 1:
            raise ValueError(f"num_workers must be at least 1, got {num_workers}")
        self._num_workers = num_workers
        self.registry = registry if registry is not None else AccountRegistry()
        self.stats = ProcessingStats()

    def process_file(self, filepath: str) -> Dict[int, Account]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing {filepath} with {self._num_workers} worker(s)")
        self.process_transactions(read_transactions(filepath, self.stats))
        logger.info("Processing complete")
        return self.registry.get_all_accounts()

    def process_transactions(self, transactions: Iterable[Transaction]) -> None:
        if self._num_workers == 1:
            for transaction in transactions:
                self._route(transaction)
        else:
            self._process_sharded(transactions)

    def _route(self, transaction: Transaction) -> None:
        result = self.registry.route(transaction)
        if result == ProcessingResult.SUCCESS:
            self.stats.record_success()
        else:
            self.stats.record_failure()

    def _process_sharded(self, transactions: Iterable[Transaction]) -> None:
        # One FIFO per worker; None tells a worker that publishing is over.
        queues: List["Queue[Optional[Transaction]]"] = [Queue() for _ in range(self._num_workers)]

        worker_threads = []
        for queue in queues:
            worker_thread = threading.Thread(target=self._consume_transactions, args=(queue,))
            worker_thread.start()
            worker_threads.append(worker_thread)

        try:
            for transaction in transactions:
                queues[transaction.client_id % len(queues)].put(transaction)
        finally:
            for queue in queues:
                queue.put(None)
            for worker_thread in worker_threads:
                worker_thread.join()

    def _consume_transactions(self, queue: "Queue[Optional[Transaction]]") -> None:
        """Worker loop: route transactions in queue order until the end marker."""
        while True:
            transaction = queue.get()
            if transaction is None:
                break
            self._route(transaction)
