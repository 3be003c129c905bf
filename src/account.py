import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict

from errors import (
    ChargebackNotUnderDisputeError,
    DisputeAlreadyUnderDisputeError,
    InsufficientBalanceError,
    InvalidDataError,
    InvalidTransactionForChargebackError,
    InvalidTransactionForDisputeError,
    ResolveNotUnderDisputeError,
    TransactionNotFoundError,
)
from models import Transaction, TransactionType, from_units, to_units

logger = logging.getLogger(__name__)


@dataclass
class TransactionRecord:
    """A deposit or withdrawal kept for later dispute lookups."""

    under_dispute: bool
    transaction: Transaction

    @property
    def units(self) -> int:
        return to_units(self.transaction.amount)


class Account:
    """
    Balances and dispute bookkeeping for a single client.

    Balances are integer fixed-point units and only become Decimal on the
    reporting properties. apply() either fully applies a transaction or
    raises an OperationError without touching any state.
    """

    def __init__(self, client_id: int):
        self.client_id = client_id
        self.locked = False
        self.transactions: Dict[int, TransactionRecord] = {}

        self._held = 0
        self._total = 0
        # Portion of _held placed against disputed withdrawals. Those funds
        # already left the account, so they never reduce available.
        self._held_for_withdrawals = 0

    @property
    def held(self) -> Decimal:
        return from_units(self._held)

    @property
    def total(self) -> Decimal:
        return from_units(self._total)

    @property
    def available(self) -> Decimal:
        held_for_deposits = self._held - self._held_for_withdrawals
        return from_units(max(self._total - held_for_deposits, 0))

    def apply(self, transaction: Transaction) -> None:
        """
        Apply a single transaction.

        Raises:
            OperationError: the transaction is not legal in the current state.
        """
        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                self._deposit(transaction)
            case TransactionType.WITHDRAWAL:
                self._withdraw(transaction)
            case TransactionType.DISPUTE:
                self._dispute(transaction)
            case TransactionType.RESOLVE:
                self._resolve(transaction)
            case TransactionType.CHARGEBACK:
                self._chargeback(transaction)

    def _require_amount(self, transaction: Transaction) -> int:
        if transaction.amount is None:
            raise InvalidDataError("amount is missing", transaction.client_id, transaction.transaction_id)
        return to_units(transaction.amount)

    def _store(self, transaction: Transaction) -> None:
        if transaction.transaction_id in self.transactions:
            logger.info(f"Client {self.client_id}: tx {transaction.transaction_id} reused, overwriting stored record")
        self.transactions[transaction.transaction_id] = TransactionRecord(under_dispute=False, transaction=transaction)

    def _lookup(self, transaction: Transaction) -> TransactionRecord:
        record = self.transactions.get(transaction.transaction_id)
        if record is None:
            raise TransactionNotFoundError(transaction.client_id, transaction.transaction_id)
        return record

    def _deposit(self, transaction: Transaction) -> None:
        units = self._require_amount(transaction)
        self._total += units
        self._store(transaction)

    def _withdraw(self, transaction: Transaction) -> None:
        units = self._require_amount(transaction)
        if self._total < units:
            raise InsufficientBalanceError(transaction.client_id, transaction.transaction_id)

        self._total -= units
        self._store(transaction)

    def _dispute(self, transaction: Transaction) -> None:
        record = self._lookup(transaction)
        if record.under_dispute:
            raise DisputeAlreadyUnderDisputeError(transaction.client_id, transaction.transaction_id)

        units = record.units
        record.under_dispute = True
        self._held += units
        if record.transaction.transaction_type == TransactionType.WITHDRAWAL:
            self._held_for_withdrawals += units

    def _resolve(self, transaction: Transaction) -> None:
        record = self._lookup(transaction)
        if not record.under_dispute:
            raise ResolveNotUnderDisputeError(transaction.client_id, transaction.transaction_id)

        units = record.units
        match record.transaction.transaction_type:
            case TransactionType.DEPOSIT:
                self._held -= units
            case TransactionType.WITHDRAWAL:
                self._held -= units
                self._held_for_withdrawals -= units
                self._total += units
            case _:
                raise InvalidTransactionForDisputeError(transaction.client_id, transaction.transaction_id)

        record.under_dispute = False

    def _chargeback(self, transaction: Transaction) -> None:
        record = self._lookup(transaction)
        if not record.under_dispute:
            raise ChargebackNotUnderDisputeError(transaction.client_id, transaction.transaction_id)

        # Withdrawn funds already left the account and cannot be charged back.
        if record.transaction.transaction_type != TransactionType.DEPOSIT:
            raise InvalidTransactionForChargebackError(transaction.client_id, transaction.transaction_id)

        units = record.units
        self._held -= units
        self._total -= units
        self.locked = True
        # The dispute flag stays set; the account is locked from here on.

    def __repr__(self) -> str:
        return (
            f"Account(client={self.client_id}, available={self.available}, "
            f"held={self.held}, total={self.total}, locked={self.locked})"
        )
