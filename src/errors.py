from typing import Optional


class OperationError(Exception):
    """
    Raised by Account.apply when a transaction cannot be applied.
    The account is left unchanged.
    """

    description = "operation failed"

    def __init__(self, client_id: Optional[int] = None, transaction_id: Optional[int] = None):
        self.client_id = client_id
        self.transaction_id = transaction_id
        super().__init__(f"Client {client_id}: {self.description} (tx {transaction_id})")


class InvalidDataError(OperationError, ValueError):
    """Transaction payload is missing or out of range."""

    def __init__(self, reason: str, client_id: Optional[int] = None, transaction_id: Optional[int] = None):
        self.description = f"invalid operation data, {reason}"
        super().__init__(client_id, transaction_id)


class InsufficientBalanceError(OperationError):
    description = "balance too low for withdrawal"


class TransactionNotFoundError(OperationError):
    description = "no transaction found"


class DisputeAlreadyUnderDisputeError(OperationError):
    description = "transaction is already under dispute"


class ResolveNotUnderDisputeError(OperationError):
    description = "transaction is not under dispute, cannot resolve"


class ChargebackNotUnderDisputeError(OperationError):
    description = "transaction is not under dispute, cannot charge back"


class InvalidTransactionForDisputeError(OperationError):
    description = "transaction type cannot be resolved"


class InvalidTransactionForChargebackError(OperationError):
    description = "only deposits can be charged back"


class AccountLockedError(OperationError):
    description = "account is locked"
