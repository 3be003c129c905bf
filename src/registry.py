import logging
import threading
from typing import Dict, Optional

from account import Account
from errors import AccountLockedError, OperationError
from models import Transaction, ProcessingResult

logger = logging.getLogger(__name__)


class AccountRegistry:
    """
    Maps client ids to accounts and routes transactions to them.
    Accounts are created on first sight of a client and never removed.
    """

    def __init__(self, freeze_locked_accounts: bool = False):
        self._accounts: Dict[int, Account] = {}
        self._freeze_locked_accounts = freeze_locked_accounts

        # Guards creation of new entries in _accounts when workers run in parallel.
        self._global_lock = threading.Lock()

    def get_or_create_account(self, client_id: int) -> Account:
        """Get existing account or create new one."""
        with self._global_lock:
            if client_id not in self._accounts:
                self._accounts[client_id] = Account(client_id)
            return self._accounts[client_id]

    def get_account(self, client_id: int) -> Optional[Account]:
        return self._accounts.get(client_id)

    def get_all_accounts(self) -> Dict[int, Account]:
        """Return all accounts (for final output)."""
        with self._global_lock:
            return dict(self._accounts)

    def route(self, transaction: Transaction) -> ProcessingResult:
        """
        Apply a transaction to its client's account.

        Operation errors are logged and reported as FAILED; they never
        stop processing of the remaining transactions.
        """
        account = self.get_or_create_account(transaction.client_id)

        try:
            if self._freeze_locked_accounts and account.locked:
                raise AccountLockedError(transaction.client_id, transaction.transaction_id)
            account.apply(transaction)
        except OperationError as e:
            logger.warning(f"Transaction error occurred for {transaction}: {e}")
            return ProcessingResult.FAILED

        return ProcessingResult.SUCCESS

    def __len__(self) -> int:
        return len(self._accounts)
