from decimal import Decimal
from typing import Dict, List, Optional

from errors import LedgerInvariantError
from models import ClientAccount


class AccountLedger:
    """
    Current balances and lock flag per client.
    Entries are replaced whole; an operation never touches another client's entry.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
        return self._accounts[client_id]

    def is_locked(self, client_id: int) -> bool:
        account = self._accounts.get(client_id)
        return account is not None and account.locked

    def replace_account(self, account: ClientAccount) -> None:
        """Swap in a new entry for account.client_id after checking balance invariants."""
        self.check_invariants(account)
        self._accounts[account.client_id] = account

    @staticmethod
    def check_invariants(account: ClientAccount) -> None:
        # available may go negative after a dispute; held never may
        if account.held < Decimal("0"):
            raise LedgerInvariantError(account.client_id, f"negative held balance {account.held}")

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output), ordered by client id."""
        return {client_id: self._accounts[client_id] for client_id in sorted(self._accounts)}

    def sorted_accounts(self) -> List[ClientAccount]:
        return list(self.get_all_accounts().values())

    def __len__(self) -> int:
        return len(self._accounts)
