from typing import Dict, Optional

from models import StoredTransaction


class TransactionHistory:
    """
    Per-client store of applied deposits and withdrawals, used only to
    validate and size dispute, resolve and chargeback records.

    Transaction ids stay reserved after their client is purged, so a later
    record can never re-key an id that was once accepted.
    """

    def __init__(self):
        self._by_client: Dict[int, Dict[int, StoredTransaction]] = {}
        self._owners: Dict[int, int] = {}

    def is_known(self, transaction_id: int) -> bool:
        """True if any client ever stored this transaction id, purged or not."""
        return transaction_id in self._owners

    def owner_of(self, transaction_id: int) -> Optional[int]:
        return self._owners.get(transaction_id)

    def store_transaction(self, transaction_id: int, stored: StoredTransaction) -> None:
        """Store a new entry. Callers must check is_known() first."""
        self._by_client.setdefault(stored.client_id, {})[transaction_id] = stored
        self._owners[transaction_id] = stored.client_id

    def get_transaction(self, client_id: int, transaction_id: int) -> Optional[StoredTransaction]:
        """Look up a transaction belonging to this exact client."""
        return self._by_client.get(client_id, {}).get(transaction_id)

    def mark_transaction_disputed(self, client_id: int, transaction_id: int) -> None:
        self._by_client[client_id][transaction_id].disputed = True

    def clear_transaction_dispute(self, client_id: int, transaction_id: int) -> None:
        self._by_client[client_id][transaction_id].disputed = False

    def purge_client(self, client_id: int) -> int:
        """Drop every stored transaction for a client. Returns how many were dropped."""
        return len(self._by_client.pop(client_id, {}))

    def transactions_for(self, client_id: int) -> Dict[int, StoredTransaction]:
        return dict(self._by_client.get(client_id, {}))

    def __len__(self) -> int:
        return sum(len(transactions) for transactions in self._by_client.values())
