import logging
from typing import Dict, Iterable, List, Optional

from history import TransactionHistory
from ledger import AccountLedger
from models import ClientAccount, ProcessingResult, ProcessingStats, Rejected, Transaction
from normalizer import RecordNormalizer
from processor import TransactionProcessor

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Folds an ordered batch of transactions into final per-client account state.

    Single-threaded: each record is fully applied before the next one is read.
    One engine instance owns one ledger and one transaction history.
    """

    def __init__(self, decimal_places: int = 4, normalizer: Optional[RecordNormalizer] = None):
        self._ledger = AccountLedger()
        self._history = TransactionHistory()
        self._processor = TransactionProcessor(self._ledger, self._history)
        self._normalizer = normalizer or RecordNormalizer(decimal_places)
        self.stats = ProcessingStats()

    @property
    def ledger(self) -> AccountLedger:
        return self._ledger

    @property
    def history(self) -> TransactionHistory:
        return self._history

    def apply(self, transaction: Transaction) -> ProcessingResult:
        """Apply one record and return its outcome."""
        result = self._processor.process_transaction(transaction)
        self.stats.record(result)
        if isinstance(result, Rejected):
            logger.debug(f"Rejected {transaction}: {result.reason.value}")
        return result

    def process_records(self, transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
        """Apply records in order and return final account states."""
        for transaction in transactions:
            self.apply(transaction)
        return self._ledger.get_all_accounts()

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing {filepath}")
        with open(filepath, "r", newline="") as f:
            accounts = self.process_records(self._normalizer.read_csv(f, self.stats))
        logger.info(self.stats.summary())
        logger.info(f"{len(self._ledger)} accounts, {len(self._history)} stored transactions")
        return accounts

    def accounts(self) -> List[ClientAccount]:
        return self._ledger.sorted_accounts()
