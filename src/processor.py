import logging
from typing import Optional, Union

from history import TransactionHistory
from ledger import AccountLedger
from models import (
    APPLIED,
    ClientAccount,
    ProcessingResult,
    Rejected,
    RejectionReason,
    StoredTransaction,
    Transaction,
    TransactionType,
)

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions to the ledger and transaction history.
    Returns Applied or Rejected(reason); a rejected record leaves every entry untouched.
    """

    def __init__(self, ledger: AccountLedger, history: TransactionHistory):
        self._ledger = ledger
        self._history = history

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        The client's account is created on first reference. Records for a
        locked account are rejected before any operation sees them.
        """
        if self._ledger.is_locked(transaction.client_id):
            return Rejected(RejectionReason.LOCKED_ACCOUNT)

        account = self._ledger.get_or_create_account(transaction.client_id)

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(account, transaction)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(account, transaction)
            case TransactionType.DISPUTE:
                return self._handle_dispute(account, transaction)
            case TransactionType.RESOLVE:
                return self._handle_resolve(account, transaction)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(account, transaction)

    def _check_new_amount(self, transaction: Transaction) -> Optional[Rejected]:
        if transaction.amount is None:
            return Rejected(RejectionReason.MISSING_AMOUNT)
        if transaction.amount < 0:
            return Rejected(RejectionReason.NEGATIVE_AMOUNT)
        return None

    def _store(self, transaction: Transaction) -> None:
        self._history.store_transaction(
            transaction.transaction_id,
            StoredTransaction(
                client_id=transaction.client_id,
                amount=transaction.amount,
            ),
        )

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        rejection = self._check_new_amount(transaction)
        if rejection is not None:
            return rejection

        if transaction.amount == 0:
            return APPLIED

        if self._history.is_known(transaction.transaction_id):
            logger.warning(f"Deposit tx {transaction.transaction_id}: transaction id already used, ignoring")
            return Rejected(RejectionReason.DUPLICATE_TRANSACTION)

        self._ledger.replace_account(account.credit(transaction.amount))
        self._store(transaction)
        return APPLIED

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        rejection = self._check_new_amount(transaction)
        if rejection is not None:
            return rejection

        if transaction.amount == 0:
            return APPLIED

        if self._history.is_known(transaction.transaction_id):
            logger.warning(f"Withdrawal tx {transaction.transaction_id}: transaction id already used, ignoring")
            return Rejected(RejectionReason.DUPLICATE_TRANSACTION)

        if transaction.amount > account.available:
            return Rejected(RejectionReason.INSUFFICIENT_FUNDS)

        self._ledger.replace_account(account.debit(transaction.amount))
        self._store(transaction)
        return APPLIED

    def _find_referenced(
        self, transaction: Transaction, disputed: bool
    ) -> Union[StoredTransaction, Rejected]:
        """Find the stored transaction a dispute-chain record points at, in the expected dispute state."""
        original = self._history.get_transaction(transaction.client_id, transaction.transaction_id)

        if original is None:
            owner = self._history.owner_of(transaction.transaction_id)
            if owner is not None and owner != transaction.client_id:
                logger.info(
                    f"{transaction.transaction_type.value.capitalize()} for tx {transaction.transaction_id}: "
                    f"belongs to client {owner}, not {transaction.client_id}"
                )
                return Rejected(RejectionReason.FOREIGN_TRANSACTION)
            return Rejected(RejectionReason.UNKNOWN_TRANSACTION)

        if original.disputed and not disputed:
            return Rejected(RejectionReason.ALREADY_DISPUTED)
        if disputed and not original.disputed:
            return Rejected(RejectionReason.NOT_DISPUTED)

        return original

    # Withdrawals go through the same hold/release path as deposits, keyed on the stored amount.
    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original = self._find_referenced(transaction, disputed=False)
        if isinstance(original, Rejected):
            return original

        self._ledger.replace_account(account.hold(original.amount))
        self._history.mark_transaction_disputed(transaction.client_id, transaction.transaction_id)
        return APPLIED

    def _handle_resolve(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original = self._find_referenced(transaction, disputed=True)
        if isinstance(original, Rejected):
            return original

        self._ledger.replace_account(account.release_hold(original.amount))
        self._history.clear_transaction_dispute(transaction.client_id, transaction.transaction_id)
        return APPLIED

    def _handle_chargeback(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original = self._find_referenced(transaction, disputed=True)
        if isinstance(original, Rejected):
            return original

        self._ledger.replace_account(account.charge_back(original.amount))
        purged = self._history.purge_client(transaction.client_id)
        logger.info(
            f"Chargeback for tx {transaction.transaction_id}: client {transaction.client_id} locked, "
            f"{purged} stored transactions purged"
        )
        return APPLIED
