from collections import Counter
from dataclasses import dataclass, field, replace
from decimal import Context, Decimal, Inexact, InvalidOperation, localcontext
from enum import Enum
from typing import Optional, Union


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @classmethod
    def parse(cls, token: str) -> "TransactionType":
        """Case- and whitespace-insensitive lookup. Raises ValueError on unknown tokens."""
        return cls(token.strip().lower())

    @property
    def is_value_bearing(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class RejectionReason(Enum):
    LOCKED_ACCOUNT = "locked_account"
    NEGATIVE_AMOUNT = "negative_amount"
    MISSING_AMOUNT = "missing_amount"
    DUPLICATE_TRANSACTION = "duplicate_transaction"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    UNKNOWN_TRANSACTION = "unknown_transaction"
    FOREIGN_TRANSACTION = "foreign_transaction"
    ALREADY_DISPUTED = "already_disputed"
    NOT_DISPUTED = "not_disputed"


@dataclass(frozen=True)
class Applied:
    pass


@dataclass(frozen=True)
class Rejected:
    reason: RejectionReason


ProcessingResult = Union[Applied, Rejected]

APPLIED = Applied()

# Balance arithmetic never rounds: a sum that would need more digits raises Inexact.
LEDGER_CONTEXT = Context(prec=60, traps=[InvalidOperation, Inexact])


@dataclass
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class StoredTransaction:
    """A previously applied deposit or withdrawal, kept for dispute lookups."""

    client_id: int
    amount: Decimal
    disputed: bool = False


@dataclass(frozen=True)
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        with localcontext(LEDGER_CONTEXT):
            return self.available + self.held

    def credit(self, amount: Decimal) -> "ClientAccount":
        with localcontext(LEDGER_CONTEXT):
            return replace(self, available=self.available + amount)

    def debit(self, amount: Decimal) -> "ClientAccount":
        with localcontext(LEDGER_CONTEXT):
            return replace(self, available=self.available - amount)

    def hold(self, amount: Decimal) -> "ClientAccount":
        with localcontext(LEDGER_CONTEXT):
            return replace(self, available=self.available - amount, held=self.held + amount)

    def release_hold(self, amount: Decimal) -> "ClientAccount":
        with localcontext(LEDGER_CONTEXT):
            return replace(self, available=self.available + amount, held=self.held - amount)

    def charge_back(self, amount: Decimal) -> "ClientAccount":
        # held funds leave the account entirely and the account freezes
        with localcontext(LEDGER_CONTEXT):
            return replace(self, held=self.held - amount, locked=True)


@dataclass
class ProcessingStats:
    """Counters for a single engine run."""

    applied: int = 0
    malformed: int = 0
    rejected: Counter = field(default_factory=Counter)

    def record(self, result: ProcessingResult) -> None:
        if isinstance(result, Rejected):
            self.rejected[result.reason] += 1
        else:
            self.applied += 1

    def record_malformed(self) -> None:
        self.malformed += 1

    @property
    def total_rejected(self) -> int:
        return sum(self.rejected.values())

    def summary(self) -> str:
        reasons = ", ".join(
            f"{reason.value}={count}"
            for reason, count in sorted(self.rejected.items(), key=lambda item: item[0].value)
        )
        return (
            f"Applied: {self.applied}, "
            f"Rejected: {self.total_rejected}"
            f"{f' ({reasons})' if reasons else ''}, "
            f"Malformed: {self.malformed}"
        )
