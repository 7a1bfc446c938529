import csv
import logging
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Dict, Iterable, Iterator, Optional, TextIO

from errors import MalformedRecordError
from models import ProcessingStats, Transaction, TransactionType

logger = logging.getLogger(__name__)

MAX_CLIENT_ID = 65535
MAX_TRANSACTION_ID = 4294967295

# significant digits an amount may carry, fractional digits included
MAX_AMOUNT_DIGITS = 18


class RecordNormalizer:
    """
    Turns raw CSV rows into typed Transactions.
    Malformed rows are logged and dropped; they never reach the engine.
    """

    def __init__(self, decimal_places: int = 4):
        self._quantum = Decimal(1).scaleb(-decimal_places)
        self._max_amount = Decimal(1).scaleb(MAX_AMOUNT_DIGITS - decimal_places)

    def read_csv(self, stream: TextIO, stats: Optional[ProcessingStats] = None) -> Iterator[Transaction]:
        """Yield well-formed transactions from a CSV stream with a type,client,tx,amount header."""
        reader = csv.DictReader(stream, skipinitialspace=True)
        yield from self.normalize_rows(reader, stats)

    def normalize_rows(
        self, rows: Iterable[Dict[str, Optional[str]]], stats: Optional[ProcessingStats] = None
    ) -> Iterator[Transaction]:
        for row in rows:
            transaction = self.try_parse_row(row)
            if transaction is not None:
                yield transaction
            elif stats is not None:
                stats.record_malformed()

    def try_parse_row(self, row: Dict[str, Optional[str]]) -> Optional[Transaction]:
        try:
            return self.parse_row(row)
        except MalformedRecordError as e:
            logger.warning(f"Failed to parse row {row}: {e}")
            return None

    def parse_row(self, row: Dict[str, Optional[str]]) -> Transaction:
        """Parse one CSV row. Raises MalformedRecordError if any field is unusable."""
        normalized = {
            k.strip().lower(): (v or "").strip()
            for k, v in row.items()
            if isinstance(k, str)
        }

        try:
            transaction_type = TransactionType.parse(normalized["type"])
        except (KeyError, ValueError):
            raise MalformedRecordError(f"unknown transaction type {normalized.get('type')!r}", row)

        client_id = self._parse_id(normalized, "client", MAX_CLIENT_ID, row)
        transaction_id = self._parse_id(normalized, "tx", MAX_TRANSACTION_ID, row)

        amount = None
        if transaction_type.is_value_bearing:
            amount = self.parse_amount(normalized.get("amount", ""), row)

        return Transaction(
            transaction_type=transaction_type,
            client_id=client_id,
            transaction_id=transaction_id,
            amount=amount,
        )

    def parse_amount(self, amount_str: str, row=None) -> Decimal:
        """
        Parse an amount, truncating extra fractional digits toward zero.

        Amounts are capped at MAX_AMOUNT_DIGITS significant digits so that
        balances built from them stay exact.
        """
        if not amount_str:
            raise MalformedRecordError("missing amount", row)
        try:
            amount = Decimal(amount_str)
        except InvalidOperation:
            raise MalformedRecordError(f"invalid amount {amount_str!r}", row)
        if not amount.is_finite():
            raise MalformedRecordError(f"non-finite amount {amount_str!r}", row)
        if amount.copy_abs() >= self._max_amount:
            raise MalformedRecordError(f"amount {amount_str!r} out of range", row)
        return amount.quantize(self._quantum, rounding=ROUND_DOWN)

    @staticmethod
    def _parse_id(normalized: Dict[str, str], field: str, upper: int, row) -> int:
        try:
            value = int(normalized[field])
        except (KeyError, ValueError):
            raise MalformedRecordError(f"invalid {field} {normalized.get(field)!r}", row)
        if not 0 <= value <= upper:
            raise MalformedRecordError(f"{field} {value} out of range", row)
        return value
