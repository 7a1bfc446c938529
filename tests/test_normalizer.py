import sys
import os
import io
import logging
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from errors import MalformedRecordError
from models import ProcessingStats, Transaction, TransactionType
from normalizer import RecordNormalizer


class TestRecordNormalizer:
    def setup_method(self):
        self.normalizer = RecordNormalizer()

    def test_parse_deposit(self):
        transaction = self.normalizer.parse_row({"type": "deposit", "client": "1", "tx": "2", "amount": "3.5"})

        assert transaction == Transaction(TransactionType.DEPOSIT, 1, 2, Decimal("3.5000"))

    def test_whitespace_and_case_stripped(self):
        transaction = self.normalizer.parse_row(
            {" type ": "   WithDrawal   ", " client": " 55     ", "tx ": "     123 ", "amount": "    17.64  "}
        )

        assert transaction.transaction_type == TransactionType.WITHDRAWAL
        assert transaction.client_id == 55
        assert transaction.transaction_id == 123
        assert transaction.amount == Decimal("17.64")

    def test_dispute_chain_ignores_amount(self):
        for token in ("dispute", "resolve", "chargeback"):
            transaction = self.normalizer.parse_row({"type": token, "client": "1", "tx": "1", "amount": "9.99"})
            assert transaction.amount is None

    def test_dispute_without_amount_column(self):
        transaction = self.normalizer.parse_row({"type": "dispute", "client": "1", "tx": "1"})
        assert transaction.transaction_type == TransactionType.DISPUTE

    @pytest.mark.parametrize("amount,expected", [
        ("5.7245462362", "5.7245"),
        ("5.72459", "5.7245"),
        ("1", "1.0000"),
        ("-2.00009", "-2.0000"),
    ])
    def test_amount_truncated_to_precision(self, amount, expected):
        assert self.normalizer.parse_amount(amount) == Decimal(expected)

    def test_configurable_precision(self):
        assert RecordNormalizer(decimal_places=2).parse_amount("1.239") == Decimal("1.23")

    @pytest.mark.parametrize("row", [
        {"type": "bacon", "client": "1", "tx": "1", "amount": "1.0"},
        {"type": "deposit", "client": "invalidclient", "tx": "1", "amount": "1.0"},
        {"type": "deposit", "client": "1", "tx": "invalidtx", "amount": "1.0"},
        {"type": "deposit", "client": "1", "tx": "1", "amount": "invalidamount"},
        {"type": "deposit", "client": "1", "tx": "1", "amount": ""},
        {"type": "withdrawal", "client": "1", "tx": "1"},
        {"type": "deposit", "client": "1", "tx": "1", "amount": "NaN"},
        {"type": "deposit", "client": "1", "tx": "1", "amount": "Infinity"},
        {"type": "deposit", "client": "1", "tx": "1", "amount": "1e40"},
        {"type": "deposit", "client": "-1", "tx": "1", "amount": "1.0"},
        {"type": "deposit", "client": "65536", "tx": "1", "amount": "1.0"},
        {"type": "deposit", "client": "1", "tx": "4294967296", "amount": "1.0"},
        {"type": "deposit", "client": "1.5", "tx": "1", "amount": "1.0"},
        {"client": "1", "tx": "1", "amount": "1.0"},
        {"type": None, "client": None, "tx": None, "amount": None},
    ])
    def test_malformed_rows_raise(self, row):
        with pytest.raises(MalformedRecordError):
            self.normalizer.parse_row(row)

    def test_id_bounds_inclusive(self):
        transaction = self.normalizer.parse_row({"type": "deposit", "client": "65535", "tx": "4294967295", "amount": "1"})
        assert transaction.client_id == 65535
        assert transaction.transaction_id == 4294967295

        transaction = self.normalizer.parse_row({"type": "deposit", "client": "0", "tx": "0", "amount": "1"})
        assert transaction.client_id == 0
        assert transaction.transaction_id == 0

    def test_try_parse_row_logs_and_drops(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert self.normalizer.try_parse_row({"type": "corn", "client": "potato"}) is None
        assert "Failed to parse row" in caplog.text

    def test_read_csv_counts_malformed(self):
        stream = io.StringIO("\n".join([
            "type, client, tx, amount",
            "deposit, 1, 1, 1.0",
            "deposit, 1, 2",
            "nonsense",
            "dispute, 1, 1,",
            "deposit, 2, 3, 2.0, extra",
        ]))
        stats = ProcessingStats()

        transactions = list(self.normalizer.read_csv(stream, stats))

        assert [t.transaction_id for t in transactions] == [1, 1, 3]
        assert stats.malformed == 2

    @pytest.mark.parametrize("amount", [
        "100000000000000",
        "-100000000000000",
        "999999999999999999999999.9999",
    ])
    def test_amount_beyond_supported_digits_raises(self, amount):
        with pytest.raises(MalformedRecordError):
            self.normalizer.parse_amount(amount)

    def test_largest_supported_amount(self):
        assert self.normalizer.parse_amount("99999999999999.99999") == Decimal("99999999999999.9999")

    def test_amount_bound_follows_precision(self):
        normalizer = RecordNormalizer(decimal_places=2)
        assert normalizer.parse_amount("9999999999999999.99") == Decimal("9999999999999999.99")
        with pytest.raises(MalformedRecordError):
            normalizer.parse_amount("10000000000000000")
