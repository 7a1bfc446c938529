import csv
from decimal import Decimal, Inexact, localcontext
from typing import Iterable, TextIO

from models import LEDGER_CONTEXT, ClientAccount

HEADER = ["client", "available", "held", "total", "locked"]


class AccountReporter:
    """Writes the final account table as CSV, one row per client in ascending id order."""

    def __init__(self, decimal_places: int = 4):
        self._quantum = Decimal(1).scaleb(-decimal_places)

    def format_decimal(self, value: Decimal) -> str:
        """Format decimal at the fixed output precision."""
        with localcontext(LEDGER_CONTEXT) as ctx:
            ctx.traps[Inexact] = False
            return f"{value.quantize(self._quantum):f}"

    def write(self, accounts: Iterable[ClientAccount], stream: TextIO) -> None:
        writer = csv.writer(stream, lineterminator="\n")
        writer.writerow(HEADER)
        for account in sorted(accounts, key=lambda a: a.client_id):
            writer.writerow([
                account.client_id,
                self.format_decimal(account.available),
                self.format_decimal(account.held),
                self.format_decimal(account.total),
                str(account.locked).lower(),
            ])
