class LedgerError(Exception):
    """Base class for errors raised by the payments ledger."""


class MalformedRecordError(LedgerError):
    """An input row could not be turned into a Transaction."""

    def __init__(self, message: str, row=None):
        super().__init__(message)
        self.row = row


class LedgerInvariantError(LedgerError):
    """A client entry broke a balance invariant. Input alone can never cause this."""

    def __init__(self, client_id: int, message: str):
        super().__init__(f"client {client_id}: {message}")
        self.client_id = client_id
