from typing import Optional


class LedgerError(Exception):
    """Base class for all ledger errors."""
    pass


class ValidationError(LedgerError):
    """Raised when input is rejected (bad amount, missing field, bad id, ...)."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class NotFoundError(LedgerError):
    """Raised when an operation targets a transaction that does not exist."""
    pass


class StoreError(LedgerError):
    """Raised when the persistence backend fails or is unreachable."""
    pass
