# catalog_admin/core/errors.py
from typing import List, Optional, Sequence


class CatalogError(Exception):
    """Base class for catalog engine failures."""


class RemoteUnavailable(CatalogError):
    """The relational backend could not be reached or rejected a read."""


class NotFoundError(CatalogError):
    """A product referenced by SKU does not exist."""


class ValidationFailure(CatalogError):
    """Batch input is malformed; `messages` holds one entry per bad line."""

    def __init__(self, messages: Sequence[str], message: Optional[str] = None):
        self.messages: List[str] = list(messages)
        super().__init__(message or f"{len(self.messages)} invalid row(s)")


class ReconciliationCancelled(Exception):
    """A bulk reconciliation was stopped by the user.

    Not a CatalogError: handlers for generic failures must not swallow it.
    """

    def __init__(self, processed: int = 0, total: int = 0):
        self.processed = processed
        self.total = total
        super().__init__(f"Reconciliation cancelled after {processed} of {total} rows")
