"""Exception types raised by the ledger services.

Validation and not-found errors derive from ``ValueError``/``LookupError`` so
callers that only know the builtin hierarchy still handle them sensibly.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all household ledger errors."""


class LedgerValidationError(LedgerError, ValueError):
    """Input rejected before any persistence attempt.

    ``field`` names the offending request field (wire name when known).
    """

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class NotFoundError(LedgerError, LookupError):
    """The referenced row, group, account or category does not exist."""


class DuplicateNameError(LedgerError):
    """A unique name (account name, category name+type) is already taken."""

    def __init__(self, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"{kind} named {name!r} already exists")


class DeleteBlockedError(LedgerError):
    """Deletion refused because ledger rows still reference the item."""

    def __init__(self, kind: str, item_id: int, blocking_count: int) -> None:
        self.kind = kind
        self.item_id = item_id
        self.blocking_count = blocking_count
        super().__init__(
            f"cannot delete {kind} {item_id}: {blocking_count} ledger row(s) reference it"
        )


class LedgerStorageError(LedgerError):
    """The store failed mid-write; the whole operation was rolled back."""


__all__ = [
    "LedgerError",
    "LedgerValidationError",
    "NotFoundError",
    "DuplicateNameError",
    "DeleteBlockedError",
    "LedgerStorageError",
]
