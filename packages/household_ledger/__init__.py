"""Public interface for the ``household_ledger`` package.

This module exposes the package's API functions, services and public
models/types as the stable import surface. There is no runtime logic here,
only symbol re-exports.
"""

from .api import (
    add_account,
    add_category,
    build_report,
    checklist_status,
    configure_checklist,
    dashboard,
    delete_entry,
    edit_account,
    edit_category,
    edit_entry,
    list_accounts,
    list_categories,
    list_checklist,
    list_entries,
    read_ledger,
    record_expense,
    record_revenue,
    remove_account,
    remove_category,
)
from .checklist import ChecklistReconciler
from .errors import (
    DeleteBlockedError,
    DuplicateNameError,
    LedgerError,
    LedgerStorageError,
    LedgerValidationError,
    NotFoundError,
)
from .installments import description_root, expand_expense
from .ledger import LedgerStore
from .models import (
    LedgerEditRequest,
    LedgerEntry,
    LedgerQuery,
    LedgerRow,
    LedgerWriteRequest,
    ReportRequest,
)
from .normalizers import normalize_date, normalize_subgroup
from .reports import ReportingAggregator, trailing_months

__all__ = [
    # API
    "record_expense",
    "record_revenue",
    "edit_entry",
    "delete_entry",
    "read_ledger",
    "list_entries",
    "build_report",
    "dashboard",
    "checklist_status",
    "configure_checklist",
    "list_checklist",
    "add_account",
    "list_accounts",
    "edit_account",
    "remove_account",
    "add_category",
    "list_categories",
    "edit_category",
    "remove_category",
    # Services
    "LedgerStore",
    "ChecklistReconciler",
    "ReportingAggregator",
    "expand_expense",
    "description_root",
    "normalize_date",
    "normalize_subgroup",
    "trailing_months",
    # Models
    "LedgerWriteRequest",
    "LedgerEditRequest",
    "LedgerQuery",
    "ReportRequest",
    "LedgerRow",
    "LedgerEntry",
    # Errors
    "LedgerError",
    "LedgerValidationError",
    "NotFoundError",
    "DuplicateNameError",
    "DeleteBlockedError",
    "LedgerStorageError",
]
