"""
Duplicate Detection Package

Composite keys, in-file and persisted duplicate detection, and reconciliation
of duplicate totals.
"""

from .detector import (
    DuplicateRecord,
    InFileScan,
    PersistedExpense,
    PersistedIndex,
    PersistedMatch,
    PersistedRevenue,
    detect_in_file_duplicates,
    extract_expense_name,
    find_persisted_expense,
    find_persisted_revenue,
)
from .keys import expense_key, revenue_key
from .reconciliation import ReconciliationSummary, reconcile

__all__ = [
    "DuplicateRecord",
    "InFileScan",
    "PersistedExpense",
    "PersistedIndex",
    "PersistedMatch",
    "PersistedRevenue",
    "ReconciliationSummary",
    "detect_in_file_duplicates",
    "expense_key",
    "extract_expense_name",
    "find_persisted_expense",
    "find_persisted_revenue",
    "reconcile",
    "revenue_key",
]
