"""
Bulk Import Package

Row ingress, import result models, and the pipeline that sequences
classification, entity resolution, duplicate detection, and reconciliation.
"""

from .models import (
    ClassifiedTransaction,
    ImportResult,
    MatchDecision,
    MatchLogEntry,
    PendingReview,
    RecordKind,
    UnmatchedProject,
)
from .pipeline import ImportPipeline, ImportRunError
from .rows import RowValidationError, TransactionRow, ValidatedRow, load_transaction_csv, validate_row

__all__ = [
    "ClassifiedTransaction",
    "ImportPipeline",
    "ImportResult",
    "ImportRunError",
    "MatchDecision",
    "MatchLogEntry",
    "PendingReview",
    "RecordKind",
    "RowValidationError",
    "TransactionRow",
    "UnmatchedProject",
    "ValidatedRow",
    "load_transaction_csv",
    "validate_row",
]
