#!/usr/bin/env python3
"""
Import Result Models

Import-ready records and the structured report produced by one pipeline run.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..allocation.models import AllocationSuggestion
from ..classification.classifier import MappingStats, MappingTier, UnmappedAccount
from ..core.dates import FinancialDate
from ..core.models import ExpenseCategory, MatchCandidate, PayeeType, TransactionType
from ..core.money import Money
from ..dedup.detector import DuplicateRecord
from ..dedup.reconciliation import ReconciliationSummary
from .rows import ValidatedRow


class RecordKind(Enum):
    """Direction of an imported record."""

    EXPENSE = "expense"
    REVENUE = "revenue"


class MatchDecision(Enum):
    """Outcome recorded in the match log."""

    AUTO_MATCHED = "auto_matched"
    FUZZY_MATCHED = "fuzzy_matched"
    ALIAS_MATCHED = "alias_matched"
    CREATED = "created"
    PENDING_REVIEW = "pending_review"
    UNMATCHED = "unmatched"
    MAPPED = "mapped"
    USER_OVERRIDE = "user_override"


@dataclass
class ClassifiedTransaction:
    """
    An import-ready expense or revenue.

    amount is always the non-negative magnitude; kind carries the direction.
    Revenues carry no category.
    """

    kind: RecordKind
    row: ValidatedRow
    category: ExpenseCategory | None
    transaction_type: TransactionType
    date: FinancialDate
    amount: Money
    description: str
    project_id: str
    payee_id: str | None = None
    client_id: str | None = None
    is_unassigned: bool = False
    mapping_tier: MappingTier | None = None
    import_batch_id: str | None = None

    def __post_init__(self) -> None:
        if self.amount.to_cents() < 0:
            raise ValueError("ClassifiedTransaction amount must be non-negative")

    @property
    def name(self) -> str:
        """Name as it appeared in the export."""
        return self.row.name

    def to_dict(self) -> dict[str, Any]:
        """Convert to the record store's dictionary form."""
        return {
            "kind": self.kind.value,
            "date": self.date.to_iso_string(),
            "amount_cents": self.amount.to_cents(),
            "name": self.row.name,
            "description": self.description,
            "category": self.category.value if self.category else None,
            "transaction_type": self.transaction_type.value,
            "project_id": self.project_id,
            "payee_id": self.payee_id,
            "client_id": self.client_id,
            "invoice_number": self.row.invoice_number or None,
            "account_name": self.row.account_name or None,
            "account_full_name": self.row.account_full_name or None,
            "is_unassigned": self.is_unassigned,
            "mapping_tier": self.mapping_tier.value if self.mapping_tier else None,
            "import_batch_id": self.import_batch_id,
            "line_number": self.row.line_number,
        }


@dataclass
class MatchLogEntry:
    """Audit trail entry for one matching decision."""

    source_text: str
    entity_type: str
    decision: MatchDecision
    matched_entity_id: str | None = None
    matched_name: str | None = None
    confidence: float | None = None
    algorithm: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "source_text": self.source_text,
            "entity_type": self.entity_type,
            "decision": self.decision.value,
            "matched_entity_id": self.matched_entity_id,
            "matched_name": self.matched_name,
            "confidence": self.confidence,
            "algorithm": self.algorithm,
        }


@dataclass
class AcceptedMatch:
    """A name that was matched to an existing entity."""

    source_name: str
    candidate: MatchCandidate

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"source_name": self.source_name, **self.candidate.to_dict()}


@dataclass
class PendingReview:
    """A name that needs a human decision, with the best suggestions found."""

    source_name: str
    suggestions: list[MatchCandidate] = field(default_factory=list)
    suggested_payee_type: PayeeType | None = None
    row_count: int = 1

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "source_name": self.source_name,
            "suggestions": [s.to_dict() for s in self.suggestions],
            "suggested_payee_type": self.suggested_payee_type.value if self.suggested_payee_type else None,
            "row_count": self.row_count,
        }


@dataclass
class CreatedPayee:
    """A payee created during the run."""

    id: str
    name: str
    payee_type: PayeeType

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"id": self.id, "name": self.name, "payee_type": self.payee_type.value}


@dataclass
class UnmatchedProject:
    """A project token that resolved to nothing."""

    token: str
    transaction_count: int = 0
    total_amount: Money = field(default_factory=Money.zero)
    suggestions: list[MatchCandidate] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "token": self.token,
            "transaction_count": self.transaction_count,
            "total_amount": self.total_amount.to_float(),
            "suggestions": [s.to_dict() for s in self.suggestions],
        }


@dataclass
class ImportResult:
    """Everything one import run produced."""

    import_batch_id: str
    expenses: list[ClassifiedTransaction] = field(default_factory=list)
    revenues: list[ClassifiedTransaction] = field(default_factory=list)
    category_mappings_used: dict[str, str] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    in_file_duplicates: list[DuplicateRecord] = field(default_factory=list)
    persisted_duplicates: list[DuplicateRecord] = field(default_factory=list)
    revenue_in_file_duplicates: list[DuplicateRecord] = field(default_factory=list)
    revenue_persisted_duplicates: list[DuplicateRecord] = field(default_factory=list)
    reimported_duplicates: list[DuplicateRecord] = field(default_factory=list)

    fuzzy_matches: list[AcceptedMatch] = field(default_factory=list)
    pending_payee_reviews: list[PendingReview] = field(default_factory=list)
    auto_created_payees: list[CreatedPayee] = field(default_factory=list)
    client_matches: list[AcceptedMatch] = field(default_factory=list)
    pending_client_reviews: list[PendingReview] = field(default_factory=list)
    unmatched_projects: list[UnmatchedProject] = field(default_factory=list)

    mapping_stats: MappingStats = field(default_factory=MappingStats)
    unmapped_accounts: list[UnmappedAccount] = field(default_factory=list)
    allocation_suggestions: list[AllocationSuggestion] = field(default_factory=list)
    match_log: list[MatchLogEntry] = field(default_factory=list)

    expense_reconciliation: ReconciliationSummary | None = None
    revenue_reconciliation: ReconciliationSummary | None = None

    @property
    def imported_expenses(self) -> int:
        """Expense records ready to persist."""
        return len(self.expenses)

    @property
    def imported_revenues(self) -> int:
        """Revenue records ready to persist."""
        return len(self.revenues)

    @property
    def unassociated_expenses(self) -> int:
        """Expenses routed to the unassigned project."""
        return sum(1 for record in self.expenses if record.is_unassigned)

    @property
    def unassociated_revenues(self) -> int:
        """Revenues routed to the unassigned project."""
        return sum(1 for record in self.revenues if record.is_unassigned)

    @property
    def total_duplicates(self) -> int:
        """Duplicate rows across both streams."""
        return (
            len(self.in_file_duplicates)
            + len(self.persisted_duplicates)
            + len(self.revenue_in_file_duplicates)
            + len(self.revenue_persisted_duplicates)
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON import report."""
        return {
            "import_batch_id": self.import_batch_id,
            "summary": {
                "imported_expenses": self.imported_expenses,
                "imported_revenues": self.imported_revenues,
                "unassociated_expenses": self.unassociated_expenses,
                "unassociated_revenues": self.unassociated_revenues,
                "duplicates": self.total_duplicates,
                "errors": len(self.errors),
            },
            "expenses": [record.to_dict() for record in self.expenses],
            "revenues": [record.to_dict() for record in self.revenues],
            "category_mappings_used": dict(self.category_mappings_used),
            "errors": list(self.errors),
            "in_file_duplicates": [d.to_dict() for d in self.in_file_duplicates],
            "persisted_duplicates": [d.to_dict() for d in self.persisted_duplicates],
            "revenue_in_file_duplicates": [d.to_dict() for d in self.revenue_in_file_duplicates],
            "revenue_persisted_duplicates": [d.to_dict() for d in self.revenue_persisted_duplicates],
            "reimported_duplicates": [d.to_dict() for d in self.reimported_duplicates],
            "fuzzy_matches": [m.to_dict() for m in self.fuzzy_matches],
            "pending_payee_reviews": [r.to_dict() for r in self.pending_payee_reviews],
            "auto_created_payees": [p.to_dict() for p in self.auto_created_payees],
            "client_matches": [m.to_dict() for m in self.client_matches],
            "pending_client_reviews": [r.to_dict() for r in self.pending_client_reviews],
            "unmatched_projects": [p.to_dict() for p in self.unmatched_projects],
            "mapping_stats": self.mapping_stats.to_dict(),
            "unmapped_accounts": [a.to_dict() for a in self.unmapped_accounts],
            "allocation_suggestions": [s.to_dict() for s in self.allocation_suggestions],
            "match_log": [entry.to_dict() for entry in self.match_log],
            "expense_reconciliation": (
                self.expense_reconciliation.to_dict() if self.expense_reconciliation else None
            ),
            "revenue_reconciliation": (
                self.revenue_reconciliation.to_dict() if self.revenue_reconciliation else None
            ),
        }
