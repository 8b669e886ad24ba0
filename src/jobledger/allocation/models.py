#!/usr/bin/env python3
"""
Allocation Domain Models

Estimates, quotes, change orders, and the flattened line items an expense can
be allocated against.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..core.models import ExpenseCategory
from ..core.money import Money


class LineItemSource(Enum):
    """Document a line item comes from."""

    ESTIMATE = "estimate"
    QUOTE = "quote"
    CHANGE_ORDER = "change_order"


class QuoteStatus(Enum):
    """Vendor quote lifecycle."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class ChangeOrderStatus(Enum):
    """Change order lifecycle."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class LineItem:
    """A single costed line on an estimate, quote, or change order."""

    id: str
    category: ExpenseCategory
    description: str
    total: Money

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LineItem":
        """Create from dictionary loaded from JSON."""
        return cls(
            id=str(data["id"]),
            category=ExpenseCategory(data["category"]),
            description=data.get("description", ""),
            total=Money.from_cents(int(data["total_cents"])),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "category": self.category.value,
            "description": self.description,
            "total_cents": self.total.to_cents(),
        }


@dataclass
class Estimate:
    """A project estimate version."""

    id: str
    project_id: str
    is_current_version: bool = True
    line_items: list[LineItem] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Estimate":
        """Create from dictionary loaded from JSON."""
        return cls(
            id=str(data["id"]),
            project_id=str(data["project_id"]),
            is_current_version=bool(data.get("is_current_version", True)),
            line_items=[LineItem.from_dict(item) for item in data.get("line_items", [])],
        )


@dataclass
class Quote:
    """A vendor quote against an estimate."""

    id: str
    project_id: str
    estimate_id: str | None = None
    status: QuoteStatus = QuoteStatus.PENDING
    payee_name: str | None = None
    line_items: list[LineItem] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Quote":
        """Create from dictionary loaded from JSON."""
        return cls(
            id=str(data["id"]),
            project_id=str(data["project_id"]),
            estimate_id=data.get("estimate_id"),
            status=QuoteStatus(data.get("status", "pending")),
            payee_name=data.get("payee_name"),
            line_items=[LineItem.from_dict(item) for item in data.get("line_items", [])],
        )


@dataclass
class ChangeOrder:
    """A change order on a project."""

    id: str
    project_id: str
    status: ChangeOrderStatus = ChangeOrderStatus.PENDING
    payee_name: str | None = None
    line_items: list[LineItem] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChangeOrder":
        """Create from dictionary loaded from JSON."""
        return cls(
            id=str(data["id"]),
            project_id=str(data["project_id"]),
            status=ChangeOrderStatus(data.get("status", "pending")),
            payee_name=data.get("payee_name"),
            line_items=[LineItem.from_dict(item) for item in data.get("line_items", [])],
        )


@dataclass(frozen=True)
class AllocationLineItem:
    """A line item flattened with the project and document it belongs to."""

    id: str
    source: LineItemSource
    source_id: str
    project_id: str
    category: ExpenseCategory
    description: str
    total: Money
    payee_name: str | None = None


@dataclass(frozen=True)
class AllocationExpense:
    """The expense fields the allocation matcher looks at."""

    ref: str
    project_id: str | None
    category: ExpenseCategory
    amount: Money
    payee_name: str | None = None


@dataclass(frozen=True)
class AllocationSuggestion:
    """Best line item for an expense; line_item_id is None when nothing qualifies."""

    expense_ref: str
    line_item_id: str | None
    confidence: float
    source: LineItemSource | None = None
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "expense_ref": self.expense_ref,
            "line_item_id": self.line_item_id,
            "confidence": self.confidence,
            "source": self.source.value if self.source else None,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class BulkAllocationSuggestion:
    """A suggestion plus whether the bulk UI should pre-select it."""

    suggestion: AllocationSuggestion
    preselected: bool

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = self.suggestion.to_dict()
        result["preselected"] = self.preselected
        return result
