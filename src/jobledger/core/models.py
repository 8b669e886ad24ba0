#!/usr/bin/env python3
"""
Core Data Models for jobledger

Shared enums and registry entities used by classification, matching,
duplicate detection, and the import pipeline.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ExpenseCategory(Enum):
    """Expense categories for construction job costing."""

    LABOR_INTERNAL = "labor_internal"
    SUBCONTRACTORS = "subcontractors"
    MATERIALS = "materials"
    EQUIPMENT = "equipment"
    PERMITS = "permits"
    MANAGEMENT = "management"
    # Finer-grained categories that user overrides may produce
    TOOLS = "tools"
    SOFTWARE = "software"
    VEHICLE_MAINTENANCE = "vehicle_maintenance"
    GAS = "gas"
    MEALS = "meals"
    OFFICE_EXPENSES = "office_expenses"
    VEHICLE_EXPENSES = "vehicle_expenses"
    OTHER = "other"


class TransactionType(Enum):
    """Transaction types found in accounting exports."""

    BILL = "bill"
    CHECK = "check"
    EXPENSE = "expense"
    CREDIT_CARD = "credit_card"
    CASH = "cash"
    INVOICE = "invoice"


class PayeeType(Enum):
    """Payee classification inferred from the booking account."""

    SUBCONTRACTOR = "subcontractor"
    MATERIAL_SUPPLIER = "material_supplier"
    EQUIPMENT_RENTAL = "equipment_rental"
    PERMIT_AUTHORITY = "permit_authority"
    OTHER = "other"


class MatchType(Enum):
    """How a candidate was matched."""

    EXACT = "exact"
    FUZZY = "fuzzy"
    ALIAS = "alias"
    REGEX = "regex"


class EntityKind(Enum):
    """Kinds of canonical registry entities."""

    PAYEE = "payee"
    CLIENT = "client"
    PROJECT = "project"


class AliasMatchMode(Enum):
    """How a project alias is compared to a token."""

    EXACT = "exact"
    STARTS_WITH = "starts_with"
    CONTAINS = "contains"


@dataclass(frozen=True)
class CanonicalEntity:
    """
    A registry entity (payee, client, or project).

    Payees carry a full legal name in secondary_name; projects carry their
    project number in number.
    """

    id: str
    display_name: str
    kind: EntityKind
    secondary_name: str | None = None
    number: str | None = None
    payee_type: PayeeType | None = None

    def names(self) -> list[str]:
        """Non-empty names to match against."""
        return [name for name in (self.display_name, self.secondary_name) if name]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "id": self.id,
            "display_name": self.display_name,
            "kind": self.kind.value,
        }
        if self.secondary_name is not None:
            result["secondary_name"] = self.secondary_name
        if self.number is not None:
            result["number"] = self.number
        if self.payee_type is not None:
            result["payee_type"] = self.payee_type.value
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CanonicalEntity":
        """Create from dictionary loaded from JSON."""
        payee_type = data.get("payee_type")
        return cls(
            id=str(data["id"]),
            display_name=data.get("display_name", ""),
            kind=EntityKind(data["kind"]),
            secondary_name=data.get("secondary_name"),
            number=data.get("number"),
            payee_type=PayeeType(payee_type) if payee_type else None,
        )


@dataclass(frozen=True)
class ProjectAlias:
    """Alternate text that resolves to a project."""

    project_id: str
    alias_text: str
    match_mode: AliasMatchMode = AliasMatchMode.EXACT
    active: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "project_id": self.project_id,
            "alias_text": self.alias_text,
            "match_mode": self.match_mode.value,
            "active": self.active,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProjectAlias":
        """Create from dictionary loaded from JSON."""
        return cls(
            project_id=str(data["project_id"]),
            alias_text=data["alias_text"],
            match_mode=AliasMatchMode(data.get("match_mode", "exact")),
            active=bool(data.get("active", True)),
        )


@dataclass(frozen=True)
class MatchCandidate:
    """
    A scored candidate entity for a piece of source text.

    Confidence is on a 0-100 scale.
    """

    entity_id: str
    confidence: float
    match_type: MatchType
    display_name: str = ""
    detail: str | None = None

    def __post_init__(self) -> None:
        if not 0 <= self.confidence <= 100:
            raise ValueError(f"Confidence must be between 0 and 100, got {self.confidence}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "entity_id": self.entity_id,
            "display_name": self.display_name,
            "confidence": self.confidence,
            "match_type": self.match_type.value,
        }
        if self.detail:
            result["detail"] = self.detail
        return result
