#!/usr/bin/env python3
"""
Category Rule Tables

Immutable lookup tables used by the category classifier. Tables are built
once and passed into the classifier rather than read from module globals, so
tests and callers can supply their own.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from ..core.models import ExpenseCategory, PayeeType, TransactionType

KeywordTable = tuple[tuple[tuple[str, ...], ExpenseCategory], ...]

_STATIC_ACCOUNTS: dict[str, ExpenseCategory] = {
    "cost of goods sold:contract labor": ExpenseCategory.SUBCONTRACTORS,
    "cost of goods sold:supplies & materials": ExpenseCategory.MATERIALS,
    "cost of goods sold:equipment rental - cogs": ExpenseCategory.EQUIPMENT,
    "cost of goods sold:equipment rental": ExpenseCategory.EQUIPMENT,
    "cost of goods sold:job site dumpsters": ExpenseCategory.MATERIALS,
    "office expenses:office equipment & supplies": ExpenseCategory.MANAGEMENT,
    "vehicle expenses:vehicle gas & fuel": ExpenseCategory.MANAGEMENT,
    "general business expenses:uniforms": ExpenseCategory.MANAGEMENT,
    "rent:building & land rent": ExpenseCategory.MANAGEMENT,
    "employee benefits:workers' compensation insurance": ExpenseCategory.MANAGEMENT,
    "insurance:business insurance": ExpenseCategory.MANAGEMENT,
    "legal & accounting services:legal fees": ExpenseCategory.MANAGEMENT,
}

_ACCOUNT_KEYWORDS: KeywordTable = (
    (("dumpster", "disposal", "material", "supply", "supplies", "lumber", "concrete", "aggregate"),
     ExpenseCategory.MATERIALS),
    (("tool", "safety", "equipment", "rental", "machinery"), ExpenseCategory.EQUIPMENT),
    (("insurance", "bond", "office", "admin", "management", "vehicle", "fuel", "gas", "uniform", "rent",
      "legal", "accounting"),
     ExpenseCategory.MANAGEMENT),
    (("labor", "wage", "payroll"), ExpenseCategory.LABOR_INTERNAL),
    (("contract", "subcontract"), ExpenseCategory.SUBCONTRACTORS),
    (("permit", "license", "fee"), ExpenseCategory.PERMITS),
)

_DESCRIPTION_KEYWORDS: KeywordTable = (
    (("labor", "wage", "payroll"), ExpenseCategory.LABOR_INTERNAL),
    (("contractor", "subcontractor"), ExpenseCategory.SUBCONTRACTORS),
    (("material", "supply", "lumber", "concrete"), ExpenseCategory.MATERIALS),
    (("equipment", "rental", "tool", "machinery"), ExpenseCategory.EQUIPMENT),
    (("permit", "fee", "license"), ExpenseCategory.PERMITS),
    (("management", "admin", "office"), ExpenseCategory.MANAGEMENT),
)

_PAYEE_TYPE_KEYWORDS: tuple[tuple[tuple[str, ...], PayeeType], ...] = (
    (("contract", "subcontractor"), PayeeType.SUBCONTRACTOR),
    (("materials", "supplies"), PayeeType.MATERIAL_SUPPLIER),
    (("equipment", "rental"), PayeeType.EQUIPMENT_RENTAL),
    (("permit", "license"), PayeeType.PERMIT_AUTHORITY),
)

_TRANSACTION_TYPES: dict[str, TransactionType] = {
    "bill": TransactionType.BILL,
    "check": TransactionType.CHECK,
    "expense": TransactionType.EXPENSE,
    "credit card": TransactionType.CREDIT_CARD,
    "credit card expense": TransactionType.CREDIT_CARD,
    "cash": TransactionType.CASH,
    "cash expense": TransactionType.CASH,
    "invoice": TransactionType.INVOICE,
}


@dataclass(frozen=True)
class CategoryRules:
    """Read-only rule tables for the three built-in classification tiers."""

    static_accounts: Mapping[str, ExpenseCategory]
    account_keywords: KeywordTable
    description_keywords: KeywordTable


@dataclass(frozen=True)
class CategoryRule:
    """User-defined mapping from an account path to a category."""

    account_path: str
    category: ExpenseCategory


def default_rules() -> CategoryRules:
    """Built-in rule tables."""
    return CategoryRules(
        static_accounts=MappingProxyType(dict(_STATIC_ACCOUNTS)),
        account_keywords=_ACCOUNT_KEYWORDS,
        description_keywords=_DESCRIPTION_KEYWORDS,
    )


def match_keywords(text: str, table: KeywordTable) -> ExpenseCategory | None:
    """First category whose keyword list has a substring hit in text."""
    lowered = (text or "").lower()
    if not lowered:
        return None
    for keywords, category in table:
        if any(keyword in lowered for keyword in keywords):
            return category
    return None


def detect_payee_type(account_path: str | None) -> PayeeType:
    """
    Infer what kind of vendor a payee is from the account it was booked to.

    Examples:
        detect_payee_type("Cost of Goods Sold:Contract Labor") -> PayeeType.SUBCONTRACTOR
        detect_payee_type("Rent") -> PayeeType.OTHER
    """
    lowered = (account_path or "").lower()
    for keywords, payee_type in _PAYEE_TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return payee_type
    return PayeeType.OTHER


def map_transaction_type(raw: str | None) -> TransactionType:
    """Map an export transaction-type cell; unknown types are treated as expenses."""
    return _TRANSACTION_TYPES.get((raw or "").strip().lower(), TransactionType.EXPENSE)
