#!/usr/bin/env python3
"""
Category Classifier

Assigns an expense category to an imported row from its account path and
description. Tiers are tried in order and the first hit wins:

1. user-defined override for the exact account path
2. built-in static account table
3. keyword scan of the account path
4. keyword scan of the description
5. "other"
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from ..core.models import ExpenseCategory
from ..core.money import Money
from .rules import CategoryRule, CategoryRules, default_rules, match_keywords

logger = logging.getLogger(__name__)


class MappingTier(Enum):
    """Which classification tier produced a category."""

    OVERRIDE = "override"
    STATIC = "static"
    ACCOUNT_KEYWORD = "account_keyword"
    DESCRIPTION = "description"
    UNMAPPED = "unmapped"


@dataclass(frozen=True)
class Classification:
    """A category and the tier that chose it."""

    category: ExpenseCategory
    tier: MappingTier


class CategoryClassifier:
    """Tiered account-path and description classifier."""

    def __init__(self, rules: CategoryRules | None = None, overrides: Iterable[CategoryRule] = ()):
        self.rules = rules or default_rules()
        self._overrides: dict[str, ExpenseCategory] = {}
        for rule in overrides:
            key = rule.account_path.strip().lower()
            # First definition wins
            self._overrides.setdefault(key, rule.category)

    def classify(self, description: str, account_path: str | None = None) -> Classification:
        """
        Classify one transaction.

        Args:
            description: Free-text description or payee name
            account_path: Colon-separated account path, if the export has one

        Returns:
            Classification with the category and the tier that matched
        """
        path = (account_path or "").strip().lower()

        if path:
            if path in self._overrides:
                return Classification(self._overrides[path], MappingTier.OVERRIDE)

            if path in self.rules.static_accounts:
                return Classification(self.rules.static_accounts[path], MappingTier.STATIC)

            category = match_keywords(path, self.rules.account_keywords)
            if category is not None:
                return Classification(category, MappingTier.ACCOUNT_KEYWORD)

        category = match_keywords(description, self.rules.description_keywords)
        if category is not None:
            return Classification(category, MappingTier.DESCRIPTION)

        logger.debug("No category rule matched account=%r description=%r", account_path, description)
        return Classification(ExpenseCategory.OTHER, MappingTier.UNMAPPED)


@dataclass
class UnmappedAccount:
    """An account path that fell through every classification tier."""

    account_path: str
    transaction_count: int = 0
    total_amount: Money = field(default_factory=Money.zero)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "account_path": self.account_path,
            "transaction_count": self.transaction_count,
            "total_amount": self.total_amount.to_float(),
        }


@dataclass
class MappingStats:
    """Row counts per classification tier."""

    counts: dict[MappingTier, int] = field(default_factory=lambda: {tier: 0 for tier in MappingTier})

    def record(self, tier: MappingTier) -> None:
        """Count one classified row."""
        self.counts[tier] = self.counts.get(tier, 0) + 1

    @property
    def total(self) -> int:
        """Rows classified."""
        return sum(self.counts.values())

    def to_dict(self) -> dict[str, int]:
        """Convert to dictionary for JSON serialization."""
        return {tier.value: count for tier, count in self.counts.items()}
