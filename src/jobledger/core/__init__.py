"""
Core Utilities Package

Shared primitives, data models, and configuration used across the import engine.

This package provides:
- Currency handling with integer arithmetic for precision
- Timezone-free calendar dates with export-format parsing
- Registry entity models and shared enums
- Configuration management for environment-specific settings
"""

from .config import (
    UNASSIGNED_CLIENT_ID,
    UNASSIGNED_PROJECT_ID,
    Config,
    Environment,
    ImportConfig,
    MatchingConfig,
    get_config,
    reload_config,
)
from .currency import cents_to_dollars_str, format_cents, parse_amount_to_cents
from .dates import FinancialDate
from .models import (
    AliasMatchMode,
    CanonicalEntity,
    EntityKind,
    ExpenseCategory,
    MatchCandidate,
    MatchType,
    PayeeType,
    ProjectAlias,
    TransactionType,
)
from .money import Money

__all__ = [
    "UNASSIGNED_CLIENT_ID",
    "UNASSIGNED_PROJECT_ID",
    "AliasMatchMode",
    "CanonicalEntity",
    # Configuration
    "Config",
    "EntityKind",
    "Environment",
    "ExpenseCategory",
    "FinancialDate",
    "ImportConfig",
    "MatchCandidate",
    "MatchType",
    "MatchingConfig",
    "Money",
    "PayeeType",
    "ProjectAlias",
    "TransactionType",
    # Currency utilities
    "cents_to_dollars_str",
    "format_cents",
    "get_config",
    "parse_amount_to_cents",
    "reload_config",
]
