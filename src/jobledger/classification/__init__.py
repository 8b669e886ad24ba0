"""
Category Classification Package

Tiered mapping from account paths and descriptions to expense categories,
plus payee-type and transaction-type inference.
"""

from .classifier import CategoryClassifier, Classification, MappingStats, MappingTier, UnmappedAccount
from .rules import CategoryRule, CategoryRules, default_rules, detect_payee_type, map_transaction_type

__all__ = [
    "CategoryClassifier",
    "CategoryRule",
    "CategoryRules",
    "Classification",
    "MappingStats",
    "MappingTier",
    "UnmappedAccount",
    "default_rules",
    "detect_payee_type",
    "map_transaction_type",
]
