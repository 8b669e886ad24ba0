"""
Entity Matching Package

String similarity primitives, the blended name scorer, and resolvers that map
export text onto canonical payees, clients, and projects.
"""

from .resolver import ClientResolver, NameMatchResult, PayeeResolver, ProjectResolver, match_name
from .scorer import DEFAULT_PROFILES, ConfidenceThresholds, ScoringProfile, score_name
from .similarity import (
    jaro_winkler_similarity,
    levenshtein_distance,
    normalize_alphanumeric,
    normalize_business_name,
    token_similarity,
)

__all__ = [
    "DEFAULT_PROFILES",
    "ClientResolver",
    "ConfidenceThresholds",
    "NameMatchResult",
    "PayeeResolver",
    "ProjectResolver",
    "ScoringProfile",
    "jaro_winkler_similarity",
    "levenshtein_distance",
    "match_name",
    "normalize_alphanumeric",
    "normalize_business_name",
    "score_name",
    "token_similarity",
]
