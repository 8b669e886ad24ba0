#!/usr/bin/env python3
"""
Unified Name Scoring System

A single parameterized confidence function for comparing vendor and client
names. Each ScoringProfile weights the three similarity measures; the final
score is the best profile's weighted sum on a 0-100 scale.
"""

from dataclasses import dataclass

from .similarity import (
    jaro_winkler_similarity,
    levenshtein_distance,
    normalize_business_name,
    token_similarity,
)


@dataclass(frozen=True)
class ScoringProfile:
    """Weights for the Jaro-Winkler, Levenshtein, and token measures."""

    jaro_winkler: float
    levenshtein: float
    token: float


# Balanced blend, plus a token-heavy blend that rewards reordered words
DEFAULT_PROFILES: tuple[ScoringProfile, ...] = (
    ScoringProfile(jaro_winkler=0.4, levenshtein=0.3, token=0.3),
    ScoringProfile(jaro_winkler=0.4, levenshtein=0.0, token=0.6),
)


def levenshtein_ratio(a: str, b: str) -> float:
    """Levenshtein distance as a similarity in [0, 1]."""
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 0.0
    return (max_len - levenshtein_distance(a, b)) / max_len


def score_name(
    query: str,
    candidate_name: str,
    profiles: tuple[ScoringProfile, ...] = DEFAULT_PROFILES,
) -> float:
    """
    Blended confidence (0-100) that two business names refer to the same entity.

    Names that normalize to the same non-empty string score 100; a name that
    normalizes to nothing scores 0.

    Args:
        query: Name as it appears in the export
        candidate_name: Registry name to compare against
        profiles: Weight profiles; the best one wins

    Returns:
        Confidence rounded to two decimals
    """
    norm_query = normalize_business_name(query)
    norm_candidate = normalize_business_name(candidate_name)

    if not norm_query or not norm_candidate:
        return 0.0
    if norm_query == norm_candidate:
        return 100.0

    jw = jaro_winkler_similarity(norm_query, norm_candidate) * 100
    lev = levenshtein_ratio(norm_query, norm_candidate) * 100
    tok = token_similarity(norm_query, norm_candidate) * 100

    best = max(
        profile.jaro_winkler * jw + profile.levenshtein * lev + profile.token * tok for profile in profiles
    )
    return round(max(0.0, min(100.0, best)), 2)


class ConfidenceThresholds:
    """Decision thresholds applied to 0-100 confidence scores."""

    def __init__(self, auto_accept: float = 75.0, review: float = 40.0):
        if review > auto_accept:
            raise ValueError("review threshold must not exceed auto-accept threshold")
        self.auto_accept = auto_accept
        self.review = review

    def is_auto_accept(self, confidence: float) -> bool:
        """Confidence high enough to accept without review."""
        return confidence >= self.auto_accept

    def is_reviewable(self, confidence: float) -> bool:
        """Confidence high enough to surface as a suggestion."""
        return confidence >= self.review

    def bucket(self, confidence: float) -> str:
        """Classify a confidence score as 'auto', 'review', or 'discard'."""
        if self.is_auto_accept(confidence):
            return "auto"
        if self.is_reviewable(confidence):
            return "review"
        return "discard"

    def __repr__(self) -> str:
        return f"ConfidenceThresholds(auto_accept={self.auto_accept}, review={self.review})"
