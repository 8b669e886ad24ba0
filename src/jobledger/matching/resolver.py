#!/usr/bin/env python3
"""
Entity Resolution

Maps free-text names from an accounting export onto canonical payees,
clients, and projects.

Payees and clients share one ranked name matcher. Projects go through a
tiered cascade (exact number, exact name, aliases, fuzzy number, regex)
where the first tier to hit wins.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable

from ..core.models import AliasMatchMode, CanonicalEntity, EntityKind, MatchCandidate, MatchType, ProjectAlias
from .scorer import DEFAULT_PROFILES, ConfidenceThresholds, ScoringProfile, score_name
from .similarity import jaro_winkler_similarity, normalize_alphanumeric

logger = logging.getLogger(__name__)

PROJECT_NUMBER_PATTERN = re.compile(r"^(\d{2,4}-\d{2,4})")


@dataclass
class NameMatchResult:
    """
    Ranked candidates for one name.

    candidates holds everything at or above the review threshold, best first.
    accepted is the top candidate when it clears the auto-accept threshold.
    """

    query: str
    candidates: list[MatchCandidate] = field(default_factory=list)
    accepted: MatchCandidate | None = None

    @property
    def needs_review(self) -> bool:
        """Candidates exist but none was accepted."""
        return self.accepted is None and bool(self.candidates)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "query": self.query,
            "accepted": self.accepted.to_dict() if self.accepted else None,
            "candidates": [c.to_dict() for c in self.candidates],
        }


def _candidate_sort_key(candidate: MatchCandidate) -> tuple:
    exact_first = 0 if candidate.match_type == MatchType.EXACT else 1
    return (-candidate.confidence, exact_first, candidate.display_name.lower(), candidate.entity_id)


def match_name(
    query: str,
    entities: Iterable[CanonicalEntity],
    thresholds: ConfidenceThresholds,
    profiles: tuple[ScoringProfile, ...] = DEFAULT_PROFILES,
) -> NameMatchResult:
    """
    Score a name against registry entities.

    A case-insensitive exact hit on either name field scores 100 as an exact
    match. Everything else is scored with the blended name scorer against both
    name fields, keeping the better one.

    Args:
        query: Name from the export
        entities: Registry entities to compare against
        thresholds: Review and auto-accept thresholds
        profiles: Scoring weight profiles

    Returns:
        NameMatchResult with candidates ordered by confidence, then name, then id
    """
    result = NameMatchResult(query=query)
    trimmed = (query or "").strip()
    if not trimmed:
        return result

    lowered = trimmed.lower()
    for entity in entities:
        names = entity.names()
        if any(name.strip().lower() == lowered for name in names):
            candidate = MatchCandidate(
                entity_id=entity.id,
                confidence=100.0,
                match_type=MatchType.EXACT,
                display_name=entity.display_name,
            )
        else:
            confidence = max((score_name(trimmed, name, profiles) for name in names), default=0.0)
            if not thresholds.is_reviewable(confidence):
                continue
            candidate = MatchCandidate(
                entity_id=entity.id,
                confidence=confidence,
                match_type=MatchType.FUZZY,
                display_name=entity.display_name,
            )
        result.candidates.append(candidate)

    result.candidates.sort(key=_candidate_sort_key)

    if result.candidates and thresholds.is_auto_accept(result.candidates[0].confidence):
        result.accepted = result.candidates[0]

    return result


class NameResolver:
    """Resolves names against one kind of registry entity."""

    kind = EntityKind.PAYEE

    def __init__(
        self,
        entities: Iterable[CanonicalEntity],
        thresholds: ConfidenceThresholds | None = None,
        profiles: tuple[ScoringProfile, ...] = DEFAULT_PROFILES,
    ):
        # Stable order makes tie-breaks reproducible across runs
        self.entities = sorted(entities, key=lambda e: e.id)
        self.thresholds = thresholds or ConfidenceThresholds()
        self.profiles = profiles
        self._by_id = {entity.id: entity for entity in self.entities}

    def resolve(self, name: str) -> NameMatchResult:
        """Rank registry entities for a name."""
        result = match_name(name, self.entities, self.thresholds, self.profiles)
        logger.debug(
            "Resolved %s %r: %d candidates, accepted=%s",
            self.kind.value,
            name,
            len(result.candidates),
            result.accepted.entity_id if result.accepted else None,
        )
        return result

    def get(self, entity_id: str) -> CanonicalEntity | None:
        """Look up an entity by id."""
        return self._by_id.get(entity_id)

    def register(self, entity: CanonicalEntity) -> None:
        """Add an entity created during the current run."""
        self.entities.append(entity)
        self.entities.sort(key=lambda e: e.id)
        self._by_id[entity.id] = entity


class PayeeResolver(NameResolver):
    """Payee (vendor) resolution."""

    kind = EntityKind.PAYEE


class ClientResolver(NameResolver):
    """Client resolution for revenue rows."""

    kind = EntityKind.CLIENT


class ProjectResolver:
    """
    Tiered project resolution.

    Tiers, first hit wins:
    1. exact project number (100)
    2. exact project name (100)
    3. active alias, exact (95)
    4. active alias, starts-with on the alphanumeric token (90)
    5. active alias, contains (85)
    6. Jaro-Winkler on project number at or above the fuzzy threshold
    7. leading "NNN-NNN" pattern, exact on project number (80)
    """

    def __init__(
        self,
        projects: Iterable[CanonicalEntity],
        aliases: Iterable[ProjectAlias] = (),
        gas_code: str = "001-GAS",
        ga_code: str = "002-GA",
        fuzzy_threshold: float = 85.0,
    ):
        self.projects = sorted(projects, key=lambda p: p.id)
        self.aliases = sorted(
            (alias for alias in aliases if alias.active),
            key=lambda a: (a.project_id, a.alias_text),
        )
        self.gas_code = gas_code
        self.ga_code = ga_code
        self.fuzzy_threshold = fuzzy_threshold
        self._by_id = {project.id: project for project in self.projects}

    def get(self, project_id: str) -> CanonicalEntity | None:
        """Look up a project by id."""
        return self._by_id.get(project_id)

    def remap(self, token: str) -> str:
        """Apply the fixed overhead-project shortcuts (fuel and G&A)."""
        trimmed = (token or "").strip()
        if normalize_alphanumeric(trimmed).startswith("fuel"):
            return self.gas_code
        if trimmed.lower() == "ga":
            return self.ga_code
        return trimmed

    def resolve(self, token: str) -> MatchCandidate | None:
        """
        Resolve a project token.

        Args:
            token: Project/work-order cell from the export

        Returns:
            The winning candidate, or None when no tier hits
        """
        if not token or not token.strip():
            return None

        original = token.strip()
        remapped = self.remap(original)
        lowered = remapped.lower()

        for project in self.projects:
            if project.number and project.number.strip().lower() == lowered:
                return self._candidate(project, 100.0, MatchType.EXACT, "exact_number")

        for project in self.projects:
            if project.display_name and project.display_name.strip().lower() == lowered:
                return self._candidate(project, 100.0, MatchType.EXACT, "exact_name")

        alias_hit = self._match_alias(remapped)
        if alias_hit is not None:
            return alias_hit

        best_project = None
        best_similarity = 0.0
        for project in self.projects:
            if not project.number:
                continue
            similarity = jaro_winkler_similarity(lowered, project.number.strip().lower()) * 100
            if similarity >= self.fuzzy_threshold and similarity > best_similarity:
                best_project = project
                best_similarity = similarity
        if best_project is not None:
            confidence = min(100.0, float(round(best_similarity)))
            return self._candidate(best_project, confidence, MatchType.FUZZY, "fuzzy_number")

        number_match = PROJECT_NUMBER_PATTERN.match(original)
        if number_match:
            prefix = number_match.group(1).lower()
            for project in self.projects:
                if project.number and project.number.strip().lower() == prefix:
                    return self._candidate(project, 80.0, MatchType.REGEX, "regex_number")

        return None

    def suggest(self, token: str, limit: int = 3, threshold: float = 50.0) -> list[MatchCandidate]:
        """Closest project numbers for a token that did not resolve."""
        lowered = self.remap(token).lower()
        scored = []
        for project in self.projects:
            if not project.number:
                continue
            similarity = round(jaro_winkler_similarity(lowered, project.number.strip().lower()) * 100, 2)
            if similarity >= threshold:
                scored.append(self._candidate(project, min(100.0, similarity), MatchType.FUZZY, "suggestion"))
        scored.sort(key=_candidate_sort_key)
        return scored[:limit]

    def _match_alias(self, token: str) -> MatchCandidate | None:
        stripped = normalize_alphanumeric(token)
        lowered = token.strip().lower()

        tiers = (
            (AliasMatchMode.EXACT, 95.0),
            (AliasMatchMode.STARTS_WITH, 90.0),
            (AliasMatchMode.CONTAINS, 85.0),
        )
        for mode, confidence in tiers:
            for alias in self.aliases:
                if alias.match_mode != mode:
                    continue
                alias_text = normalize_alphanumeric(alias.alias_text)
                if not alias_text:
                    continue
                if mode == AliasMatchMode.EXACT:
                    hit = alias.alias_text.strip().lower() == lowered or alias_text == stripped
                elif mode == AliasMatchMode.STARTS_WITH:
                    hit = stripped.startswith(alias_text)
                else:
                    hit = alias_text in stripped
                if not hit:
                    continue
                project = self._by_id.get(alias.project_id)
                if project is None:
                    logger.warning("Alias %r points at unknown project %s", alias.alias_text, alias.project_id)
                    continue
                return self._candidate(project, confidence, MatchType.ALIAS, f"alias_{mode.value}")
        return None

    @staticmethod
    def _candidate(project: CanonicalEntity, confidence: float, match_type: MatchType, detail: str) -> MatchCandidate:
        return MatchCandidate(
            entity_id=project.id,
            confidence=confidence,
            match_type=match_type,
            display_name=project.number or project.display_name,
            detail=detail,
        )
