#!/usr/bin/env python3
"""
Duplicate Reconciliation

Cross-checks duplicate detection: the duplicate rows in the upload should add
up to the persisted records they were matched to.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from ..core.money import Money
from .detector import DuplicateRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconciliationSummary:
    """Expected versus detected duplicate totals."""

    expected_total: Money
    duplicate_total: Money
    difference: Money
    within_tolerance: bool
    tolerance: Money

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "expected_total": self.expected_total.to_float(),
            "duplicate_total": self.duplicate_total.to_float(),
            "difference": self.difference.to_float(),
            "within_tolerance": self.within_tolerance,
            "tolerance": self.tolerance.to_float(),
        }


def reconcile(
    duplicates: Iterable[DuplicateRecord],
    persisted_by_id: Mapping[str, Any],
    excluded_category: str | None = None,
    tolerance: Money = Money.from_cents(1),
) -> ReconciliationSummary:
    """
    Compare duplicate row totals with their matched persisted records.

    duplicate_total sums the magnitude of every duplicate row, in-file and
    persisted. expected_total sums each matched persisted record once,
    skipping the excluded category and records that were already split.

    Args:
        duplicates: All duplicate records of one stream
        persisted_by_id: Persisted records of that stream by id
        excluded_category: Category value left out of expected_total
        tolerance: Largest difference still considered reconciled

    Returns:
        ReconciliationSummary
    """
    duplicate_cents = 0
    matched_ids: list[str] = []

    for duplicate in duplicates:
        duplicate_cents += abs(duplicate.row.amount.to_cents())
        record_id = duplicate.existing_record_id
        if record_id and record_id not in matched_ids:
            matched_ids.append(record_id)

    expected_cents = 0
    for record_id in matched_ids:
        record = persisted_by_id.get(record_id)
        if record is None:
            continue
        if excluded_category and getattr(record, "category", None) == excluded_category:
            continue
        if getattr(record, "is_split", False):
            continue
        expected_cents += abs(record.amount.to_cents())

    difference = abs(expected_cents - duplicate_cents)
    summary = ReconciliationSummary(
        expected_total=Money.from_cents(expected_cents),
        duplicate_total=Money.from_cents(duplicate_cents),
        difference=Money.from_cents(difference),
        within_tolerance=difference <= tolerance.to_cents(),
        tolerance=tolerance,
    )

    if not summary.within_tolerance:
        logger.warning(
            "Reconciliation off by %s (expected %s, duplicates %s)",
            summary.difference,
            summary.expected_total,
            summary.duplicate_total,
        )
    return summary
