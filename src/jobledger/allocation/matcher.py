#!/usr/bin/env python3
"""
Line-Item Allocation Matcher

Suggests which estimate, quote, or change-order line item an expense should be
allocated against.

Only line items in the expense's project with a compatible category are
considered. The winner is the item closest in amount; ties go to an item whose
payee is the expense's payee, then quote before change order before estimate,
then the lowest id. Confidence depends only on how close the amounts are, so it
never rises as the difference grows.
"""

import logging
from typing import Iterable

from ..core.models import ExpenseCategory
from ..matching.similarity import normalize_business_name
from .models import (
    AllocationExpense,
    AllocationLineItem,
    AllocationSuggestion,
    BulkAllocationSuggestion,
    ChangeOrder,
    ChangeOrderStatus,
    Estimate,
    LineItemSource,
    Quote,
    QuoteStatus,
)

logger = logging.getLogger(__name__)

# Finer expense categories roll up to the category used on line items
LINE_ITEM_CATEGORY = {
    ExpenseCategory.TOOLS: ExpenseCategory.EQUIPMENT,
    ExpenseCategory.VEHICLE_MAINTENANCE: ExpenseCategory.EQUIPMENT,
    ExpenseCategory.VEHICLE_EXPENSES: ExpenseCategory.EQUIPMENT,
    ExpenseCategory.GAS: ExpenseCategory.EQUIPMENT,
    ExpenseCategory.SOFTWARE: ExpenseCategory.MANAGEMENT,
    ExpenseCategory.MEALS: ExpenseCategory.MANAGEMENT,
    ExpenseCategory.OFFICE_EXPENSES: ExpenseCategory.MANAGEMENT,
}

SOURCE_PRECEDENCE = {
    LineItemSource.QUOTE: 0,
    LineItemSource.CHANGE_ORDER: 1,
    LineItemSource.ESTIMATE: 2,
}

BASE_CONFIDENCE = 50.0
PROXIMITY_WEIGHT = 50.0


def build_allocation_candidates(
    estimates: Iterable[Estimate],
    quotes: Iterable[Quote],
    change_orders: Iterable[ChangeOrder],
) -> list[AllocationLineItem]:
    """
    Flatten the line items an expense may be allocated to.

    Includes current-version estimates that have no accepted quote, every
    accepted quote, and every approved change order.
    """
    quotes = list(quotes)
    quoted_estimates = {
        quote.estimate_id for quote in quotes if quote.status == QuoteStatus.ACCEPTED and quote.estimate_id
    }

    candidates: list[AllocationLineItem] = []

    for estimate in estimates:
        if not estimate.is_current_version or estimate.id in quoted_estimates:
            continue
        for item in estimate.line_items:
            candidates.append(
                AllocationLineItem(
                    id=item.id,
                    source=LineItemSource.ESTIMATE,
                    source_id=estimate.id,
                    project_id=estimate.project_id,
                    category=item.category,
                    description=item.description,
                    total=item.total,
                )
            )

    for quote in quotes:
        if quote.status != QuoteStatus.ACCEPTED:
            continue
        for item in quote.line_items:
            candidates.append(
                AllocationLineItem(
                    id=item.id,
                    source=LineItemSource.QUOTE,
                    source_id=quote.id,
                    project_id=quote.project_id,
                    category=item.category,
                    description=item.description,
                    total=item.total,
                    payee_name=quote.payee_name,
                )
            )

    for change_order in change_orders:
        if change_order.status != ChangeOrderStatus.APPROVED:
            continue
        for item in change_order.line_items:
            candidates.append(
                AllocationLineItem(
                    id=item.id,
                    source=LineItemSource.CHANGE_ORDER,
                    source_id=change_order.id,
                    project_id=change_order.project_id,
                    category=item.category,
                    description=item.description,
                    total=item.total,
                    payee_name=change_order.payee_name,
                )
            )

    return candidates


def is_compatible_category(expense_category: ExpenseCategory, item_category: ExpenseCategory) -> bool:
    """True when a line item's category can absorb an expense's category."""
    return item_category in (expense_category, LINE_ITEM_CATEGORY.get(expense_category, expense_category))


def proximity_confidence(expense_cents: int, diff_cents: int) -> float:
    """Confidence from amount proximity alone; 100 for an exact amount."""
    denominator = max(abs(expense_cents), 1)
    closeness = max(0.0, 1.0 - diff_cents / denominator)
    return round(BASE_CONFIDENCE + PROXIMITY_WEIGHT * closeness, 2)


class AllocationMatcher:
    """Scores allocation targets for expenses."""

    def suggest(self, expense: AllocationExpense, candidates: Iterable[AllocationLineItem]) -> AllocationSuggestion:
        """
        Pick the best line item for one expense.

        Args:
            expense: Expense to allocate
            candidates: Line items from build_allocation_candidates

        Returns:
            AllocationSuggestion; confidence is 0 when no eligible item exists
        """
        if not expense.project_id:
            return AllocationSuggestion(expense.ref, None, 0.0, reason="Expense has no project")

        eligible = [
            item
            for item in candidates
            if item.project_id == expense.project_id and is_compatible_category(expense.category, item.category)
        ]
        if not eligible:
            return AllocationSuggestion(expense.ref, None, 0.0, reason="No line item in project with matching category")

        expense_cents = expense.amount.abs().to_cents()
        payee = normalize_business_name(expense.payee_name or "")

        def rank(item: AllocationLineItem) -> tuple:
            diff = abs(expense_cents - item.total.abs().to_cents())
            payee_match = bool(payee) and normalize_business_name(item.payee_name or "") == payee
            return (diff, not payee_match, SOURCE_PRECEDENCE[item.source], item.id)

        best = min(eligible, key=rank)
        diff_cents, no_payee_match, _, _ = rank(best)
        confidence = proximity_confidence(expense_cents, diff_cents)

        reason = f"{best.source.value} line item, {best.category.value}, off by ${diff_cents / 100:.2f}"
        if not no_payee_match:
            reason += ", same payee"

        logger.debug("Allocation for %s: %s (%.2f)", expense.ref, best.id, confidence)
        return AllocationSuggestion(expense.ref, best.id, confidence, source=best.source, reason=reason)

    def suggest_bulk(
        self,
        expenses: Iterable[AllocationExpense],
        candidates: Iterable[AllocationLineItem],
        auto_accept_floor: float = 75.0,
    ) -> list[BulkAllocationSuggestion]:
        """
        Suggest allocations for many expenses at once.

        auto_accept_floor only decides which rows start out pre-selected.
        """
        candidates = list(candidates)
        results = []
        for expense in expenses:
            suggestion = self.suggest(expense, candidates)
            preselected = suggestion.line_item_id is not None and suggestion.confidence >= auto_accept_floor
            results.append(BulkAllocationSuggestion(suggestion=suggestion, preselected=preselected))
        return results
