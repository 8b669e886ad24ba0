"""
Line-Item Allocation Package

Suggests estimate, quote, or change-order line items for imported expenses.
"""

from .matcher import AllocationMatcher, build_allocation_candidates, is_compatible_category
from .models import (
    AllocationExpense,
    AllocationLineItem,
    AllocationSuggestion,
    BulkAllocationSuggestion,
    ChangeOrder,
    ChangeOrderStatus,
    Estimate,
    LineItem,
    LineItemSource,
    Quote,
    QuoteStatus,
)

__all__ = [
    "AllocationExpense",
    "AllocationLineItem",
    "AllocationMatcher",
    "AllocationSuggestion",
    "BulkAllocationSuggestion",
    "ChangeOrder",
    "ChangeOrderStatus",
    "Estimate",
    "LineItem",
    "LineItemSource",
    "Quote",
    "QuoteStatus",
    "build_allocation_candidates",
    "is_compatible_category",
]
