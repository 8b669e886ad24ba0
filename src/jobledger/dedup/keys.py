#!/usr/bin/env python3
"""
Composite Duplicate Keys

Deterministic fingerprints for expense and revenue transactions.

The name component uses business-name normalization, so "ABC Construction"
and "ABC Construction LLC" produce the same key. An empty name is a valid
component. A name made only of suffix words ("Const", "Co") keys on its
lowercased text so it never collides with the empty-name key.
"""

from ..core.dates import FinancialDate
from ..core.money import Money
from ..matching.similarity import normalize_business_name


def key_name(name: str | None) -> str:
    """Normalized name component of a composite key."""
    raw = " ".join((name or "").lower().split())
    return normalize_business_name(raw) or raw


def expense_key(date: FinancialDate, amount: Money, name: str | None) -> str:
    """
    Expense fingerprint: date|amount|name.

    Example:
        expense_key(FinancialDate.from_string("2025-01-10"), Money.from_cents(-120000), "ABC Construction LLC")
        -> "2025-01-10|1200.00|abc"
    """
    return f"{date.to_iso_string()}|{amount.to_key_str()}|{key_name(name)}"


def revenue_key(amount: Money, date: FinancialDate, invoice_number: str | None, name: str | None) -> str:
    """Revenue fingerprint: rev|amount|date|invoice|name."""
    invoice = (invoice_number or "").strip().lower()
    return f"rev|{amount.to_key_str()}|{date.to_iso_string()}|{invoice}|{key_name(name)}"
