#!/usr/bin/env python3
"""
Currency Conversion and Handling Utilities

Currency handling for the jobledger import engine.
All financial calculations use integer arithmetic to avoid floating-point errors.

Currency Systems:
- Accounting exports use dollar strings: "$1,234.56", "(45.00)", "-12"
- Internal calculations use cents: 100 cents = $1.00
- Duplicate keys use absolute two-decimal strings: "1234.56"

Key Principles:
- Never use floating-point arithmetic for currency calculations
- Parse with Decimal, store as integer cents
- Malformed amounts are errors, never silently zero
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

_AMOUNT_STRIP = re.compile(r"[\s$,]")


def cents_to_dollars_str(cents: int) -> str:
    """
    Convert cents to dollar string using pure integer arithmetic.

    Args:
        cents: Amount in cents

    Returns:
        Formatted dollar string

    Example:
        cents_to_dollars_str(4599) -> "45.99"
    """
    is_negative = cents < 0
    abs_cents = abs(int(cents))

    dollars = int(abs_cents // 100)
    remainder = int(abs_cents % 100)

    if is_negative:
        return f"-{dollars}.{remainder:02d}"
    else:
        return f"{dollars}.{remainder:02d}"


def parse_amount_to_cents(raw: str) -> int:
    """
    Parse an exported amount cell to signed integer cents.

    Accepts currency symbols, thousands separators, surrounding whitespace,
    a leading sign, and accounting-style parentheses for negatives.
    Fractions of a cent round half-up.

    Args:
        raw: Amount cell such as "$1,234.56", "(45.00)" or "-12"

    Returns:
        Signed amount in cents

    Raises:
        ValueError: If the cell is empty or not numeric

    Examples:
        parse_amount_to_cents("$1,234.56") -> 123456
        parse_amount_to_cents("(45.00)") -> -4500
        parse_amount_to_cents("12.345") -> 1235
    """
    if raw is None:
        raise ValueError("Amount is empty")

    clean = _AMOUNT_STRIP.sub("", str(raw))
    if not clean:
        raise ValueError("Amount is empty")

    negative = False
    if clean.startswith("(") and clean.endswith(")"):
        negative = True
        clean = clean[1:-1]

    if clean.startswith("-"):
        negative = not negative
        clean = clean[1:]
    elif clean.startswith("+"):
        clean = clean[1:]

    if not clean or not re.fullmatch(r"\d*\.?\d*", clean) or clean == ".":
        raise ValueError(f"Invalid amount: {raw!r}")

    try:
        cents = (Decimal(clean) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {raw!r}") from e

    return -int(cents) if negative else int(cents)


def format_cents(cents: int) -> str:
    """Format cents as dollar string with $ prefix."""
    return f"${cents_to_dollars_str(cents)}"
