#!/usr/bin/env python3
"""
Money Primitive Type

Immutable currency value wrapper that uses integer cents internally.
Prevents floating-point errors and provides type-safe currency operations.
"""

from dataclasses import dataclass

from .currency import cents_to_dollars_str, parse_amount_to_cents


@dataclass(frozen=True)
class Money:
    """
    Immutable money value in cents (USD).

    Supports both positive and negative amounts. Imported records always carry
    the magnitude; the sign only matters while reading the export.

    Examples:
        >>> bill = Money.from_cents(120000)
        >>> str(bill)
        '$1200.00'
        >>> bill.to_key_str()
        '1200.00'

        >>> refund = Money.from_export("(45.00)")
        >>> refund.to_cents()
        -4500
        >>> refund.abs()
        Money(cents=4500)
    """

    cents: int

    @classmethod
    def from_cents(cls, cents: int) -> "Money":
        """Create Money from cents."""
        return cls(cents=cents)

    @classmethod
    def from_export(cls, raw: str) -> "Money":
        """
        Parse an accounting-export amount cell.

        Raises:
            ValueError: If the cell is empty or not numeric
        """
        return cls(cents=parse_amount_to_cents(raw))

    @classmethod
    def zero(cls) -> "Money":
        """Zero dollars."""
        return cls(cents=0)

    def to_cents(self) -> int:
        """Get value in cents."""
        return self.cents

    def to_dollars(self) -> str:
        """Get formatted dollar string."""
        return str(self)

    def to_key_str(self) -> str:
        """Absolute value with exactly two decimals, as used in duplicate keys."""
        return cents_to_dollars_str(abs(self.cents))

    def to_float(self) -> float:
        """Dollar value as float, for reports only."""
        return self.cents / 100

    def abs(self) -> "Money":
        """
        Return absolute value of Money.

        Returns:
            New Money object with absolute value
        """
        return Money(cents=abs(self.cents))

    def __add__(self, other: "Money") -> "Money":
        """Add two Money objects."""
        return Money(cents=self.cents + other.cents)

    def __sub__(self, other: "Money") -> "Money":
        """Subtract two Money objects."""
        return Money(cents=self.cents - other.cents)

    def __eq__(self, other: object) -> bool:
        """Check equality."""
        if not isinstance(other, Money):
            return NotImplemented
        return self.cents == other.cents

    def __hash__(self) -> int:
        return hash(self.cents)

    def __lt__(self, other: "Money") -> bool:
        """Less than comparison."""
        return self.cents < other.cents

    def __le__(self, other: "Money") -> bool:
        """Less than or equal comparison."""
        return self.cents <= other.cents

    def __gt__(self, other: "Money") -> bool:
        """Greater than comparison."""
        return self.cents > other.cents

    def __ge__(self, other: "Money") -> bool:
        """Greater than or equal comparison."""
        return self.cents >= other.cents

    def __str__(self) -> str:
        """Format as dollar string."""
        return f"${cents_to_dollars_str(self.cents)}"

    def __repr__(self) -> str:
        """Repr format."""
        return f"Money(cents={self.cents})"
