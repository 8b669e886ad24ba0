#!/usr/bin/env python3
"""
FinancialDate Primitive Type

Immutable calendar date wrapper with consistent formatting.
Dates from accounting exports carry no time component, so parsing never goes
through a timezone-aware timestamp that could shift the day.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta

_SLASH_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_DASH_DATE = re.compile(r"^(\d{2})-(\d{2})-(\d{4})$")

# Last-resort formats seen in hand-edited exports
_FALLBACK_FORMATS = ("%m/%d/%y", "%Y/%m/%d", "%b %d, %Y", "%B %d, %Y", "%d %b %Y")


@dataclass(frozen=True)
class FinancialDate:
    """Immutable financial date wrapper with consistent formatting."""

    date: date

    @classmethod
    def from_string(cls, date_str: str, format: str = "%Y-%m-%d") -> "FinancialDate":
        """
        Parse from string in specified format.

        Args:
            date_str: Date string to parse
            format: Date format (default: ISO format "%Y-%m-%d")

        Returns:
            FinancialDate object
        """
        return cls(date=datetime.strptime(date_str, format).date())

    @classmethod
    def from_csv_string(cls, date_str: str) -> "FinancialDate":
        """
        Parse a date cell from an accounting export.

        Supported formats:
        - M/D/YYYY (QuickBooks, e.g. "1/15/2026")
        - YYYY-MM-DD
        - NN-NN-YYYY, read as day-month when the first part exceeds 12,
          otherwise as month-day

        Args:
            date_str: Raw date cell

        Returns:
            FinancialDate object

        Raises:
            ValueError: If the cell is empty or matches no supported format
        """
        trimmed = (date_str or "").strip()
        if not trimmed:
            raise ValueError("Date is empty")

        match = _SLASH_DATE.match(trimmed)
        if match:
            month, day, year = (int(part) for part in match.groups())
            return cls(date=date(year, month, day))

        match = _ISO_DATE.match(trimmed)
        if match:
            year, month, day = (int(part) for part in match.groups())
            return cls(date=date(year, month, day))

        match = _DASH_DATE.match(trimmed)
        if match:
            first, second, year = (int(part) for part in match.groups())
            if first > 12:
                return cls(date=date(year, second, first))
            return cls(date=date(year, first, second))

        for fmt in _FALLBACK_FORMATS:
            try:
                return cls.from_string(trimmed, fmt)
            except ValueError:
                continue

        raise ValueError(f"Unrecognized date: {date_str!r}")

    def shift(self, days: int) -> "FinancialDate":
        """Return the date moved by a number of days (negative moves back)."""
        return FinancialDate(date=self.date + timedelta(days=days))

    def to_iso_string(self) -> str:
        """Format as YYYY-MM-DD."""
        return self.date.isoformat()

    def __str__(self) -> str:
        """String representation."""
        return self.to_iso_string()

    def __eq__(self, other: object) -> bool:
        """Check equality."""
        if not isinstance(other, FinancialDate):
            return NotImplemented
        return self.date == other.date

    def __hash__(self) -> int:
        return hash(self.date)

    def __lt__(self, other: "FinancialDate") -> bool:
        """Less than comparison."""
        return self.date < other.date

    def __le__(self, other: "FinancialDate") -> bool:
        """Less than or equal comparison."""
        return self.date <= other.date

    def __gt__(self, other: "FinancialDate") -> bool:
        """Greater than comparison."""
        return self.date > other.date

    def __ge__(self, other: "FinancialDate") -> bool:
        """Greater than or equal comparison."""
        return self.date >= other.date

    def __repr__(self) -> str:
        """Repr format."""
        return f"FinancialDate(date={self.date!r})"
