#!/usr/bin/env python3
"""
Duplicate Detection

Finds duplicates inside an uploaded batch and against records that were
already persisted.

In-file detection keeps the first occurrence of each composite key. Persisted
detection looks rows up in an index built once per run from the records in
the batch's date range; expenses try up to four key strategies because older
records may have been stored with an empty name or under the payee's
canonical name.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterable, TypeVar

from ..core.dates import FinancialDate
from ..core.money import Money
from .keys import expense_key, revenue_key

logger = logging.getLogger(__name__)

R = TypeVar("R")

_DESCRIPTION_NAME = re.compile(r"^(?:bill|check|expense|credit_card|cash)\s*-\s*(.+?)(?:\s*\(|$)", re.IGNORECASE)
_EMPTY_DESCRIPTION = re.compile(r"^\w+\s*-\s*$")
_PARENTHETICAL = re.compile(r"\s*\([^)]*\)")
_AUTO_GENERATED_NAME = re.compile(r"no vendor|no payee|unassigned|unknown", re.IGNORECASE)
_REVENUE_DESCRIPTION = re.compile(r"^Invoice from\s+(.+?)(?:\s*\(|$)", re.IGNORECASE)


@dataclass
class DuplicateRecord:
    """
    A row identified as already present.

    existing_record_id is set only for persisted duplicates.
    """

    row: Any
    matched_key: str
    reason: str
    existing_record_id: str | None = None
    strategy: str | None = None
    note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "row": self.row.to_dict() if hasattr(self.row, "to_dict") else self.row,
            "matched_key": self.matched_key,
            "reason": self.reason,
            "existing_record_id": self.existing_record_id,
        }
        if self.strategy:
            result["strategy"] = self.strategy
        if self.note:
            result["note"] = self.note
        return result


@dataclass
class InFileScan(Generic[R]):
    """Result of scanning one stream for in-file duplicates."""

    unique: list[R] = field(default_factory=list)
    duplicates: list[DuplicateRecord] = field(default_factory=list)


def detect_in_file_duplicates(
    rows: Iterable[R],
    key_fn: Callable[[R], str],
    reason_fn: Callable[[R], str],
) -> InFileScan[R]:
    """
    Split rows into first occurrences and later repeats, in file order.

    Args:
        rows: Validated rows of one stream (expenses or revenues)
        key_fn: Composite key for a row
        reason_fn: Reason text built from the first occurrence

    Returns:
        InFileScan with unique rows and DuplicateRecords for repeats
    """
    scan: InFileScan[R] = InFileScan()
    seen: dict[str, R] = {}

    for row in rows:
        key = key_fn(row)
        first = seen.get(key)
        if first is None:
            seen[key] = row
            scan.unique.append(row)
        else:
            scan.duplicates.append(DuplicateRecord(row=row, matched_key=key, reason=reason_fn(first)))

    if scan.duplicates:
        logger.info("Found %d in-file duplicates", len(scan.duplicates))
    return scan


@dataclass(frozen=True)
class PersistedExpense:
    """An expense already in the record store."""

    id: str
    date: FinancialDate
    amount: Money
    name: str | None = None
    description: str = ""
    payee_name: str | None = None
    category: str | None = None
    is_split: bool = False

    def effective_name(self) -> str:
        """Stored name, or the name embedded in the generated description."""
        if self.name:
            return self.name
        return extract_expense_name(self.description) or self.payee_name or ""


@dataclass(frozen=True)
class PersistedRevenue:
    """A revenue already in the record store."""

    id: str
    date: FinancialDate
    amount: Money
    invoice_number: str | None = None
    name: str | None = None
    description: str = ""
    client_name: str | None = None
    category: str | None = None

    def effective_name(self) -> str:
        """Stored name, or the name embedded in the generated description."""
        if self.name:
            return self.name
        match = _REVENUE_DESCRIPTION.match((self.description or "").strip())
        if match:
            return match.group(1).strip()
        return self.client_name or ""


@dataclass(frozen=True)
class PersistedMatch:
    """A persisted record found for an uploaded row."""

    record: Any
    key: str
    strategy: str


def extract_expense_name(description: str | None) -> str:
    """Pull the name out of a generated "<type> - <name> (...)" description."""
    match = _DESCRIPTION_NAME.match((description or "").strip())
    if not match:
        return ""
    return _PARENTHETICAL.sub("", match.group(1)).strip()


def _has_empty_name(record: PersistedExpense) -> bool:
    description = (record.description or "").strip()
    if not description or _EMPTY_DESCRIPTION.match(description):
        return not record.name
    return bool(_AUTO_GENERATED_NAME.search(record.effective_name()))


class PersistedIndex:
    """Composite-key lookup over persisted records. The first record wins a key."""

    def __init__(self) -> None:
        self.keys: dict[str, Any] = {}
        self.by_id: dict[str, Any] = {}

    def _add(self, key: str, record: Any) -> None:
        self.keys.setdefault(key, record)

    @classmethod
    def for_expenses(cls, records: Iterable[PersistedExpense]) -> "PersistedIndex":
        """Index expenses under their primary, payee-name, and empty-name keys."""
        index = cls()
        for record in records:
            index.by_id[record.id] = record
            primary = expense_key(record.date, record.amount, record.effective_name())
            index._add(primary, record)

            if record.payee_name:
                payee_key = expense_key(record.date, record.amount, record.payee_name)
                if payee_key != primary:
                    index._add(payee_key, record)

            if _has_empty_name(record):
                index._add(expense_key(record.date, record.amount, ""), record)

        logger.debug("Indexed %d persisted expenses under %d keys", len(index.by_id), len(index.keys))
        return index

    @classmethod
    def for_revenues(cls, records: Iterable[PersistedRevenue]) -> "PersistedIndex":
        """Index revenues under their single composite key."""
        index = cls()
        for record in records:
            index.by_id[record.id] = record
            index._add(revenue_key(record.amount, record.date, record.invoice_number, record.effective_name()), record)
        return index

    def get(self, key: str) -> Any | None:
        """Record stored under a key."""
        return self.keys.get(key)

    def __len__(self) -> int:
        return len(self.by_id)


def find_persisted_expense(
    index: PersistedIndex,
    date: FinancialDate,
    amount: Money,
    name: str | None,
    matched_payee_name: str | None = None,
) -> PersistedMatch | None:
    """
    Look an expense up against persisted records.

    Strategies, first hit wins:
    1. primary: key from the uploaded name
    2. empty_name: the empty-name key, when the uploaded name is empty
    3. payee_name: key from the matched payee's canonical name, when the
       uploaded name is empty
    4. payee_equal: key from the matched payee's canonical name, when it equals
       the uploaded name ignoring case
    """
    uploaded = (name or "").strip()
    attempts: list[tuple[str, str]] = []

    if uploaded:
        attempts.append(("primary", expense_key(date, amount, uploaded)))
        if matched_payee_name and matched_payee_name.strip().lower() == uploaded.lower():
            # Yields the primary key again while the name component is case-insensitive
            attempts.append(("payee_equal", expense_key(date, amount, matched_payee_name)))
    else:
        # The primary key of an empty name is the empty-name key
        attempts.append(("empty_name", expense_key(date, amount, "")))
        if matched_payee_name:
            attempts.append(("payee_name", expense_key(date, amount, matched_payee_name)))

    for strategy, key in attempts:
        record = index.get(key)
        if record is not None:
            return PersistedMatch(record=record, key=key, strategy=strategy)
    return None


def find_persisted_revenue(
    index: PersistedIndex,
    amount: Money,
    date: FinancialDate,
    invoice_number: str | None,
    name: str | None,
) -> PersistedMatch | None:
    """Look a revenue up against persisted records."""
    key = revenue_key(amount, date, invoice_number, name)
    record = index.get(key)
    if record is None:
        return None
    return PersistedMatch(record=record, key=key, strategy="primary")
