#!/usr/bin/env python3
"""
RecordStore Protocol - Interface to the persisted record store.

The import pipeline reads canonical registries and a date range of persisted
records in bulk, inserts auto-created payees one at a time, and writes its
records in a single batch. Every call is awaited; implementations raise
StoreError on failure.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol

from ..allocation.models import ChangeOrder, Estimate, Quote
from ..classification.rules import CategoryRule
from ..core.dates import FinancialDate
from ..core.models import CanonicalEntity, PayeeType, ProjectAlias
from ..dedup.detector import PersistedExpense, PersistedRevenue


class StoreError(Exception):
    """Raised when the record store cannot be read or written."""

    pass


@dataclass
class RegistrySnapshot:
    """Canonical data loaded once per import run."""

    payees: list[CanonicalEntity] = field(default_factory=list)
    clients: list[CanonicalEntity] = field(default_factory=list)
    projects: list[CanonicalEntity] = field(default_factory=list)
    aliases: list[ProjectAlias] = field(default_factory=list)
    category_rules: list[CategoryRule] = field(default_factory=list)
    estimates: list[Estimate] = field(default_factory=list)
    quotes: list[Quote] = field(default_factory=list)
    change_orders: list[ChangeOrder] = field(default_factory=list)


@dataclass
class PersistedRange:
    """Persisted expenses and revenues within a date range."""

    expenses: list[PersistedExpense] = field(default_factory=list)
    revenues: list[PersistedRevenue] = field(default_factory=list)


class RecordStore(Protocol):
    """
    Protocol for the persisted record store.

    Implementations must return active aliases and category rules only, and
    persisted records ordered by date then id.
    """

    async def load_registry(self) -> RegistrySnapshot:
        """
        Fetch all payees, clients, projects, active aliases, active category
        rules, and allocation documents.

        Raises:
            StoreError: If the registry cannot be read
        """
        ...

    async def fetch_persisted(self, start: FinancialDate, end: FinancialDate) -> PersistedRange:
        """
        Fetch persisted expenses and revenues dated within [start, end].

        Raises:
            StoreError: If the range cannot be read
        """
        ...

    async def insert_payee(self, name: str, payee_type: PayeeType) -> str:
        """
        Insert a new payee.

        Returns:
            The new payee id

        Raises:
            StoreError: If the insert fails
        """
        ...

    async def insert_records(self, expenses: list[dict[str, Any]], revenues: list[dict[str, Any]]) -> None:
        """
        Insert import-ready records in one batch.

        Raises:
            StoreError: If the write fails
        """
        ...
