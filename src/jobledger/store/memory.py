#!/usr/bin/env python3
"""
In-Memory Record Store

RecordStore implementation backed by plain Python lists. Stored expenses and
revenues are kept in the dictionary form produced by
ClassifiedTransaction.to_dict().
"""

import logging
import uuid
from typing import Any, Iterable

from ..allocation.models import ChangeOrder, Estimate, Quote
from ..classification.rules import CategoryRule
from ..core.dates import FinancialDate
from ..core.models import CanonicalEntity, EntityKind, PayeeType, ProjectAlias
from ..core.money import Money
from ..dedup.detector import PersistedExpense, PersistedRevenue
from .base import PersistedRange, RegistrySnapshot, StoreError

logger = logging.getLogger(__name__)


class InMemoryRecordStore:
    """RecordStore over in-memory lists."""

    def __init__(
        self,
        payees: Iterable[CanonicalEntity] = (),
        clients: Iterable[CanonicalEntity] = (),
        projects: Iterable[CanonicalEntity] = (),
        aliases: Iterable[ProjectAlias] = (),
        category_rules: Iterable[CategoryRule] = (),
        estimates: Iterable[Estimate] = (),
        quotes: Iterable[Quote] = (),
        change_orders: Iterable[ChangeOrder] = (),
        expenses: Iterable[dict[str, Any]] = (),
        revenues: Iterable[dict[str, Any]] = (),
    ):
        self.payees = list(payees)
        self.clients = list(clients)
        self.projects = list(projects)
        self.aliases = list(aliases)
        self.category_rules = list(category_rules)
        self.estimates = list(estimates)
        self.quotes = list(quotes)
        self.change_orders = list(change_orders)
        self.expenses = [dict(record) for record in expenses]
        self.revenues = [dict(record) for record in revenues]

    async def load_registry(self) -> RegistrySnapshot:
        """Copy of the current registries."""
        return RegistrySnapshot(
            payees=list(self.payees),
            clients=list(self.clients),
            projects=list(self.projects),
            aliases=[alias for alias in self.aliases if alias.active],
            category_rules=list(self.category_rules),
            estimates=list(self.estimates),
            quotes=list(self.quotes),
            change_orders=list(self.change_orders),
        )

    async def fetch_persisted(self, start: FinancialDate, end: FinancialDate) -> PersistedRange:
        """Persisted records dated within [start, end], ordered by date then id."""
        payee_names = {payee.id: payee.display_name for payee in self.payees}
        client_names = {client.id: client.display_name for client in self.clients}

        persisted = PersistedRange()
        try:
            for record in self.expenses:
                expense = self._to_persisted_expense(record, payee_names)
                if start <= expense.date <= end:
                    persisted.expenses.append(expense)
            for record in self.revenues:
                revenue = self._to_persisted_revenue(record, client_names)
                if start <= revenue.date <= end:
                    persisted.revenues.append(revenue)
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Corrupt persisted record: {e}") from e

        persisted.expenses.sort(key=lambda r: (r.date.date, r.id))
        persisted.revenues.sort(key=lambda r: (r.date.date, r.id))
        return persisted

    async def insert_payee(self, name: str, payee_type: PayeeType) -> str:
        """Add a payee and return its id."""
        payee_id = str(uuid.uuid4())
        self.payees.append(
            CanonicalEntity(id=payee_id, display_name=name, kind=EntityKind.PAYEE, payee_type=payee_type)
        )
        logger.debug("Inserted payee %s (%s)", name, payee_id)
        return payee_id

    async def insert_records(self, expenses: list[dict[str, Any]], revenues: list[dict[str, Any]]) -> None:
        """Append records, assigning ids where missing."""
        for record in expenses:
            self.expenses.append({"id": str(uuid.uuid4()), **record})
        for record in revenues:
            self.revenues.append({"id": str(uuid.uuid4()), **record})
        logger.info("Stored %d expenses and %d revenues", len(expenses), len(revenues))

    @staticmethod
    def _to_persisted_expense(record: dict[str, Any], payee_names: dict[str, str]) -> PersistedExpense:
        payee_id = record.get("payee_id")
        return PersistedExpense(
            id=str(record["id"]),
            date=FinancialDate.from_string(record["date"]),
            amount=Money.from_cents(int(record["amount_cents"])),
            name=record.get("name"),
            description=record.get("description") or "",
            payee_name=payee_names.get(payee_id) if payee_id else None,
            category=record.get("category"),
            is_split=bool(record.get("is_split", False)),
        )

    @staticmethod
    def _to_persisted_revenue(record: dict[str, Any], client_names: dict[str, str]) -> PersistedRevenue:
        client_id = record.get("client_id")
        return PersistedRevenue(
            id=str(record["id"]),
            date=FinancialDate.from_string(record["date"]),
            amount=Money.from_cents(int(record["amount_cents"])),
            invoice_number=record.get("invoice_number"),
            name=record.get("name"),
            description=record.get("description") or "",
            client_name=client_names.get(client_id) if client_id else None,
            category=record.get("category"),
        )
