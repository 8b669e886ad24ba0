#!/usr/bin/env python3
"""
JSON Record Store

File-backed RecordStore. Registries live in registry.json and imported
records in expenses.json and revenues.json, all under one store directory.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from ..allocation.models import ChangeOrder, Estimate, Quote
from ..classification.rules import CategoryRule
from ..core.json_utils import read_json, write_json
from ..core.models import CanonicalEntity, EntityKind, ExpenseCategory, PayeeType, ProjectAlias
from .base import StoreError
from .memory import InMemoryRecordStore

logger = logging.getLogger(__name__)


class JsonRecordStore(InMemoryRecordStore):
    """
    RecordStore persisted as pretty-printed JSON files.

    registry.json layout:
        {"payees": [...], "clients": [...], "projects": [...], "aliases": [...],
         "category_rules": [...], "estimates": [...], "quotes": [...],
         "change_orders": [...]}
    """

    def __init__(self, store_dir: Path):
        """
        Initialize the store and load whatever files exist.

        Args:
            store_dir: Directory holding the store's JSON files

        Raises:
            StoreError: If an existing file cannot be parsed
        """
        super().__init__()
        self.store_dir = Path(store_dir)
        self.registry_file = self.store_dir / "registry.json"
        self.expenses_file = self.store_dir / "expenses.json"
        self.revenues_file = self.store_dir / "revenues.json"
        self._load()

    def exists(self) -> bool:
        """Check if a registry file exists."""
        return self.registry_file.exists()

    def item_count(self) -> int | None:
        """Count of persisted expenses and revenues."""
        if not self.exists():
            return None
        return len(self.expenses) + len(self.revenues)

    def last_modified(self) -> datetime | None:
        """Timestamp of the most recently written store file."""
        stamps = [
            path.stat().st_mtime
            for path in (self.registry_file, self.expenses_file, self.revenues_file)
            if path.exists()
        ]
        if not stamps:
            return None
        return datetime.fromtimestamp(max(stamps))

    def summary_text(self) -> str:
        """Get human-readable summary."""
        if not self.exists():
            return "No record store found"
        return (
            f"Record store: {len(self.payees)} payees, {len(self.projects)} projects, "
            f"{len(self.expenses)} expenses, {len(self.revenues)} revenues"
        )

    async def insert_payee(self, name: str, payee_type: PayeeType) -> str:
        """Add a payee and write the registry. The payee is dropped again if the write fails."""
        payee_id = await super().insert_payee(name, payee_type)
        try:
            self._save_registry()
        except StoreError:
            self.payees.pop()
            raise
        return payee_id

    async def insert_records(self, expenses: list[dict[str, Any]], revenues: list[dict[str, Any]]) -> None:
        """Append records and write both record files."""
        expense_count, revenue_count = len(self.expenses), len(self.revenues)
        await super().insert_records(expenses, revenues)
        try:
            self._write_staged([(self.expenses_file, self.expenses), (self.revenues_file, self.revenues)])
        except OSError as e:
            del self.expenses[expense_count:]
            del self.revenues[revenue_count:]
            raise StoreError(f"Failed to write records to {self.store_dir}: {e}") from e

    def save_registry(self) -> None:
        """Write the registry file."""
        self._save_registry()

    def _load(self) -> None:
        try:
            if self.registry_file.exists():
                registry = read_json(self.registry_file)
                self.payees = [self._entity(d, EntityKind.PAYEE) for d in registry.get("payees", [])]
                self.clients = [self._entity(d, EntityKind.CLIENT) for d in registry.get("clients", [])]
                self.projects = [self._entity(d, EntityKind.PROJECT) for d in registry.get("projects", [])]
                self.aliases = [ProjectAlias.from_dict(d) for d in registry.get("aliases", [])]
                self.category_rules = [
                    CategoryRule(account_path=d["account_path"], category=ExpenseCategory(d["category"]))
                    for d in registry.get("category_rules", [])
                    if d.get("active", True)
                ]
                self.estimates = [Estimate.from_dict(d) for d in registry.get("estimates", [])]
                self.quotes = [Quote.from_dict(d) for d in registry.get("quotes", [])]
                self.change_orders = [ChangeOrder.from_dict(d) for d in registry.get("change_orders", [])]
            if self.expenses_file.exists():
                self.expenses = list(read_json(self.expenses_file))
            if self.revenues_file.exists():
                self.revenues = list(read_json(self.revenues_file))
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Failed to load record store {self.store_dir}: {e}") from e

        logger.debug("Loaded record store from %s", self.store_dir)

    def _save_registry(self) -> None:
        # Category rules and allocation documents stay as they are on disk
        existing: dict[str, Any] = {}
        try:
            if self.registry_file.exists():
                existing = read_json(self.registry_file)
            existing["payees"] = [p.to_dict() for p in self.payees]
            existing["clients"] = [c.to_dict() for c in self.clients]
            existing["projects"] = [p.to_dict() for p in self.projects]
            existing["aliases"] = [a.to_dict() for a in self.aliases]
            self._write_staged([(self.registry_file, existing)])
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Failed to write registry {self.registry_file}: {e}") from e

    @staticmethod
    def _write_staged(files: list[tuple[Path, Any]]) -> None:
        """Write every file to a .tmp sibling first, then move them all into place."""
        staged = [(path, path.with_suffix(path.suffix + ".tmp")) for path, _ in files]
        try:
            for (_, tmp), (_, data) in zip(staged, files):
                write_json(tmp, data)
        except OSError:
            for _, tmp in staged:
                if tmp.is_file():
                    tmp.unlink()
            raise
        for path, tmp in staged:
            tmp.replace(path)

    @staticmethod
    def _entity(data: dict[str, Any], kind: EntityKind) -> CanonicalEntity:
        return CanonicalEntity.from_dict({"kind": kind.value, **data})
