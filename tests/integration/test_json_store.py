#!/usr/bin/env python3
"""
Integration tests for the JSON record store.

Exercises registry loading, record persistence, and the pipeline running
against files on disk.
"""

import asyncio

import pytest

from jobledger.core.dates import FinancialDate
from jobledger.core.json_utils import read_json, write_json
from jobledger.core.models import ExpenseCategory, PayeeType
from jobledger.importer import ImportPipeline
from jobledger.store import JsonRecordStore, StoreError
from tests.fixtures.synthetic_data import export_row, persisted_expense, save_registry


@pytest.mark.integration
class TestJsonRecordStore:
    """Test the file-backed record store."""

    def test_missing_directory_is_empty_store(self, temp_dir):
        """Test a fresh directory loads as an empty store."""
        store = JsonRecordStore(temp_dir / "store")

        assert not store.exists()
        assert store.item_count() is None
        assert store.last_modified() is None
        assert store.summary_text() == "No record store found"

    def test_loads_registry(self, temp_dir):
        """Test registry.json is parsed into registries."""
        save_registry(temp_dir)

        store = JsonRecordStore(temp_dir)
        registry = asyncio.run(store.load_registry())

        assert [p.id for p in registry.payees] == ["p-001", "p-002", "p-003"]
        assert registry.payees[0].payee_type == PayeeType.SUBCONTRACTOR
        assert len(registry.projects) == 4
        assert all(alias.active for alias in registry.aliases)
        assert len(registry.aliases) == 3
        assert [(r.account_path, r.category) for r in registry.category_rules] == [
            ("Job Costs:Trim Carpentry", ExpenseCategory.SUBCONTRACTORS)
        ]
        assert registry.estimates[0].line_items[0].id == "li-mat"

    def test_corrupt_registry_raises_store_error(self, temp_dir):
        """Test unparseable files surface as StoreError."""
        (temp_dir / "registry.json").write_text("{not json")

        with pytest.raises(StoreError):
            JsonRecordStore(temp_dir)

    def test_corrupt_persisted_record_raises_on_fetch(self, temp_dir):
        """Test a record with a bad date fails the range read."""
        (temp_dir / "expenses.json").write_text('[{"id": "e-1", "date": "garbage", "amount_cents": 5}]')
        store = JsonRecordStore(temp_dir)

        with pytest.raises(StoreError):
            asyncio.run(
                store.fetch_persisted(FinancialDate.from_string("2025-01-01"), FinancialDate.from_string("2025-01-31"))
            )

    def test_inserted_payee_survives_reload(self, temp_dir):
        """Test payee inserts write the registry and keep allocation documents."""
        save_registry(temp_dir)
        store = JsonRecordStore(temp_dir)

        payee_id = asyncio.run(store.insert_payee("Zyx Qualm", PayeeType.OTHER))

        reloaded = JsonRecordStore(temp_dir)
        assert payee_id in [p.id for p in reloaded.payees]
        assert len(reloaded.estimates) == 1
        assert read_json(temp_dir / "registry.json")["estimates"][0]["id"] == "est-001"

    def test_payee_insert_keeps_inactive_category_rules(self, temp_dir):
        """Test registry writes leave category rules exactly as stored."""
        rules = [
            {"account_path": "A:B", "category": "materials", "active": True},
            {"account_path": "X:Y", "category": "equipment", "active": False, "note": "retired"},
        ]
        write_json(temp_dir / "registry.json", {"payees": [], "category_rules": rules})
        store = JsonRecordStore(temp_dir)

        asyncio.run(store.insert_payee("New Vendor", PayeeType.OTHER))

        assert [r.account_path for r in store.category_rules] == ["A:B"]
        assert read_json(temp_dir / "registry.json")["category_rules"] == rules

    def test_failed_payee_write_rolls_back(self, temp_dir):
        """Test a payee is not kept in memory when the registry write fails."""
        save_registry(temp_dir)
        before = read_json(temp_dir / "registry.json")
        store = JsonRecordStore(temp_dir)
        (temp_dir / "registry.json.tmp").mkdir()

        with pytest.raises(StoreError):
            asyncio.run(store.insert_payee("Zyx Qualm", PayeeType.OTHER))

        assert [p.id for p in store.payees] == ["p-001", "p-002", "p-003"]
        assert read_json(temp_dir / "registry.json") == before

    def test_failed_record_write_leaves_memory_and_disk_unchanged(self, temp_dir):
        """Test a batch that cannot be written is neither kept in memory nor half-written to disk."""
        store = JsonRecordStore(temp_dir)
        asyncio.run(store.insert_records([persisted_expense("e-1", "2025-01-10", 100, "A Co")], []))
        (temp_dir / "revenues.json.tmp").mkdir()

        with pytest.raises(StoreError):
            asyncio.run(
                store.insert_records(
                    [persisted_expense("e-2", "2025-01-11", 200, "B Co")],
                    [{"id": "r-1", "date": "2025-01-11", "amount_cents": 300}],
                )
            )

        assert [r["id"] for r in store.expenses] == ["e-1"]
        assert store.revenues == []
        assert [r["id"] for r in read_json(temp_dir / "expenses.json")] == ["e-1"]
        assert not (temp_dir / "expenses.json.tmp").exists()

    def test_fetch_persisted_filters_range(self, temp_dir):
        """Test only records inside the date range are returned, ordered by date."""
        store = JsonRecordStore(temp_dir)
        store.expenses = [
            persisted_expense("e-2", "2025-01-12", 100, "B Co"),
            persisted_expense("e-1", "2025-01-10", 100, "A Co"),
            persisted_expense("e-3", "2025-02-01", 100, "C Co"),
        ]

        persisted = asyncio.run(
            store.fetch_persisted(FinancialDate.from_string("2025-01-09"), FinancialDate.from_string("2025-01-13"))
        )

        assert [r.id for r in persisted.expenses] == ["e-1", "e-2"]


@pytest.mark.integration
class TestPipelineWithJsonStore:
    """Test import runs persisted through the JSON store."""

    def test_import_persists_and_reimport_is_duplicate(self, temp_dir):
        """Test records written by one run are seen as duplicates by the next."""
        save_registry(temp_dir)
        rows = [
            export_row(date="2025-01-10", amount="1,200.00", name="ABC Construction", project="125-001"),
            export_row(date="2025-01-11", amount="64.10", name="Home Depot", project="Smith Kitchen"),
        ]

        first = asyncio.run(ImportPipeline(JsonRecordStore(temp_dir)).run(rows))
        second = asyncio.run(ImportPipeline(JsonRecordStore(temp_dir)).run(rows))

        assert first.imported_expenses == 2
        assert second.imported_expenses == 0
        assert len(second.persisted_duplicates) == 2
        assert second.expense_reconciliation.within_tolerance is True

        stored = read_json(temp_dir / "expenses.json")
        assert len(stored) == 2
        assert {record["project_id"] for record in stored} == {"proj-001"}
        assert JsonRecordStore(temp_dir).summary_text() == (
            "Record store: 3 payees, 4 projects, 2 expenses, 0 revenues"
        )

    def test_store_override_rule_applies(self, temp_dir):
        """Test active category rules from registry.json classify rows."""
        save_registry(temp_dir)

        result = asyncio.run(
            ImportPipeline(JsonRecordStore(temp_dir)).run(
                [export_row(name="Home Depot", account="Job Costs:Trim Carpentry")], persist=False
            )
        )

        assert result.expenses[0].category == ExpenseCategory.SUBCONTRACTORS
        assert not (temp_dir / "expenses.json").exists()
