#!/usr/bin/env python3
"""
Unit tests for the import pipeline.

Runs the async pipeline against the in-memory record store with asyncio.run.
"""

import asyncio

import pytest

from jobledger.classification.classifier import MappingTier
from jobledger.classification.rules import CategoryRule
from jobledger.core.config import UNASSIGNED_CLIENT_ID, UNASSIGNED_PROJECT_ID, ImportConfig
from jobledger.core.models import ExpenseCategory, MatchType, PayeeType
from jobledger.core.money import Money
from jobledger.importer.models import MatchDecision, RecordKind
from jobledger.importer.pipeline import ImportPipeline, ImportRunError
from jobledger.store.base import StoreError
from jobledger.store.memory import InMemoryRecordStore
from tests.fixtures.synthetic_data import build_registry_store, export_row, persisted_expense, sample_estimate


def run_import(store, rows, settings=None, **kwargs):
    return asyncio.run(ImportPipeline(store, settings=settings).run(rows, **kwargs))


class FailingStore(InMemoryRecordStore):
    """Record store that fails one chosen operation."""

    def __init__(self, fail_on: str, **kwargs):
        super().__init__(**kwargs)
        self.fail_on = fail_on
        self.fetch_calls = 0

    async def load_registry(self):
        if self.fail_on == "registry":
            raise StoreError("registry unavailable")
        return await super().load_registry()

    async def fetch_persisted(self, start, end):
        self.fetch_calls += 1
        if self.fail_on == "range":
            raise StoreError("range query timed out")
        return await super().fetch_persisted(start, end)

    async def insert_payee(self, name, payee_type):
        if self.fail_on == "payee":
            raise StoreError("payee insert rejected")
        return await super().insert_payee(name, payee_type)

    async def insert_records(self, expenses, revenues):
        if self.fail_on == "write":
            raise StoreError("batch insert failed")
        await super().insert_records(expenses, revenues)


class RecordingStore(InMemoryRecordStore):
    """Record store that remembers the persisted range it was asked for."""

    async def fetch_persisted(self, start, end):
        self.requested_range = (start, end)
        return await super().fetch_persisted(start, end)


class TestEndToEndScenario:
    """Test the two-row legal-suffix scenario."""

    @pytest.mark.integration
    def test_suffix_variants_import_once(self, store, abc_rows):
        """Test both rows resolve to one payee and dedupe to one expense."""
        result = run_import(store, abc_rows)

        assert result.imported_expenses == 1
        assert len(result.in_file_duplicates) == 1
        assert result.in_file_duplicates[0].row.line_number == 2
        assert result.in_file_duplicates[0].reason == "Duplicate of: ABC Construction on 2025-01-10 for 1,200.00"

        expense = result.expenses[0]
        assert expense.kind == RecordKind.EXPENSE
        assert expense.payee_id == "p-001"
        assert expense.project_id == "proj-001"
        assert expense.amount == Money.from_cents(120000)
        assert expense.description == "bill - ABC Construction"
        assert result.fuzzy_matches[0].candidate.entity_id == "p-001"
        assert result.fuzzy_matches[0].candidate.confidence >= 75
        assert result.auto_created_payees == []
        assert result.errors == []
        assert len(store.expenses) == 1

    @pytest.mark.integration
    def test_rerun_is_idempotent(self, store, abc_rows):
        """Test a second run finds the same duplicates and imports nothing."""
        first = run_import(store, abc_rows)
        second = run_import(store, abc_rows)

        assert first.imported_expenses == 1
        assert second.imported_expenses == 0
        assert len(second.persisted_duplicates) == 1
        assert second.persisted_duplicates[0].existing_record_id == store.expenses[0]["id"]
        assert [d.matched_key for d in second.in_file_duplicates] == [
            d.matched_key for d in first.in_file_duplicates
        ]
        assert len(store.expenses) == 1

    @pytest.mark.integration
    def test_unknown_payee_is_created_once(self, abc_rows):
        """Test auto-creation with an empty payee registry."""
        store = InMemoryRecordStore()

        result = run_import(store, abc_rows)

        assert len(result.auto_created_payees) == 1
        created = result.auto_created_payees[0]
        assert created.name == "ABC Construction"
        assert created.payee_type == PayeeType.OTHER
        assert [p.id for p in store.payees] == [created.id]
        assert result.expenses[0].payee_id == created.id


class TestRowErrors:
    """Test row-level error handling."""

    @pytest.mark.unit
    def test_bad_rows_are_skipped_with_context(self, store):
        """Test malformed rows are reported and the batch continues."""
        rows = [
            export_row(amount="10.00", name="Home Depot"),
            export_row(amount="abc", name="Home Depot"),
            export_row(date="someday", amount="12.00", name="Home Depot"),
            export_row(date="", amount="12.00", name="Home Depot"),
        ]

        result = run_import(store, rows)

        assert result.imported_expenses == 1
        assert result.errors == [
            "Row 2: Invalid amount 'abc'",
            "Row 3: Invalid date 'someday'",
            "Row 4: Missing required field: Date",
        ]

    @pytest.mark.unit
    def test_all_rows_invalid_skips_range_read(self):
        """Test an upload with no valid rows never queries the persisted range."""
        store = FailingStore("range")

        result = run_import(store, [export_row(amount="abc")])

        assert store.fetch_calls == 0
        assert len(result.errors) == 1
        assert result.imported_expenses == 0


class TestRunLevelErrors:
    """Test store failures abort the run."""

    @pytest.mark.unit
    def test_registry_failure(self, abc_rows):
        """Test a failed registry read aborts before any row is processed."""
        store = FailingStore("registry")

        with pytest.raises(ImportRunError, match="registries"):
            run_import(store, abc_rows)

        assert store.fetch_calls == 0
        assert store.expenses == []

    @pytest.mark.unit
    def test_range_failure(self, abc_rows):
        """Test a failed persisted-range read aborts the run."""
        with pytest.raises(ImportRunError) as exc_info:
            run_import(FailingStore("range"), abc_rows)

        assert isinstance(exc_info.value.__cause__, StoreError)

    @pytest.mark.unit
    def test_write_failure(self, abc_rows):
        """Test a failed batch write is a run-level error."""
        with pytest.raises(ImportRunError, match="Failed to write"):
            run_import(FailingStore("write"), abc_rows)

    @pytest.mark.unit
    def test_write_skipped_without_persist(self, abc_rows):
        """Test persist=False never calls the write interface."""
        result = run_import(FailingStore("write"), abc_rows, persist=False)

        assert result.imported_expenses == 1

    @pytest.mark.unit
    def test_payee_insert_failure(self):
        """Test a failed payee insert is a run-level error."""
        with pytest.raises(ImportRunError, match="Zyx Qualm"):
            run_import(FailingStore("payee"), [export_row(name="Zyx Qualm")])


class TestProjectRouting:
    """Test project resolution inside the pipeline."""

    @pytest.mark.unit
    def test_missing_project_is_unassigned(self, store):
        """Test rows without a project token go to the unassigned project."""
        result = run_import(store, [export_row(name="Home Depot", project="")])

        expense = result.expenses[0]
        assert expense.project_id == UNASSIGNED_PROJECT_ID
        assert expense.is_unassigned
        assert expense.description == "bill - Home Depot (Unassigned)"
        assert result.unassociated_expenses == 1

    @pytest.mark.unit
    def test_unmatched_token_is_reported(self, store):
        """Test unresolvable tokens are collected with totals."""
        rows = [
            export_row(date="2025-01-10", amount="10.00", name="Home Depot", project="999-999"),
            export_row(date="2025-01-11", amount="15.00", name="Home Depot", project="999-999"),
        ]

        result = run_import(store, rows)

        assert result.unassociated_expenses == 2
        assert len(result.unmatched_projects) == 1
        unmatched = result.unmatched_projects[0]
        assert unmatched.token == "999-999"
        assert unmatched.transaction_count == 2
        assert unmatched.total_amount == Money.from_cents(2500)

    @pytest.mark.unit
    def test_fuel_token_goes_to_gas_project(self, store):
        """Test the fuel shortcut."""
        result = run_import(store, [export_row(name="Home Depot", project="Fuel - Mike")])

        assert result.expenses[0].project_id == "proj-gas"
        assert not result.expenses[0].is_unassigned


class TestPayeeDecisions:
    """Test payee creation and review queues."""

    @pytest.mark.unit
    def test_created_payee_visible_to_later_rows(self, store):
        """Test a payee created for one row is matched by the next."""
        rows = [
            export_row(date="2025-01-10", name="Zyx Qualm", account="Cost of Goods Sold:Contract Labor"),
            export_row(date="2025-01-12", name="zyx qualm"),
        ]

        result = run_import(store, rows)

        assert len(result.auto_created_payees) == 1
        assert result.auto_created_payees[0].payee_type == PayeeType.SUBCONTRACTOR
        assert result.expenses[0].payee_id == result.expenses[1].payee_id
        assert len(store.payees) == 4

    @pytest.mark.unit
    def test_auto_create_disabled_queues_review(self, store):
        """Test unknown payees wait for review when auto-creation is off."""
        rows = [
            export_row(date="2025-01-10", name="Zyx Qualm"),
            export_row(date="2025-01-12", name="Zyx Qualm"),
        ]

        result = run_import(store, rows, settings=ImportConfig(auto_create_payees=False))

        assert result.auto_created_payees == []
        assert len(result.pending_payee_reviews) == 1
        assert result.pending_payee_reviews[0].row_count == 2
        assert all(expense.payee_id is None for expense in result.expenses)
        assert len(store.payees) == 3

    @pytest.mark.unit
    def test_exact_payee_logged_as_auto_matched(self, store):
        """Test the match log records exact payee matches."""
        result = run_import(store, [export_row(name="Home Depot", project="125-002")])

        payee_entries = [entry for entry in result.match_log if entry.entity_type == "payee"]
        assert payee_entries[0].decision == MatchDecision.AUTO_MATCHED
        assert payee_entries[0].matched_entity_id == "p-002"
        project_entries = [entry for entry in result.match_log if entry.entity_type == "project"]
        assert project_entries[0].matched_entity_id == "proj-002"


class TestRevenues:
    """Test the revenue stream."""

    @pytest.mark.unit
    def test_invoice_matches_client(self, store):
        """Test invoice rows become revenues with a resolved client."""
        rows = [
            export_row(transaction_type="Invoice", name="Smith Family", amount="2,500.00", project="125-001",
                       invoice="INV-1"),
            export_row(transaction_type="Invoice", name="Smith Family", amount="2,500.00", project="125-001",
                       invoice="INV-1"),
        ]

        result = run_import(store, rows)

        assert result.imported_revenues == 1
        assert result.imported_expenses == 0
        revenue = result.revenues[0]
        assert revenue.kind == RecordKind.REVENUE
        assert revenue.client_id == "c-001"
        assert revenue.category is None
        assert revenue.description == "Invoice from Smith Family"
        assert len(result.revenue_in_file_duplicates) == 1
        assert result.revenue_in_file_duplicates[0].reason == "Duplicate revenue: Smith Family on 2025-01-10"
        assert result.mapping_stats.total == 0

    @pytest.mark.unit
    def test_unknown_client_without_project_uses_unassigned_client(self, store):
        """Test unassigned revenues fall back to the unassigned client."""
        rows = [export_row(transaction_type="Invoice", name="Zyx Qualm", amount="100.00")]

        result = run_import(store, rows)

        revenue = result.revenues[0]
        assert revenue.client_id == UNASSIGNED_CLIENT_ID
        assert revenue.project_id == UNASSIGNED_PROJECT_ID
        assert revenue.description == "Invoice from Zyx Qualm (Unassigned)"
        assert result.pending_client_reviews[0].source_name == "Zyx Qualm"
        assert result.unassociated_revenues == 1


class TestPersistedDuplicates:
    """Test duplicates against previously imported records."""

    @pytest.mark.unit
    def test_persisted_duplicate_reconciles(self):
        """Test a re-uploaded row matches the stored record and reconciles."""
        store = build_registry_store(
            expenses=[persisted_expense("e-1", "2025-01-10", 120000, "ABC Construction LLC")]
        )

        result = run_import(store, [export_row(amount="1,200.00", name="ABC Construction")])

        assert result.imported_expenses == 0
        duplicate = result.persisted_duplicates[0]
        assert duplicate.existing_record_id == "e-1"
        assert duplicate.strategy == "primary"
        assert duplicate.reason == "Already imported: ABC Construction LLC on 2025-01-10 for $1200.00"
        summary = result.expense_reconciliation
        assert summary.within_tolerance is True
        assert summary.difference == Money.zero()

    @pytest.mark.unit
    def test_empty_name_row_matches_nameless_record(self):
        """Test the empty-name strategy in the pipeline."""
        store = build_registry_store(
            expenses=[persisted_expense("e-9", "2025-01-10", 5000, None, description="expense - ")]
        )

        result = run_import(store, [export_row(amount="50.00", name="", transaction_type="Expense")])

        assert result.persisted_duplicates[0].existing_record_id == "e-9"
        assert result.persisted_duplicates[0].strategy == "empty_name"

    @pytest.mark.unit
    def test_suffix_only_name_is_not_a_nameless_duplicate(self):
        """Test a vendor named only by a suffix word does not match a record stored without a name."""
        store = build_registry_store(
            expenses=[persisted_expense("e-1", "2025-01-10", 5000, "", description="bill - ")]
        )

        result = run_import(store, [export_row(amount="50.00", name="Const")])

        assert result.imported_expenses == 1
        assert result.persisted_duplicates == []

    @pytest.mark.unit
    def test_rerun_creates_no_payees(self, abc_rows):
        """Test rows already imported are settled before any payee is created."""
        store = InMemoryRecordStore()
        first = run_import(store, abc_rows)

        second = run_import(store, abc_rows)

        assert len(first.auto_created_payees) == 1
        assert second.auto_created_payees == []
        assert len(second.persisted_duplicates) == 1
        assert len(store.payees) == 1

    @pytest.mark.unit
    def test_labor_records_excluded_from_expected_total(self):
        """Test the labor exclusion shows up in reconciliation."""
        store = build_registry_store(
            expenses=[persisted_expense("e-1", "2025-01-10", 120000, "ABC Construction", category="labor_internal")]
        )

        result = run_import(store, [export_row(amount="1,200.00", name="ABC Construction")])

        assert result.expense_reconciliation.expected_total == Money.zero()
        assert result.expense_reconciliation.within_tolerance is False

    @pytest.mark.unit
    def test_split_record_is_noted(self):
        """Test duplicates of split records carry a note."""
        store = build_registry_store(
            expenses=[persisted_expense("e-1", "2025-01-10", 120000, "ABC Construction", is_split=True)]
        )

        result = run_import(store, [export_row(amount="1,200.00", name="ABC Construction")])

        assert result.persisted_duplicates[0].note is not None

    @pytest.mark.unit
    def test_override_key_reimports(self):
        """Test an overridden key imports the row anyway."""
        store = build_registry_store(
            expenses=[persisted_expense("e-1", "2025-01-10", 120000, "ABC Construction LLC")]
        )

        result = run_import(
            store,
            [export_row(amount="1,200.00", name="ABC Construction")],
            override_keys=["2025-01-10|1200.00|abc"],
        )

        assert result.imported_expenses == 1
        assert result.persisted_duplicates == []
        assert result.reimported_duplicates[0].existing_record_id == "e-1"

    @pytest.mark.unit
    def test_range_includes_one_day_buffer(self):
        """Test the persisted range spans the upload dates plus one day each side."""
        store = RecordingStore()

        run_import(
            store,
            [export_row(date="2025-01-10", name="A B"), export_row(date="2025-01-15", name="C D")],
            persist=False,
        )

        start, end = store.requested_range
        assert start.to_iso_string() == "2025-01-09"
        assert end.to_iso_string() == "2025-01-16"


class TestClassificationInPipeline:
    """Test category mapping inside the pipeline."""

    @pytest.mark.unit
    def test_mapping_stats_and_unmapped_accounts(self, store):
        """Test tier counts, mappings used, and unmapped accounts."""
        rows = [
            export_row(date="2025-01-10", name="Home Depot", account="Cost of Goods Sold:Supplies & Materials"),
            export_row(date="2025-01-11", name="Home Depot", amount="-20.00", account="Misc Stuff"),
        ]

        result = run_import(store, rows)

        assert result.expenses[0].category == ExpenseCategory.MATERIALS
        assert result.expenses[1].category == ExpenseCategory.OTHER
        assert result.expenses[1].amount == Money.from_cents(2000)
        assert result.mapping_stats.counts[MappingTier.STATIC] == 1
        assert result.mapping_stats.counts[MappingTier.UNMAPPED] == 1
        assert result.category_mappings_used == {
            "Cost of Goods Sold:Supplies & Materials": "materials",
            "Misc Stuff": "other",
        }
        assert result.unmapped_accounts[0].account_path == "Misc Stuff"
        assert result.unmapped_accounts[0].total_amount == Money.from_cents(2000)

    @pytest.mark.unit
    def test_store_override_rule_wins(self):
        """Test active category rules from the store are applied first."""
        store = build_registry_store(category_rules=[CategoryRule("Misc Stuff", ExpenseCategory.MEALS)])

        result = run_import(store, [export_row(name="Home Depot", account="Misc Stuff")])

        assert result.expenses[0].category == ExpenseCategory.MEALS
        assert result.expenses[0].mapping_tier == MappingTier.OVERRIDE
        assert result.unmapped_accounts == []
        category_entries = [entry for entry in result.match_log if entry.entity_type == "category"]
        assert category_entries[0].decision == MatchDecision.USER_OVERRIDE


class TestAllocationInPipeline:
    """Test allocation suggestions for imported expenses."""

    @pytest.mark.unit
    def test_suggestion_for_matching_line_item(self):
        """Test an expense in a project with an estimate gets a suggestion."""
        store = build_registry_store(estimates=[sample_estimate()])
        rows = [
            export_row(
                amount="1,200.00",
                name="Home Depot",
                project="125-001",
                account="Cost of Goods Sold:Supplies & Materials",
            )
        ]

        result = run_import(store, rows)

        suggestion = result.allocation_suggestions[0]
        assert suggestion.expense_ref == "row-1"
        assert suggestion.line_item_id == "li-mat"
        assert suggestion.confidence == 100.0

    @pytest.mark.unit
    def test_unassigned_expense_gets_no_suggestion(self):
        """Test unassigned expenses are not allocated."""
        store = build_registry_store(estimates=[sample_estimate()])

        result = run_import(store, [export_row(amount="1,200.00", name="Home Depot")])

        assert result.allocation_suggestions == []


class TestReport:
    """Test the result report."""

    @pytest.mark.unit
    def test_batch_id_and_summary(self, store, abc_rows):
        """Test the batch id is stamped on records and the summary counts."""
        result = run_import(store, abc_rows, import_batch_id="batch-1")

        assert store.expenses[0]["import_batch_id"] == "batch-1"
        report = result.to_dict()
        assert report["import_batch_id"] == "batch-1"
        assert report["summary"]["imported_expenses"] == 1
        assert report["summary"]["duplicates"] == 1
        assert report["expenses"][0]["amount_cents"] == 120000
        assert report["fuzzy_matches"][0]["match_type"] == MatchType.FUZZY.value
        assert report["expense_reconciliation"]["within_tolerance"] is False
