#!/usr/bin/env python3
"""
Import Pipeline Orchestrator

Runs one bulk import over a batch of export rows:

    ParseRows -> SplitExpenseRevenue -> DetectInFileDuplicates
    -> LoadRegistries & PersistedRange
    -> for each unique row: Classify -> ResolveProject -> CheckPersistedDuplicate
       -> ResolvePayee -> CreatePayeeIfNeeded -> BuildRecord -> SuggestAllocation
    -> Write -> ComputeReconciliation

Rows are processed one at a time in file order because a payee created for an
earlier row must be visible to later rows. All mutable state lives in an
_ImportRun that exists for a single run() call.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from ..allocation.matcher import AllocationMatcher, build_allocation_candidates
from ..allocation.models import AllocationExpense, AllocationLineItem
from ..classification.classifier import CategoryClassifier, MappingTier, UnmappedAccount
from ..classification.rules import CategoryRules, default_rules, detect_payee_type
from ..core.config import ImportConfig, MatchingConfig
from ..core.models import CanonicalEntity, EntityKind, MatchType
from ..core.money import Money
from ..dedup.detector import (
    DuplicateRecord,
    PersistedIndex,
    PersistedMatch,
    detect_in_file_duplicates,
    find_persisted_expense,
    find_persisted_revenue,
)
from ..dedup.keys import expense_key, revenue_key
from ..dedup.reconciliation import reconcile
from ..matching.resolver import ClientResolver, PayeeResolver, ProjectResolver
from ..matching.scorer import DEFAULT_PROFILES, ConfidenceThresholds, ScoringProfile
from ..store.base import PersistedRange, RecordStore, StoreError
from .models import (
    AcceptedMatch,
    ClassifiedTransaction,
    CreatedPayee,
    ImportResult,
    MatchDecision,
    MatchLogEntry,
    PendingReview,
    RecordKind,
    UnmatchedProject,
)
from .rows import RowValidationError, TransactionRow, ValidatedRow, validate_row

logger = logging.getLogger(__name__)

BLENDED_ALGORITHM = "jaro_winkler+levenshtein+token"
UNASSIGNED_SUFFIX = " (Unassigned)"
SPLIT_NOTE = "Matched record has been split across projects"


class ImportRunError(Exception):
    """Raised when an import run cannot complete because the record store failed."""

    pass


def _expense_duplicate_reason(first: ValidatedRow) -> str:
    return f"Duplicate of: {first.name} on {first.source.date} for {first.source.amount}"


def _revenue_duplicate_reason(first: ValidatedRow) -> str:
    return f"Duplicate revenue: {first.name} on {first.source.date}"


@dataclass
class _ImportRun:
    """Per-run state: resolvers with run-local registry additions, indexes, and accumulators."""

    result: ImportResult
    override_keys: frozenset
    classifier: CategoryClassifier
    payees: PayeeResolver
    clients: ClientResolver
    projects: ProjectResolver
    expense_index: PersistedIndex
    revenue_index: PersistedIndex
    allocation_candidates: list[AllocationLineItem]
    payee_decisions: dict[str, tuple[str | None, str | None]] = field(default_factory=dict)
    client_decisions: dict[str, str | None] = field(default_factory=dict)
    pending_payees: dict[str, PendingReview] = field(default_factory=dict)
    pending_clients: dict[str, PendingReview] = field(default_factory=dict)
    unmatched_projects: dict[str, UnmatchedProject] = field(default_factory=dict)
    unmapped_accounts: dict[str, UnmappedAccount] = field(default_factory=dict)


class ImportPipeline:
    """
    Orchestrates classification, entity resolution, duplicate detection, and
    reconciliation for one batch of export rows.
    """

    def __init__(
        self,
        store: RecordStore,
        matching: MatchingConfig | None = None,
        settings: ImportConfig | None = None,
        rules: CategoryRules | None = None,
        profiles: tuple[ScoringProfile, ...] = DEFAULT_PROFILES,
    ):
        """
        Initialize the pipeline.

        Args:
            store: Record store to read registries from and write records to
            matching: Confidence thresholds
            settings: Import settings (auto-creation, tolerances, fixed ids)
            rules: Category rule tables
            profiles: Name scoring weight profiles
        """
        self.store = store
        self.matching = matching or MatchingConfig()
        self.settings = settings or ImportConfig()
        self.rules = rules or default_rules()
        self.profiles = profiles
        self.thresholds = ConfidenceThresholds(
            auto_accept=self.matching.auto_accept_threshold,
            review=self.matching.review_threshold,
        )
        self.allocation_matcher = AllocationMatcher()

    async def run(
        self,
        rows: Iterable[Mapping[str, Any] | TransactionRow],
        *,
        import_batch_id: str | None = None,
        persist: bool = True,
        override_keys: Iterable[str] = (),
    ) -> ImportResult:
        """
        Import one batch.

        Args:
            rows: String-keyed row maps from the export, in file order
            import_batch_id: Id stamped on every record (generated if omitted)
            persist: Write the records to the store when True
            override_keys: Composite keys to import even though a persisted
                record already has them

        Returns:
            ImportResult report

        Raises:
            ImportRunError: If a registry or range read fails, a payee insert
                fails, or the batch write fails
        """
        result = ImportResult(import_batch_id=import_batch_id or str(uuid.uuid4()))

        valid_rows = self._parse_rows(rows, result)
        expense_rows = [row for row in valid_rows if not row.is_revenue]
        revenue_rows = [row for row in valid_rows if row.is_revenue]
        logger.info(
            "Parsed %d rows (%d expenses, %d revenues, %d errors)",
            len(valid_rows),
            len(expense_rows),
            len(revenue_rows),
            len(result.errors),
        )

        expense_scan = detect_in_file_duplicates(
            expense_rows,
            lambda r: expense_key(r.date, r.amount, r.name),
            _expense_duplicate_reason,
        )
        revenue_scan = detect_in_file_duplicates(
            revenue_rows,
            lambda r: revenue_key(r.amount, r.date, r.invoice_number, r.name),
            _revenue_duplicate_reason,
        )
        result.in_file_duplicates = expense_scan.duplicates
        result.revenue_in_file_duplicates = revenue_scan.duplicates

        state = await self._load_run_state(result, valid_rows, frozenset(override_keys))

        for row in expense_scan.unique:
            try:
                await self._process_expense(state, row)
            except (ValueError, KeyError, TypeError) as e:
                self._row_error(result, row.line_number, e)

        for row in revenue_scan.unique:
            try:
                self._process_revenue(state, row)
            except (ValueError, KeyError, TypeError) as e:
                self._row_error(result, row.line_number, e)

        result.pending_payee_reviews = list(state.pending_payees.values())
        result.pending_client_reviews = list(state.pending_clients.values())
        result.unmatched_projects = list(state.unmatched_projects.values())
        result.unmapped_accounts = list(state.unmapped_accounts.values())

        if persist and (result.expenses or result.revenues):
            try:
                await self.store.insert_records(
                    [record.to_dict() for record in result.expenses],
                    [record.to_dict() for record in result.revenues],
                )
            except StoreError as e:
                raise ImportRunError(f"Failed to write import batch {result.import_batch_id}: {e}") from e

        tolerance = Money.from_cents(self.settings.reconciliation_tolerance_cents)
        result.expense_reconciliation = reconcile(
            result.in_file_duplicates + result.persisted_duplicates,
            state.expense_index.by_id,
            excluded_category=self.settings.reconciliation_excluded_category,
            tolerance=tolerance,
        )
        result.revenue_reconciliation = reconcile(
            result.revenue_in_file_duplicates + result.revenue_persisted_duplicates,
            state.revenue_index.by_id,
            excluded_category=None,
            tolerance=tolerance,
        )
        logger.info(
            "Expense reconciliation: expected %s, duplicates %s, within tolerance: %s",
            result.expense_reconciliation.expected_total,
            result.expense_reconciliation.duplicate_total,
            result.expense_reconciliation.within_tolerance,
        )

        logger.info(
            "Import %s: %d expenses, %d revenues, %d duplicates, %d errors",
            result.import_batch_id,
            result.imported_expenses,
            result.imported_revenues,
            result.total_duplicates,
            len(result.errors),
        )
        return result

    def _parse_rows(
        self, rows: Iterable[Mapping[str, Any] | TransactionRow], result: ImportResult
    ) -> list[ValidatedRow]:
        valid: list[ValidatedRow] = []
        for line_number, mapping in enumerate(rows, start=1):
            row = mapping if isinstance(mapping, TransactionRow) else TransactionRow.from_mapping(mapping, line_number)
            try:
                valid.append(validate_row(row))
            except RowValidationError as e:
                self._row_error(result, row.line_number, e)
        return valid

    @staticmethod
    def _row_error(result: ImportResult, line_number: int, error: Exception) -> None:
        message = f"Row {line_number}: {error}"
        logger.warning("Skipping row: %s", message)
        result.errors.append(message)

    async def _load_run_state(
        self, result: ImportResult, valid_rows: list[ValidatedRow], override_keys: frozenset
    ) -> _ImportRun:
        try:
            registry = await self.store.load_registry()
        except StoreError as e:
            raise ImportRunError(f"Failed to load registries: {e}") from e

        persisted = PersistedRange()
        if valid_rows:
            buffer_days = self.settings.date_buffer_days
            start = min(row.date for row in valid_rows).shift(-buffer_days)
            end = max(row.date for row in valid_rows).shift(buffer_days)
            try:
                persisted = await self.store.fetch_persisted(start, end)
            except StoreError as e:
                raise ImportRunError(f"Failed to load persisted records {start} to {end}: {e}") from e
            logger.info(
                "Loaded %d persisted expenses and %d revenues between %s and %s",
                len(persisted.expenses),
                len(persisted.revenues),
                start,
                end,
            )

        return _ImportRun(
            result=result,
            override_keys=override_keys,
            classifier=CategoryClassifier(self.rules, registry.category_rules),
            payees=PayeeResolver(registry.payees, self.thresholds, self.profiles),
            clients=ClientResolver(registry.clients, self.thresholds, self.profiles),
            projects=ProjectResolver(
                registry.projects,
                registry.aliases,
                gas_code=self.settings.gas_project_code,
                ga_code=self.settings.ga_project_code,
                fuzzy_threshold=self.matching.project_fuzzy_threshold,
            ),
            expense_index=PersistedIndex.for_expenses(persisted.expenses),
            revenue_index=PersistedIndex.for_revenues(persisted.revenues),
            allocation_candidates=build_allocation_candidates(
                registry.estimates, registry.quotes, registry.change_orders
            ),
        )

    async def _process_expense(self, state: _ImportRun, row: ValidatedRow) -> None:
        result = state.result

        classification = state.classifier.classify(row.name, row.account_path)
        result.mapping_stats.record(classification.tier)
        if row.account_path:
            result.category_mappings_used.setdefault(row.account_path, classification.category.value)
            if classification.tier == MappingTier.UNMAPPED:
                unmapped = state.unmapped_accounts.setdefault(row.account_path, UnmappedAccount(row.account_path))
                unmapped.transaction_count += 1
                unmapped.total_amount = unmapped.total_amount + row.amount.abs()
            else:
                decision = (
                    MatchDecision.USER_OVERRIDE if classification.tier == MappingTier.OVERRIDE else MatchDecision.MAPPED
                )
                result.match_log.append(
                    MatchLogEntry(
                        source_text=row.account_path,
                        entity_type="category",
                        decision=decision,
                        matched_name=classification.category.value,
                        algorithm=classification.tier.value,
                    )
                )

        project_id, is_unassigned = self._resolve_project(state, row)

        # Lookup without a payee name comes before payee resolution
        match = find_persisted_expense(state.expense_index, row.date, row.amount, row.name)
        if match is not None and self._record_persisted_duplicate(state, row, match, revenue=False):
            return

        payee_id, payee_name = await self._resolve_payee(state, row)
        if match is None and payee_name:
            match = find_persisted_expense(state.expense_index, row.date, row.amount, row.name, payee_name)
            if match is not None and self._record_persisted_duplicate(state, row, match, revenue=False):
                return

        description = f"{row.transaction_type.value} - {row.name}"
        if is_unassigned:
            description += UNASSIGNED_SUFFIX

        record = ClassifiedTransaction(
            kind=RecordKind.EXPENSE,
            row=row,
            category=classification.category,
            transaction_type=row.transaction_type,
            date=row.date,
            amount=row.amount.abs(),
            description=description,
            project_id=project_id,
            payee_id=payee_id,
            is_unassigned=is_unassigned,
            mapping_tier=classification.tier,
            import_batch_id=result.import_batch_id,
        )
        result.expenses.append(record)
        logger.debug("Row %d: %s -> %s", row.line_number, description, classification.category.value)

        if not is_unassigned and state.allocation_candidates:
            suggestion = self.allocation_matcher.suggest(
                AllocationExpense(
                    ref=f"row-{row.line_number}",
                    project_id=project_id,
                    category=classification.category,
                    amount=record.amount,
                    payee_name=payee_name or row.name,
                ),
                state.allocation_candidates,
            )
            if suggestion.line_item_id is not None:
                result.allocation_suggestions.append(suggestion)

    def _process_revenue(self, state: _ImportRun, row: ValidatedRow) -> None:
        result = state.result

        project_id, is_unassigned = self._resolve_project(state, row)
        client_id = self._resolve_client(state, row)
        if client_id is None and is_unassigned:
            client_id = self.settings.unassigned_client_id

        match = find_persisted_revenue(state.revenue_index, row.amount, row.date, row.invoice_number, row.name)
        if match is not None and self._record_persisted_duplicate(state, row, match, revenue=True):
            return

        description = f"Invoice from {row.name}"
        if is_unassigned:
            description += UNASSIGNED_SUFFIX

        result.revenues.append(
            ClassifiedTransaction(
                kind=RecordKind.REVENUE,
                row=row,
                category=None,
                transaction_type=row.transaction_type,
                date=row.date,
                amount=row.amount.abs(),
                description=description,
                project_id=project_id,
                client_id=client_id,
                is_unassigned=is_unassigned,
                import_batch_id=result.import_batch_id,
            )
        )

    def _record_persisted_duplicate(
        self, state: _ImportRun, row: ValidatedRow, match: PersistedMatch, revenue: bool
    ) -> bool:
        """Record a persisted hit; returns False when the key is overridden and the row should import anyway."""
        existing = match.record
        if revenue:
            reason = f"Revenue already imported: {existing.effective_name()} on {existing.date}"
        else:
            reason = f"Already imported: {existing.effective_name()} on {existing.date} for {existing.amount.abs()}"

        duplicate = DuplicateRecord(
            row=row,
            matched_key=match.key,
            reason=reason,
            existing_record_id=existing.id,
            strategy=match.strategy,
            note=SPLIT_NOTE if getattr(existing, "is_split", False) else None,
        )

        if match.key in state.override_keys:
            logger.info("Row %d re-imported over existing record %s", row.line_number, existing.id)
            state.result.reimported_duplicates.append(duplicate)
            return False

        logger.debug("Row %d duplicates persisted record %s via %s", row.line_number, existing.id, match.strategy)
        if revenue:
            state.result.revenue_persisted_duplicates.append(duplicate)
        else:
            state.result.persisted_duplicates.append(duplicate)
        return True

    def _resolve_project(self, state: _ImportRun, row: ValidatedRow) -> tuple[str, bool]:
        token = row.project_token
        if not token:
            return self.settings.unassigned_project_id, True

        candidate = state.projects.resolve(token)
        if candidate is not None:
            if candidate.match_type == MatchType.ALIAS:
                decision = MatchDecision.ALIAS_MATCHED
            elif candidate.match_type == MatchType.FUZZY:
                decision = MatchDecision.FUZZY_MATCHED
            else:
                decision = MatchDecision.AUTO_MATCHED
            state.result.match_log.append(
                MatchLogEntry(
                    source_text=token,
                    entity_type=EntityKind.PROJECT.value,
                    decision=decision,
                    matched_entity_id=candidate.entity_id,
                    matched_name=candidate.display_name,
                    confidence=candidate.confidence,
                    algorithm=candidate.detail,
                )
            )
            return candidate.entity_id, False

        unmatched = state.unmatched_projects.get(token)
        if unmatched is None:
            unmatched = UnmatchedProject(
                token=token,
                suggestions=state.projects.suggest(token, threshold=self.matching.project_suggestion_threshold),
            )
            state.unmatched_projects[token] = unmatched
            state.result.match_log.append(
                MatchLogEntry(source_text=token, entity_type=EntityKind.PROJECT.value, decision=MatchDecision.UNMATCHED)
            )
        unmatched.transaction_count += 1
        unmatched.total_amount = unmatched.total_amount + row.amount.abs()
        return self.settings.unassigned_project_id, True

    async def _resolve_payee(self, state: _ImportRun, row: ValidatedRow) -> tuple[str | None, str | None]:
        name = row.name.strip()
        if not name:
            return None, None

        key = name.lower()
        if key in state.payee_decisions:
            if key in state.pending_payees:
                state.pending_payees[key].row_count += 1
            return state.payee_decisions[key]

        match = state.payees.resolve(name)
        result = state.result

        if match.accepted is not None:
            entity = state.payees.get(match.accepted.entity_id)
            canonical = entity.display_name if entity else match.accepted.display_name
            result.fuzzy_matches.append(AcceptedMatch(source_name=name, candidate=match.accepted))
            exact = match.accepted.match_type == MatchType.EXACT
            result.match_log.append(
                MatchLogEntry(
                    source_text=name,
                    entity_type=EntityKind.PAYEE.value,
                    decision=MatchDecision.AUTO_MATCHED if exact else MatchDecision.FUZZY_MATCHED,
                    matched_entity_id=match.accepted.entity_id,
                    matched_name=canonical,
                    confidence=match.accepted.confidence,
                    algorithm="exact" if exact else BLENDED_ALGORITHM,
                )
            )
            decision: tuple[str | None, str | None] = (match.accepted.entity_id, canonical)

        elif match.candidates or not self.settings.auto_create_payees:
            state.pending_payees[key] = PendingReview(
                source_name=name,
                suggestions=match.candidates[:5],
                suggested_payee_type=detect_payee_type(row.account_path),
            )
            result.match_log.append(
                MatchLogEntry(
                    source_text=name,
                    entity_type=EntityKind.PAYEE.value,
                    decision=MatchDecision.PENDING_REVIEW,
                    matched_entity_id=match.candidates[0].entity_id if match.candidates else None,
                    confidence=match.candidates[0].confidence if match.candidates else None,
                    algorithm=BLENDED_ALGORITHM,
                )
            )
            decision = (None, None)

        else:
            payee_type = detect_payee_type(row.account_path)
            try:
                payee_id = await self.store.insert_payee(name, payee_type)
            except StoreError as e:
                raise ImportRunError(f"Failed to create payee {name!r}: {e}") from e

            state.payees.register(
                CanonicalEntity(id=payee_id, display_name=name, kind=EntityKind.PAYEE, payee_type=payee_type)
            )
            result.auto_created_payees.append(CreatedPayee(id=payee_id, name=name, payee_type=payee_type))
            result.match_log.append(
                MatchLogEntry(
                    source_text=name,
                    entity_type=EntityKind.PAYEE.value,
                    decision=MatchDecision.CREATED,
                    matched_entity_id=payee_id,
                    matched_name=name,
                )
            )
            logger.info("Created payee %r (%s)", name, payee_type.value)
            decision = (payee_id, name)

        state.payee_decisions[key] = decision
        return decision

    def _resolve_client(self, state: _ImportRun, row: ValidatedRow) -> str | None:
        name = row.name.strip()
        if not name:
            return None

        key = name.lower()
        if key in state.client_decisions:
            if key in state.pending_clients:
                state.pending_clients[key].row_count += 1
            return state.client_decisions[key]

        match = state.clients.resolve(name)
        client_id = None
        if match.accepted is not None:
            client_id = match.accepted.entity_id
            state.result.client_matches.append(AcceptedMatch(source_name=name, candidate=match.accepted))
            decision = (
                MatchDecision.AUTO_MATCHED if match.accepted.match_type == MatchType.EXACT else MatchDecision.FUZZY_MATCHED
            )
        else:
            state.pending_clients[key] = PendingReview(source_name=name, suggestions=match.candidates[:5])
            decision = MatchDecision.PENDING_REVIEW if match.candidates else MatchDecision.UNMATCHED

        top = match.candidates[0] if match.candidates else None
        state.result.match_log.append(
            MatchLogEntry(
                source_text=name,
                entity_type=EntityKind.CLIENT.value,
                decision=decision,
                matched_entity_id=top.entity_id if top else None,
                matched_name=top.display_name if top else None,
                confidence=top.confidence if top else None,
                algorithm=BLENDED_ALGORITHM,
            )
        )
        state.client_decisions[key] = client_id
        return client_id
