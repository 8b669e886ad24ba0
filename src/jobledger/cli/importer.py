#!/usr/bin/env python3
"""
Import CLI - Bulk Transaction Import Commands

Command-line interface for running imports against the JSON record store.
"""

import asyncio
from dataclasses import replace
from datetime import datetime
from pathlib import Path

import click

from ..core.config import get_config
from ..core.json_utils import write_json
from ..importer import ImportPipeline, ImportRunError, load_transaction_csv
from ..matching.resolver import PayeeResolver
from ..matching.scorer import ConfidenceThresholds
from ..store import JsonRecordStore, StoreError


@click.group("import")
def import_group() -> None:
    """Bulk transaction import commands."""
    pass


@import_group.command("run")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--store", "store_dir", type=click.Path(file_okay=False, path_type=Path), help="Record store directory")
@click.option("--dry-run", is_flag=True, help="Match and report without writing anything")
@click.option("--no-auto-create", is_flag=True, help="Queue unknown payees for review instead of creating them")
@click.option("--override-key", "override_keys", multiple=True, help="Duplicate key to import anyway")
@click.option("--output", type=click.Path(dir_okay=False, path_type=Path), help="Report file path")
@click.pass_context
def run(
    ctx: click.Context,
    csv_file: Path,
    store_dir: Path | None,
    dry_run: bool,
    no_auto_create: bool,
    override_keys: tuple,
    output: Path | None,
) -> None:
    """
    Import an accounting export CSV.

    Examples:
      jobledger import run transactions.csv
      jobledger import run transactions.csv --dry-run --output report.json
      jobledger import run transactions.csv --override-key "2025-01-10|1200.00|abc"
    """
    config = get_config()
    store_path = store_dir or config.store_dir
    verbose = ctx.obj.get("verbose", False) if ctx.obj else False

    settings = config.importer
    if dry_run or no_auto_create:
        settings = replace(settings, auto_create_payees=False)

    if verbose:
        click.echo(f"Importing {csv_file}")
        click.echo(f"Record store: {store_path}")
        click.echo(f"Mode: {'dry run' if dry_run else 'import'}")
        click.echo()

    try:
        rows = load_transaction_csv(csv_file)
        store = JsonRecordStore(store_path)
        pipeline = ImportPipeline(store, config.matching, settings)
        result = asyncio.run(pipeline.run(rows, persist=not dry_run, override_keys=override_keys))
    except (ImportRunError, StoreError, ValueError) as e:
        click.echo(f"❌ Import failed: {e}", err=True)
        raise click.ClickException(str(e)) from e

    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    report_file = output or config.reports_dir / f"{timestamp}_import_{result.import_batch_id[:8]}.json"
    write_json(report_file, result.to_dict())

    click.echo(f"✅ Imported {result.imported_expenses} expenses and {result.imported_revenues} revenues")
    click.echo(f"   Unassigned: {result.unassociated_expenses} expenses, {result.unassociated_revenues} revenues")
    click.echo(
        f"   Duplicates: {len(result.in_file_duplicates) + len(result.revenue_in_file_duplicates)} in file, "
        f"{len(result.persisted_duplicates) + len(result.revenue_persisted_duplicates)} already imported"
    )
    if result.auto_created_payees:
        click.echo(f"   New payees: {len(result.auto_created_payees)}")
    if result.pending_payee_reviews:
        click.echo(f"   Payees needing review: {len(result.pending_payee_reviews)}")
    if result.errors:
        click.echo(f"   Errors: {len(result.errors)}")
        if verbose:
            for error in result.errors:
                click.echo(f"     {error}")
    if result.expense_reconciliation and not result.expense_reconciliation.within_tolerance:
        click.echo(f"   ⚠️  Expense reconciliation off by {result.expense_reconciliation.difference}")
    if dry_run:
        click.echo("   Dry run: nothing was written")
    click.echo(f"   Report saved to: {report_file}")


@import_group.command("match-payee")
@click.argument("name")
@click.option("--store", "store_dir", type=click.Path(file_okay=False, path_type=Path), help="Record store directory")
@click.pass_context
def match_payee(ctx: click.Context, name: str, store_dir: Path | None) -> None:
    """
    Show payee candidates for a vendor name.

    Example:
      jobledger import match-payee "ABC Construction LLC"
    """
    config = get_config()

    try:
        store = JsonRecordStore(store_dir or config.store_dir)
        registry = asyncio.run(store.load_registry())
    except StoreError as e:
        raise click.ClickException(str(e)) from e

    thresholds = ConfidenceThresholds(
        auto_accept=config.matching.auto_accept_threshold,
        review=config.matching.review_threshold,
    )
    match = PayeeResolver(registry.payees, thresholds).resolve(name)

    if not match.candidates:
        click.echo(f"No payee candidates for {name!r}")
        return

    for candidate in match.candidates:
        marker = "*" if match.accepted and candidate.entity_id == match.accepted.entity_id else " "
        click.echo(
            f"{marker} {candidate.confidence:6.2f}  {candidate.display_name}  "
            f"({candidate.match_type.value}, {candidate.entity_id})"
        )
