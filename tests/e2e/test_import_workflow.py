#!/usr/bin/env python3
"""
E2E Tests for the Import Workflow

Runs the installed CLI in a subprocess against synthetic exports and a
record store in a temporary directory.

SAFETY: All tests use synthetic data under a temporary directory.
"""

import os
import subprocess
import sys
import tempfile
from pathlib import Path

import pytest

from jobledger.core.json_utils import read_json
from tests.fixtures.synthetic_data import generate_synthetic_export, save_registry, write_export_csv

SRC_DIR = Path(__file__).resolve().parents[2] / "src"


def run_cli(*args: str) -> subprocess.CompletedProcess:
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(SRC_DIR), env.get("PYTHONPATH")]))
    env["PYTHONIOENCODING"] = "utf-8"
    return subprocess.run(
        [sys.executable, "-m", "jobledger.cli.main", *args],
        capture_output=True,
        text=True,
        encoding="utf-8",
        timeout=60,
        env=env,
    )


@pytest.mark.e2e
def test_version_via_subprocess():
    """Test the CLI runs as a process."""
    result = run_cli("version")

    assert result.returncode == 0, result.stderr
    assert "jobledger v" in result.stdout


@pytest.mark.e2e
@pytest.mark.slow
def test_import_twice_is_idempotent():
    """
    Test importing the same export twice.

    Verifies:
    - First run imports every synthetic row
    - Second run imports nothing and finds every row already imported
    - Duplicate totals reconcile against the stored records
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        tmpdir_path = Path(tmpdir)
        store_dir = tmpdir_path / "store"
        save_registry(store_dir)

        rows = generate_synthetic_export(num_rows=20)
        csv_file = write_export_csv(tmpdir_path / "export.csv", rows)
        first_report = tmpdir_path / "first.json"
        second_report = tmpdir_path / "second.json"

        first = run_cli("import", "run", str(csv_file), "--store", str(store_dir), "--output", str(first_report))
        second = run_cli("import", "run", str(csv_file), "--store", str(store_dir), "--output", str(second_report))

        assert first.returncode == 0, first.stderr
        assert second.returncode == 0, second.stderr
        assert "Imported 20 expenses" in first.stdout
        assert "Imported 0 expenses" in second.stdout

        first_data = read_json(first_report)
        second_data = read_json(second_report)
        assert first_data["summary"]["imported_expenses"] == 20
        assert first_data["errors"] == []
        assert second_data["summary"]["imported_expenses"] == 0
        assert len(second_data["persisted_duplicates"]) == 20
        assert second_data["expense_reconciliation"]["within_tolerance"] is True
        assert len(read_json(store_dir / "expenses.json")) == 20


@pytest.mark.e2e
def test_dry_run_then_real_import():
    """Test a dry run leaves the store untouched for the real import that follows."""
    with tempfile.TemporaryDirectory() as tmpdir:
        tmpdir_path = Path(tmpdir)
        store_dir = tmpdir_path / "store"
        save_registry(store_dir)
        csv_file = write_export_csv(tmpdir_path / "export.csv", generate_synthetic_export(num_rows=5, seed=7))

        dry = run_cli(
            "import", "run", str(csv_file), "--store", str(store_dir), "--dry-run",
            "--output", str(tmpdir_path / "dry.json"),
        )
        real = run_cli("import", "run", str(csv_file), "--store", str(store_dir), "--output", str(tmpdir_path / "r.json"))

        assert dry.returncode == 0, dry.stderr
        assert "Dry run: nothing was written" in dry.stdout
        assert real.returncode == 0, real.stderr
        assert "Imported 5 expenses" in real.stdout
        assert read_json(tmpdir_path / "dry.json")["summary"]["imported_expenses"] == 5
