#!/usr/bin/env python3
"""
Transaction Row Ingress

Loads accounting-export CSV files and turns each string-keyed row into a
typed, validated row before any matching logic runs.

Functions:
- load_transaction_csv: Read an export into a list of string maps
- TransactionRow.from_mapping: Pick the known columns out of a row map
- validate_row: Parse date and amount, raising RowValidationError on bad input
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import pandas as pd

from ..classification.rules import map_transaction_type
from ..core.dates import FinancialDate
from ..core.models import TransactionType
from ..core.money import Money

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("Date", "Transaction type", "Amount", "Name")

# Export column headers for each row field, in lookup order
COLUMN_NAMES: dict[str, tuple[str, ...]] = {
    "date": ("Date",),
    "transaction_type": ("Transaction type", "Type"),
    "amount": ("Amount",),
    "name": ("Name", "Payee", "Vendor"),
    "project_token": ("Project/WO #", "Project/WO", "Project"),
    "account_full_name": ("Account full name", "Distribution account"),
    "account_name": ("Account name", "Account"),
    "invoice_number": ("Invoice #", "Invoice number", "Num"),
}


class RowValidationError(ValueError):
    """Raised when a row cannot be imported (bad date, bad amount, missing field)."""

    pass


@dataclass(frozen=True)
class TransactionRow:
    """One export row with its known columns pulled out as strings."""

    line_number: int
    date: str = ""
    transaction_type: str = ""
    amount: str = ""
    name: str = ""
    project_token: str = ""
    account_full_name: str = ""
    account_name: str = ""
    invoice_number: str = ""
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any], line_number: int) -> "TransactionRow":
        """
        Build from a string-keyed row map.

        Header matching ignores case and surrounding whitespace; missing
        columns become empty strings.
        """
        lowered = {str(key).strip().lower(): value for key, value in mapping.items()}

        values: dict[str, str] = {}
        for field_name, headers in COLUMN_NAMES.items():
            value = ""
            for header in headers:
                cell = lowered.get(header.lower())
                if cell is not None and str(cell).strip():
                    value = str(cell).strip()
                    break
            values[field_name] = value

        return cls(line_number=line_number, raw=dict(mapping), **values)


@dataclass(frozen=True)
class ValidatedRow:
    """A row whose date and amount parsed cleanly. Amount keeps the export's sign."""

    line_number: int
    date: FinancialDate
    amount: Money
    transaction_type: TransactionType
    raw_type: str
    name: str
    project_token: str
    account_full_name: str
    account_name: str
    invoice_number: str
    source: TransactionRow = field(compare=False)

    @property
    def is_revenue(self) -> bool:
        """Invoice rows are revenue; everything else is an expense."""
        return self.transaction_type == TransactionType.INVOICE

    @property
    def account_path(self) -> str:
        """Full account path, falling back to the short account name."""
        return self.account_full_name or self.account_name

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "line_number": self.line_number,
            "date": self.date.to_iso_string(),
            "amount": self.amount.to_float(),
            "transaction_type": self.raw_type,
            "name": self.name,
            "project": self.project_token,
            "account": self.account_path,
            "invoice_number": self.invoice_number,
        }


def validate_row(row: TransactionRow) -> ValidatedRow:
    """
    Validate one row at the ingress boundary.

    Raises:
        RowValidationError: If the date or amount is missing or malformed
    """
    if not row.date:
        raise RowValidationError("Missing required field: Date")
    if not row.amount:
        raise RowValidationError("Missing required field: Amount")

    try:
        parsed_date = FinancialDate.from_csv_string(row.date)
    except ValueError as e:
        raise RowValidationError(f"Invalid date {row.date!r}") from e

    try:
        amount = Money.from_export(row.amount)
    except ValueError as e:
        raise RowValidationError(f"Invalid amount {row.amount!r}") from e

    return ValidatedRow(
        line_number=row.line_number,
        date=parsed_date,
        amount=amount,
        transaction_type=map_transaction_type(row.transaction_type),
        raw_type=row.transaction_type or "Expense",
        name=row.name,
        project_token=row.project_token,
        account_full_name=row.account_full_name,
        account_name=row.account_name,
        invoice_number=row.invoice_number,
        source=row,
    )


def _find_header_line(path: Path) -> int:
    """Index of the header line, skipping report titles above it."""
    with open(path, encoding="utf-8-sig") as f:
        for index, line in enumerate(f):
            cells = [cell.strip().strip('"').lower() for cell in line.split(",")]
            if "date" in cells and "amount" in cells:
                return index
    raise ValueError(f"No header row with Date and Amount columns found in {path}")


def load_transaction_csv(path: str | Path) -> list[dict[str, str]]:
    """
    Load an accounting export as a list of string maps.

    Report metadata lines above the header, blank rows, and "Total" footer
    rows are skipped. Every cell is read as a string.

    Args:
        path: CSV file path

    Returns:
        One dict per transaction row, keyed by column header

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the header or a required column is missing
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Transaction file not found: {path}")

    header_line = _find_header_line(path)
    df = pd.read_csv(
        path,
        skiprows=header_line,
        dtype=str,
        keep_default_na=False,
        encoding="utf-8-sig",
        skipinitialspace=True,
    )
    df.columns = [str(column).strip() for column in df.columns]
    df = df.drop(columns=[c for c in df.columns if c.startswith("Unnamed:") and not df[c].str.strip().any()])

    present = {column.lower() for column in df.columns}
    missing = [column for column in REQUIRED_COLUMNS if column.lower() not in present]
    if missing:
        raise ValueError(f"Missing required columns: {', '.join(missing)}")

    rows: list[dict[str, str]] = []
    skipped = 0
    for record in df.to_dict(orient="records"):
        values = [str(value).strip() for value in record.values()]
        if not any(values):
            skipped += 1
            continue
        first = next((value for value in values if value), "")
        if first.lower().startswith("total"):
            skipped += 1
            continue
        rows.append({str(key): str(value) for key, value in record.items()})

    logger.info("Loaded %d rows from %s (%d skipped)", len(rows), path, skipped)
    return rows
