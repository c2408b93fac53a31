"""CSV import and export files.

Import files and exports share one header: Date,Category,Amount,Note.
Reading returns raw rows only; validation lives in ``tally.domain.imports``.
"""

import csv
import io
from datetime import date
from pathlib import Path
from typing import Any

from tally.domain.imports import CSV_HEADERS
from tally.domain.models import Expense
from tally.domain.results import Err, ErrorKind, Ok, Result

MAX_IMPORT_BYTES = 2 * 1024 * 1024


def read_import_file(csv_path: Path, max_bytes: int = MAX_IMPORT_BYTES) -> Result:
    """Read raw rows from an import file.

    Args:
        csv_path: Path to the CSV file.
        max_bytes: Largest accepted file size.

    Returns:
        Ok with a list of row dictionaries keyed by header, or
        Err(VALIDATION_FAILURE) if the file is missing, too large or unreadable.
    """
    try:
        size = csv_path.stat().st_size
    except OSError as e:
        return Err(ErrorKind.VALIDATION_FAILURE, f"Cannot read {csv_path}: {e.strerror or e}")

    if size > max_bytes:
        return Err(ErrorKind.VALIDATION_FAILURE, "File too large")

    try:
        with open(csv_path, encoding="utf-8-sig", newline="") as f:
            rows = parse_csv_text(f.read())
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        return Err(ErrorKind.VALIDATION_FAILURE, f"Cannot read {csv_path}: {e}")

    return Ok(rows)


def parse_csv_text(text: str) -> list[dict[str, Any]]:
    """Parse CSV text with a header row into row dictionaries.

    Blank lines are skipped.

    Raises:
        csv.Error: If the text is not valid CSV.
    """
    reader = csv.DictReader(io.StringIO(text))
    return [row for row in reader if any((value or "").strip() for value in row.values() if isinstance(value, str))]


def render_csv(expenses: tuple[Expense, ...]) -> str:
    """Render expenses as CSV text in ledger order."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for expense in expenses:
        writer.writerow([expense.date, expense.category, str(expense.amount), expense.note or ""])
    return buffer.getvalue()


def default_export_name(today: date | None = None) -> str:
    """Default export filename, e.g. "expenses_2025-01-31.csv"."""
    if today is None:
        today = date.today()
    return f"expenses_{today.isoformat()}.csv"


def write_export(expenses: tuple[Expense, ...], output_path: Path) -> Result:
    """Write expenses to a CSV file.

    Returns:
        Ok with the number of exported expenses, or Err(VALIDATION_FAILURE)
        if there is nothing to export or the file cannot be written.
    """
    if not expenses:
        return Err(ErrorKind.VALIDATION_FAILURE, "No expenses to export")

    try:
        output_path.write_text(render_csv(expenses), encoding="utf-8")
    except OSError as e:
        return Err(ErrorKind.VALIDATION_FAILURE, f"Cannot write {output_path}: {e.strerror or e}")

    return Ok(len(expenses))
