"""Pure functions for validating and deduplicating CSV import batches.

This module contains the functional core for imports:
- No I/O operations (the CSV file is read elsewhere)
- No side effects
- Validation always runs before deduplication, so duplicates are only
  judged among rows that are individually valid

Rows use the export header names: Date, Category, Amount, Note.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any

import pandas as pd

from tally.domain.models import CategoryName, ImportCandidate
from tally.domain.results import Err, ErrorKind, Ok, Result

DATE_COLUMN = "Date"
CATEGORY_COLUMN = "Category"
AMOUNT_COLUMN = "Amount"
NOTE_COLUMN = "Note"
CSV_HEADERS = (DATE_COLUMN, CATEGORY_COLUMN, AMOUNT_COLUMN, NOTE_COLUMN)

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_LEADING_NUMBER = re.compile(r"-?(\d+\.?\d*|\.\d+)")
# Every calendar date contains a digit; "today" and "now" do not
_HAS_DIGIT = re.compile(r"\d")

DedupKey = tuple[str, Decimal, str, str]


def parse_amount(raw: Any) -> Decimal | None:
    """Parse an amount cell.

    Strips everything except digits, the decimal point and minus signs,
    then reads the leading number ("₹1,200.50" -> 1200.50, "12.5.1" -> 12.5).

    Args:
        raw: Raw cell value.

    Returns:
        Parsed amount, or None if no number could be read.
    """
    if raw is None:
        return None
    cleaned = _NON_NUMERIC.sub("", str(raw))
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return None
    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return None


def parse_date(raw: str) -> str | None:
    """Parse a date cell into ISO format (YYYY-MM-DD).

    Uses pandas.to_datetime so ISO, American and long-form dates are all
    accepted. Cells without any digit are rejected before parsing.

    Args:
        raw: Raw date string.

    Returns:
        Normalized date, or None if it is not a valid calendar date.
    """
    if not _HAS_DIGIT.search(str(raw)):
        return None
    try:
        parsed = pd.to_datetime(raw)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return parsed.strftime("%Y-%m-%d")


def validate_row(row: dict[str, Any]) -> ImportCandidate | None:
    """Validate a single raw row.

    Args:
        row: Raw row keyed by CSV header. Unknown keys are ignored.

    Returns:
        ImportCandidate if valid, None if the row should be dropped.
    """
    raw_date = str(row.get(DATE_COLUMN) or "").strip()
    category = str(row.get(CATEGORY_COLUMN) or "").strip()
    if not raw_date or not category:
        return None

    amount = parse_amount(row.get(AMOUNT_COLUMN))
    if amount is None or amount <= 0:
        return None

    date = parse_date(raw_date)
    if date is None:
        return None

    note = str(row.get(NOTE_COLUMN) or "")
    return ImportCandidate(date=date, category=CategoryName(category), amount=amount, note=note)


def dedup_key(candidate: ImportCandidate) -> DedupKey:
    """Composite key under which two candidates count as the same expense."""
    return (candidate.date, candidate.amount, candidate.category, candidate.note)


def dedupe(raw_rows: list[dict[str, Any]]) -> Result:
    """Validate a raw import batch and collapse duplicate rows.

    Later rows with the same composite key overwrite earlier ones, but the
    key keeps the position of its first occurrence.

    Args:
        raw_rows: Rows keyed by CSV header.

    Returns:
        Ok with the list of unique candidates, or Err(INVALID_BATCH) if no
        row survived validation.
    """
    candidates: list[ImportCandidate] = []
    for row in raw_rows:
        candidate = validate_row(row)
        if candidate is not None:
            candidates.append(candidate)

    if not candidates:
        return Err(ErrorKind.INVALID_BATCH, "Invalid CSV")

    unique: dict[DedupKey, ImportCandidate] = {}
    for candidate in candidates:
        unique[dedup_key(candidate)] = candidate

    return Ok(list(unique.values()))
