"""Identifier normalization for records returned by the remote service.

The service is inconsistent about what it calls the primary key: some
responses carry ``id``, others only the document store's ``_id``. Everything
downstream of this module sees a single canonical ``Expense.id``.

Pure functions only. Nothing here guesses an identifier: a record without a
recognized field normalizes to ``id=None`` and callers must reject it.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from tally.domain.models import CategoryName, Expense, ExpenseId

# Checked in order; the first one present with a non-null value wins
ID_FIELDS = ("id", "_id")


def extract_id(record: dict[str, Any]) -> ExpenseId | None:
    """Find the canonical identifier of a raw record.

    Args:
        record: Raw record dictionary from the remote service.

    Returns:
        Identifier as a string, or None if no recognized field is present.
    """
    for field_name in ID_FIELDS:
        value = record.get(field_name)
        if value is not None and value != "":
            return ExpenseId(str(value))
    return None


def to_decimal(value: Any) -> Decimal:
    """Coerce a JSON number or numeric string to Decimal.

    Floats go through their string form so 12.3 stays 12.3 rather than
    12.300000000000000710542735760100185871124267578125.

    Raises:
        ValueError: If the value is not numeric.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    try:
        return Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ValueError(f"Not a number: {value!r}") from e


def normalize(record: dict[str, Any] | Expense) -> Expense:
    """Normalize a raw remote record into an Expense.

    Idempotent: an Expense is returned unchanged, and a record rendered
    from a normalized Expense normalizes back to an equal Expense.

    Args:
        record: Raw record dictionary or an already-normalized Expense.

    Returns:
        Expense with the canonical identifier (None if unrecognized).

    Raises:
        ValueError: If the amount is not numeric.
    """
    if isinstance(record, Expense):
        return record

    note = record.get("note")
    return Expense(
        id=extract_id(record),
        date=str(record.get("date") or "")[:10],
        category=CategoryName(str(record.get("category") or "")),
        amount=to_decimal(record.get("amount", 0)),
        note=str(note) if note is not None else None,
    )


def to_record(expense: Expense) -> dict[str, Any]:
    """Render an Expense as a canonical record dictionary."""
    return {
        "id": expense.id,
        "date": expense.date,
        "category": expense.category,
        "amount": str(expense.amount),
        "note": expense.note,
    }


def to_payload(date: str, category: str, amount: Decimal, note: str | None) -> dict[str, Any]:
    """Build the request body for creating or replacing an expense.

    The service expects ``amount`` as a JSON number.
    """
    return {
        "date": date,
        "category": category,
        "amount": float(amount),
        "note": note or "",
    }
