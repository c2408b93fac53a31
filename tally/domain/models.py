"""Domain types for tally.

These NewTypes provide semantic clarity and help with type checking:
- ExpenseId: Canonical identifier of an expense record
- Month: Month in YYYY-MM format
- CategoryName: Name of an expense category
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import NewType

# Canonical identifier, whatever field name the remote service used for it
ExpenseId = NewType("ExpenseId", str)

# Month is always in YYYY-MM format (e.g., "2025-01")
Month = NewType("Month", str)

# Category name for expenses
CategoryName = NewType("CategoryName", str)

DEFAULT_CATEGORIES: tuple[CategoryName, ...] = tuple(
    CategoryName(name)
    for name in ("Food", "Travel", "Bills", "Shopping", "Entertainment", "Healthcare", "Education", "Misc")
)


@dataclass(frozen=True)
class Expense:
    """Immutable expense record as held by the ledger."""

    id: ExpenseId | None
    date: str  # YYYY-MM-DD
    category: CategoryName
    amount: Decimal
    note: str | None = None


@dataclass(frozen=True)
class ImportCandidate:
    """Validated import row, not yet submitted to the remote service."""

    date: str
    category: CategoryName
    amount: Decimal
    note: str = ""


@dataclass(frozen=True)
class LedgerState:
    """Immutable snapshot of everything the ledger knows."""

    expenses: tuple[Expense, ...] = ()
    budget: Decimal | None = None
    loading: bool = False
    error: str | None = None
    last_updated: datetime | None = None
    categories: tuple[CategoryName, ...] = field(default=DEFAULT_CATEGORIES)

    def find(self, expense_id: ExpenseId) -> Expense | None:
        """Return the expense with the given id, if present."""
        for expense in self.expenses:
            if expense.id == expense_id:
                return expense
        return None
