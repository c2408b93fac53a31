"""Pure functions for budget tracking and spending summaries.

This module contains the functional core for budget operations:
- No I/O operations (no network, no storage, no console)
- No side effects
- Pure data transformations
- Easy to test

Expense amounts are positive Decimals; a budget of None means "unset".
"""

from dataclasses import dataclass
from decimal import Decimal

from tally.dates import month_of, previous_months
from tally.domain.models import CategoryName, Expense, LedgerState, Month

WARNING_PERCENT = Decimal(75)
DANGER_PERCENT = Decimal(90)


@dataclass(frozen=True)
class BudgetStatus:
    """Immutable spend-vs-budget status for a month."""

    month: Month
    current_month_expenses: tuple[Expense, ...]
    total_spent: Decimal
    budget: Decimal | None
    remaining: Decimal | None  # None when the budget is unset; negative when overspent
    progress_percent: Decimal  # Unclamped, may exceed 100

    @property
    def is_set(self) -> bool:
        return self.budget is not None

    @property
    def is_over_budget(self) -> bool:
        return self.remaining is not None and self.remaining < 0

    @property
    def display_percent(self) -> Decimal:
        """Progress clamped to 0-100 for progress bars."""
        return max(Decimal(0), min(self.progress_percent, Decimal(100)))

    @property
    def band(self) -> str:
        """Colour band for the progress: "ok", "warning" or "over"."""
        if self.progress_percent <= WARNING_PERCENT:
            return "ok"
        if self.progress_percent <= DANGER_PERCENT:
            return "warning"
        return "over"


@dataclass(frozen=True)
class MonthTotal:
    """Immutable total spent in one month."""

    month: Month
    total: Decimal


def expenses_in_month(expenses: tuple[Expense, ...], month: Month) -> tuple[Expense, ...]:
    """Filter expenses whose date falls in the given month.

    Args:
        expenses: Expenses to filter.
        month: Month in YYYY-MM format.

    Returns:
        Matching expenses in ledger order.
    """
    return tuple(expense for expense in expenses if month_of(expense.date) == month)


def total_amount(expenses: tuple[Expense, ...]) -> Decimal:
    """Sum expense amounts."""
    return sum((expense.amount for expense in expenses), Decimal(0))


def calculate_remaining(budget: Decimal | None, spent: Decimal) -> Decimal | None:
    """Calculate remaining budget.

    Args:
        budget: Monthly budget, or None if unset.
        spent: Total spent this month.

    Returns:
        Remaining amount (negative if overspent), or None if budget unset.
    """
    if budget is None:
        return None
    return budget - spent


def calculate_budget_percentage(spent: Decimal, budget: Decimal | None) -> Decimal:
    """Calculate percentage of budget used.

    Args:
        spent: Amount spent.
        budget: Budget amount, or None if unset.

    Returns:
        Percentage of budget used (0-100+); 0 when budget is unset or zero.
    """
    if budget is None or budget <= 0:
        return Decimal(0)
    return spent / budget * 100


def compute_budget_status(state: LedgerState, month: Month) -> BudgetStatus:
    """Compute spend-vs-budget status for a month.

    Args:
        state: Current ledger state.
        month: Reference month in YYYY-MM format.

    Returns:
        BudgetStatus for the month.
    """
    current = expenses_in_month(state.expenses, month)
    spent = total_amount(current)

    return BudgetStatus(
        month=month,
        current_month_expenses=current,
        total_spent=spent,
        budget=state.budget,
        remaining=calculate_remaining(state.budget, spent),
        progress_percent=calculate_budget_percentage(spent, state.budget),
    )


def monthly_totals(expenses: tuple[Expense, ...], month: Month, months: int = 12) -> list[MonthTotal]:
    """Calculate totals for a window of months ending at ``month``.

    Args:
        expenses: All ledger expenses.
        month: Last month in the window (YYYY-MM).
        months: Window length.

    Returns:
        One MonthTotal per month, oldest first; months without spending are 0.
    """
    totals: dict[Month, Decimal] = {m: Decimal(0) for m in previous_months(month, months)}
    for expense in expenses:
        key = month_of(expense.date)
        if key in totals:
            totals[key] += expense.amount
    return [MonthTotal(month=m, total=total) for m, total in totals.items()]


def category_totals(expenses: tuple[Expense, ...], sort_by: str = "value") -> list[tuple[CategoryName, Decimal]]:
    """Total expenses per category.

    Args:
        expenses: Expenses to group.
        sort_by: Sort method - "value" (largest first) or "alpha".

    Returns:
        Sorted list of (category, total) tuples.
    """
    totals: dict[CategoryName, Decimal] = {}
    for expense in expenses:
        totals[expense.category] = totals.get(expense.category, Decimal(0)) + expense.amount

    if sort_by == "alpha":
        return sorted(totals.items(), key=lambda x: x[0])
    return sorted(totals.items(), key=lambda x: x[1], reverse=True)


def calculate_histogram_bar_length(amount: Decimal, max_amount: Decimal, bar_width: int) -> int:
    """Calculate histogram bar length.

    Args:
        amount: Amount to display.
        max_amount: Maximum amount in dataset.
        bar_width: Maximum bar width in characters.

    Returns:
        Bar length in characters.
    """
    if max_amount <= 0:
        return 0
    return int(abs(amount) / max_amount * bar_width)
