"""Pure state transitions for the expense ledger.

This module contains the functional core of the ledger:
- No I/O operations (no network, no storage, no console)
- No side effects; the current time is passed in
- Every intent maps to exactly one transition

Intents are frozen dataclasses. ``reduce`` returns the new state together
with an error message; when the message is set the state is returned
unchanged.
"""

import math
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from tally.domain.models import Expense, ExpenseId, LedgerState


@dataclass(frozen=True)
class FetchStart:
    """A request to the remote service has been dispatched."""


@dataclass(frozen=True)
class FetchSuccess:
    """The full ledger was fetched from the remote service."""

    expenses: tuple[Expense, ...]
    budget: Decimal | None = None


@dataclass(frozen=True)
class FetchError:
    """A request to the remote service (or a local validation) failed."""

    message: str


@dataclass(frozen=True)
class AddExpense:
    """A created expense was confirmed by the remote service."""

    expense: Expense


@dataclass(frozen=True)
class UpdateExpense:
    """An expense was replaced on the remote service."""

    expense: Expense


@dataclass(frozen=True)
class DeleteExpense:
    """An expense was deleted on the remote service."""

    expense_id: ExpenseId


@dataclass(frozen=True)
class SetBudget:
    """The monthly budget was changed locally."""

    amount: Any


@dataclass(frozen=True)
class ImportExpenses:
    """A whole import batch was confirmed by the remote service."""

    expenses: tuple[Expense, ...]


@dataclass(frozen=True)
class ClearError:
    """The visible error was dismissed or timed out."""


Intent = (
    FetchStart
    | FetchSuccess
    | FetchError
    | AddExpense
    | UpdateExpense
    | DeleteExpense
    | SetBudget
    | ImportExpenses
    | ClearError
)


def validate_budget(amount: Any) -> tuple[Decimal | None, str | None]:
    """Validate a proposed monthly budget.

    Args:
        amount: Proposed budget (number or numeric string).

    Returns:
        Tuple of (budget, error_message). Zero is a valid budget.
    """
    if isinstance(amount, bool) or amount is None:
        return None, "Invalid budget amount"

    if isinstance(amount, float) and not math.isfinite(amount):
        return None, "Invalid budget amount"

    try:
        budget = Decimal(str(amount).strip())
    except InvalidOperation:
        return None, "Invalid budget amount"

    if not budget.is_finite() or budget < 0:
        return None, "Invalid budget amount"

    return budget, None


def merge_expenses(existing: tuple[Expense, ...], incoming: tuple[Expense, ...]) -> tuple[Expense, ...]:
    """Append expenses, replacing in place any whose id is already present.

    Keeps insertion order and guarantees no two expenses share an id.

    Args:
        existing: Current ledger expenses.
        incoming: Expenses to append.

    Returns:
        Merged expenses.
    """
    merged: dict[ExpenseId | None, Expense] = {expense.id: expense for expense in existing}
    for expense in incoming:
        merged[expense.id] = expense
    return tuple(merged.values())


def replace_expense(expenses: tuple[Expense, ...], updated: Expense) -> tuple[Expense, ...] | None:
    """Replace the expense with a matching id.

    Returns:
        New expenses, or None if no expense has that id.
    """
    if not any(expense.id == updated.id for expense in expenses):
        return None
    return tuple(updated if expense.id == updated.id else expense for expense in expenses)


def remove_expense(expenses: tuple[Expense, ...], expense_id: ExpenseId) -> tuple[Expense, ...] | None:
    """Remove the expense with a matching id.

    Returns:
        New expenses, or None if no expense has that id.
    """
    remaining = tuple(expense for expense in expenses if expense.id != expense_id)
    if len(remaining) == len(expenses):
        return None
    return remaining


def reduce(state: LedgerState, intent: Intent, now: datetime) -> tuple[LedgerState, str | None]:
    """Apply an intent to the ledger state.

    Args:
        state: Current state.
        intent: Intent to apply.
        now: Timestamp recorded as ``last_updated`` on mutating transitions.

    Returns:
        Tuple of (new_state, error_message). On error the state is unchanged.

    Raises:
        TypeError: If the intent is not one of the known intent types.
    """
    if isinstance(intent, FetchStart):
        return replace(state, loading=True, error=None), None

    if isinstance(intent, FetchSuccess):
        budget = intent.budget if intent.budget is not None else state.budget
        return (
            replace(
                state,
                expenses=merge_expenses((), intent.expenses),
                budget=budget,
                loading=False,
                error=None,
                last_updated=now,
            ),
            None,
        )

    if isinstance(intent, FetchError):
        return replace(state, loading=False, error=intent.message), None

    if isinstance(intent, AddExpense):
        expenses = merge_expenses(state.expenses, (intent.expense,))
        return replace(state, expenses=expenses, loading=False, last_updated=now), None

    if isinstance(intent, ImportExpenses):
        expenses = merge_expenses(state.expenses, intent.expenses)
        return replace(state, expenses=expenses, loading=False, last_updated=now), None

    if isinstance(intent, UpdateExpense):
        updated = replace_expense(state.expenses, intent.expense)
        if updated is None:
            return replace(state, loading=False), None
        return replace(state, expenses=updated, loading=False, last_updated=now), None

    if isinstance(intent, DeleteExpense):
        remaining = remove_expense(state.expenses, intent.expense_id)
        if remaining is None:
            return replace(state, loading=False), None
        return replace(state, expenses=remaining, loading=False, last_updated=now), None

    if isinstance(intent, SetBudget):
        budget, error = validate_budget(intent.amount)
        if error:
            return state, error
        return replace(state, budget=budget, last_updated=now), None

    if isinstance(intent, ClearError):
        return replace(state, error=None), None

    raise TypeError(f"Unknown intent: {intent!r}")
