"""Expense commands: list, add, update and delete."""

import sys

from rich.table import Table

from tally.commands.context import console, exit_on_error, format_money, open_ledger
from tally.domain.budget import total_amount
from tally.domain.models import ExpenseId, Month


def list_command(limit: int = 50, all: bool = False, month: Month | None = None) -> None:
    """List expenses, newest first."""
    with open_ledger() as (service, settings):
        expenses = service.store.state.expenses
        if month:
            expenses = tuple(e for e in expenses if e.date.startswith(month))

        if not expenses:
            console.print("[yellow]No expenses found[/yellow]")
            return

        newest_first = sorted(expenses, key=lambda e: e.date, reverse=True)
        shown = newest_first if all else newest_first[:limit]

        title = f"Expenses (showing all {len(shown)})" if all else f"Expenses (showing {len(shown)})"
        table = Table(title=title)
        table.add_column("ID", style="dim")
        table.add_column("Date", style="cyan")
        table.add_column("Category", style="magenta")
        table.add_column("Amount", justify="right")
        table.add_column("Note", style="white")

        for expense in shown:
            table.add_row(
                str(expense.id),
                expense.date,
                expense.category,
                format_money(expense.amount, settings.currency),
                expense.note or "",
            )

        console.print(table)
        console.print(f"[bold]Total:[/bold] {format_money(total_amount(tuple(shown)), settings.currency)}")


def add_command(category: str, amount: str, date: str | None = None, note: str | None = None) -> None:
    """Add an expense."""
    with open_ledger(fetch=False) as (service, settings):
        if category not in service.store.state.categories:
            console.print(f"[dim]Note: '{category}' is not one of the usual categories[/dim]")

        result = service.add_expense(category, amount, date, note)
        exit_on_error(result)

        expense = result.value
        console.print(
            f"[green]✓[/green] Added {format_money(expense.amount, settings.currency)} "
            f"({expense.category}) on {expense.date} [dim]id {expense.id}[/dim]"
        )


def update_command(
    expense_id: str,
    category: str | None = None,
    amount: str | None = None,
    date: str | None = None,
    note: str | None = None,
) -> None:
    """Replace an expense's fields, keeping current values for options not given."""
    with open_ledger() as (service, settings):
        current = service.store.state.find(ExpenseId(expense_id))
        if current is None:
            console.print(f"[red]Expense '{expense_id}' not found[/red]", style="bold")
            sys.exit(1)

        result = service.update_expense(
            ExpenseId(expense_id),
            category if category is not None else current.category,
            amount if amount is not None else current.amount,
            date if date is not None else current.date,
            note if note is not None else current.note,
        )
        exit_on_error(result)

        expense = result.value
        console.print(
            f"[green]✓[/green] Updated {expense.id}: {format_money(expense.amount, settings.currency)} "
            f"({expense.category}) on {expense.date}"
        )


def delete_command(expense_id: str) -> None:
    """Delete an expense."""
    with open_ledger(fetch=False) as (service, _settings):
        exit_on_error(service.delete_expense(ExpenseId(expense_id)))
        console.print(f"[green]✓[/green] Deleted expense {expense_id}")
