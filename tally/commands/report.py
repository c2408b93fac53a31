"""Report and trend commands for viewing spending."""

from decimal import Decimal

from tally.commands.context import console, format_money, open_ledger
from tally.dates import current_month, month_range, short_month_label
from tally.domain.budget import (
    calculate_budget_percentage,
    calculate_histogram_bar_length,
    category_totals,
    expenses_in_month,
    monthly_totals,
    total_amount,
)
from tally.domain.models import CategoryName, Month


def render_category_line(
    category: CategoryName,
    amount: Decimal,
    currency: str,
    histogram: bool,
    max_amount: Decimal | None,
    bar_width: int,
) -> None:
    """Render single category line.

    Args:
        category: Category name.
        amount: Total spent in the category.
        currency: Currency symbol.
        histogram: Whether to show histogram bars.
        max_amount: Maximum amount for histogram scaling.
        bar_width: Width of histogram bar in characters.
    """
    amount_display = format_money(amount, currency)

    if histogram and max_amount:
        bar_length = calculate_histogram_bar_length(amount, max_amount, bar_width)
        bar = "█" * bar_length
        console.print(f"  {category:20} {amount_display:>14} {bar}")
    else:
        console.print(f"  {category}: {amount_display}")


def report_command(
    sort_by: str = "value",
    histogram: bool = True,
    all: bool = False,
    month: str | None = None,
) -> None:
    """Show spending by category."""
    with open_ledger() as (service, settings):
        state = service.store.state
        if all:
            expenses = state.expenses
            period = "All Time"
        else:
            report_month = Month(month) if month else current_month()
            expenses = expenses_in_month(state.expenses, report_month)
            _, _, period = month_range(report_month)

        if not expenses:
            console.print("[dim]No expenses yet[/dim]")
            return

        totals = category_totals(expenses, sort_by)
        console.print(f"[bold cyan]{period}[/bold cyan]\n")
        console.print("[bold red]Expenses by category:[/bold red]\n")

        max_amount = max(amount for _, amount in totals) if histogram else None
        for category, amount in totals:
            render_category_line(category, amount, settings.currency, histogram, max_amount, 30)

        total = total_amount(expenses)
        budget_display = ""
        if not all and state.budget is not None:
            percentage = calculate_budget_percentage(total, state.budget)
            budget_display = f" / {format_money(state.budget, settings.currency)} ({percentage:.0f}%)"

        console.print(f"\n  [bold]Total expenses:[/bold] {format_money(total, settings.currency)}{budget_display}\n")


def trend_command(months: int = 12) -> None:
    """Show monthly totals for recent months."""
    with open_ledger() as (service, settings):
        totals = monthly_totals(service.store.state.expenses, current_month(), months)

        if all(entry.total == 0 for entry in totals):
            console.print("[dim]Not enough data[/dim]")
            return

        max_amount = max(entry.total for entry in totals)
        console.print("[bold cyan]Monthly expenses[/bold cyan]\n")
        for entry in totals:
            bar = "█" * calculate_histogram_bar_length(entry.total, max_amount, 40)
            amount_display = format_money(entry.total, settings.currency)
            console.print(f"  {short_month_label(entry.month):8} {amount_display:>14} [blue]{bar}[/blue]")
