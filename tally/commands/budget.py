"""Budget command for setting and checking the monthly budget."""

from decimal import Decimal

from tally.commands.context import console, exit_on_error, format_money, open_ledger
from tally.dates import current_month, month_range
from tally.domain.budget import BudgetStatus
from tally.domain.models import Month

BAR_WIDTH = 30

BAND_STYLES = {
    "ok": "green",
    "warning": "yellow",
    "over": "red",
}


def render_progress_bar(status: BudgetStatus, width: int = BAR_WIDTH) -> str:
    """Render the budget progress bar with rich markup.

    Args:
        status: Budget status to render.
        width: Bar width in characters.

    Returns:
        Colored bar, e.g. "[green]██████░░░░[/green]".
    """
    filled = int(status.display_percent / 100 * width)
    style = BAND_STYLES[status.band]
    return f"[{style}]{'█' * filled}{'░' * (width - filled)}[/{style}]"


def render_budget_status(status: BudgetStatus, currency: str) -> None:
    """Print spend-vs-budget status for a month."""
    _, _, label = month_range(status.month)
    console.print(f"[bold cyan]{label}[/bold cyan]\n")
    console.print(f"  [bold]Spent:[/bold] {format_money(status.total_spent, currency)}")
    console.print(f"  [dim]{len(status.current_month_expenses)} expenses this month[/dim]")

    if not status.is_set or status.budget is None or status.remaining is None:
        console.print("\n[yellow]No monthly budget set. Use 'tally budget --set <amount>'.[/yellow]")
        return

    console.print(f"  [bold]Budget:[/bold] {format_money(status.budget, currency)}")
    if status.is_over_budget:
        console.print(f"  [bold red]Over:[/bold red] {format_money(status.remaining, currency)}")
    else:
        console.print(f"  [bold green]Remaining:[/bold green] {format_money(status.remaining, currency)}")

    console.print(f"\n  {render_progress_bar(status)} {status.progress_percent:.1f}% of budget used")


def budget_command(set_amount: str | None = None, month: str | None = None) -> None:
    """Set the monthly budget, or show spending against it."""
    if set_amount is not None:
        with open_ledger(fetch=False) as (service, settings):
            result = service.set_budget(set_amount)
            exit_on_error(result)
            budget: Decimal = result.value
            console.print(f"[green]✓[/green] Monthly budget set to {format_money(budget, settings.currency)}")
        return

    with open_ledger() as (service, settings):
        status = service.budget_status(Month(month) if month else current_month())
        render_budget_status(status, settings.currency)
