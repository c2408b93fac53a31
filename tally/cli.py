"""CLI entry point for tally."""

import typer

from tally.commands.admin import init_command, login_command, logout_command
from tally.commands.budget import budget_command
from tally.commands.expenses import add_command, delete_command, list_command, update_command
from tally.commands.report import report_command, trend_command
from tally.commands.sync import export_command, import_command

app = typer.Typer(
    name="tally",
    help="Tally - track your expenses against a monthly budget",
    add_completion=False,
)


@app.callback()
def main() -> None:
    """Tally - track your expenses against a monthly budget."""
    pass


@app.command(name="init")
def init(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing config"),
) -> None:
    """Initialize tally configuration."""
    init_command(force)


@app.command()
def login(
    token: str = typer.Option(..., "--token", help="Bearer token for the expense service", prompt=True, hide_input=True),
) -> None:
    """Save your bearer token."""
    login_command(token)


@app.command()
def logout() -> None:
    """Forget your bearer token."""
    logout_command()


@app.command(name="list")
def list_expenses(
    limit: int = typer.Option(50, help="Maximum expenses to show"),
    all: bool = typer.Option(False, "--all", "-a", help="Show all your expenses"),
    month: str = typer.Option(None, "--month", help="Specific month (YYYY-MM)"),
) -> None:
    """List your expenses."""
    list_command(limit, all, month)


@app.command()
def add(
    category: str,
    amount: str,
    date: str = typer.Option(None, "--date", "-d", help="Expense date (default: today)"),
    note: str = typer.Option(None, "--note", "-n", help="Optional note"),
) -> None:
    """Add an expense."""
    add_command(category, amount, date, note)


@app.command()
def update(
    expense_id: str,
    category: str = typer.Option(None, "--category", "-c", help="New category"),
    amount: str = typer.Option(None, "--amount", help="New amount"),
    date: str = typer.Option(None, "--date", "-d", help="New date"),
    note: str = typer.Option(None, "--note", "-n", help="New note"),
) -> None:
    """Update an expense."""
    update_command(expense_id, category, amount, date, note)


@app.command()
def delete(expense_id: str) -> None:
    """Delete an expense."""
    delete_command(expense_id)


@app.command(name="import")
def import_csv(csv_path: str) -> None:
    """Import your expenses from a CSV file (Date,Category,Amount,Note)."""
    import_command(csv_path)


@app.command()
def export(
    output: str = typer.Option(None, "--output", "-o", help="Output file (default: expenses_<today>.csv)"),
) -> None:
    """Export your expenses to a CSV file."""
    export_command(output)


@app.command()
def budget(
    set_amount: str = typer.Option(None, "--set", help="Set your monthly budget"),
    month: str = typer.Option(None, "--month", help="Month to show (YYYY-MM)"),
) -> None:
    """Set your monthly budget or show your spending against it."""
    budget_command(set_amount, month)


@app.command(name="report")
def report(
    sort_by: str = typer.Option("value", help="Sort by 'value' or 'alpha'"),
    histogram: bool = typer.Option(True, help="Show histogram of your spending"),
    all: bool = typer.Option(False, "--all", "-a", help="Show all time"),
    month: str = typer.Option(None, "--month", help="Specific month (YYYY-MM)"),
) -> None:
    """Show your spending breakdown by category."""
    report_command(sort_by, histogram, all, month)


@app.command()
def trend(
    months: int = typer.Option(12, "--months", help="Number of months to show"),
) -> None:
    """Show your monthly spending trend."""
    trend_command(months)


if __name__ == "__main__":
    app()
