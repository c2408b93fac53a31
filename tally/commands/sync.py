"""Import and export commands for CSV files."""

from pathlib import Path

from tally.commands.context import console, exit_on_error, open_ledger
from tally.csvfile import default_export_name


def import_command(csv_path: str) -> None:
    """Import expenses from a CSV file with a Date,Category,Amount,Note header."""
    path = Path(csv_path).expanduser()
    with open_ledger() as (service, _settings):
        console.print(f"[cyan]Reading CSV file: {path}...[/cyan]")
        result = service.import_file(path)
        exit_on_error(result)
        console.print(f"[green]Imported {len(result.value)} items[/green]", style="bold")


def export_command(output: str | None = None) -> None:
    """Export the ledger to a CSV file."""
    path = Path(output).expanduser() if output else Path.cwd() / default_export_name()
    with open_ledger() as (service, _settings):
        result = service.export(path)
        exit_on_error(result)
        console.print(f"[green]✓[/green] Exported {result.value} expenses to {path}")
