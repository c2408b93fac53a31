"""Wiring shared by the CLI commands."""

import sys
import tomllib
from collections.abc import Iterator
from contextlib import contextmanager
from decimal import Decimal
from pathlib import Path

from rich.console import Console

from tally.api import RequestExecutor
from tally.config import Settings, load_settings
from tally.domain.results import Err, ErrorKind, Result
from tally.logging_setup import configure_logging
from tally.service import LedgerService
from tally.store.ledger import LedgerStore
from tally.store.storage import FileStorage

console = Console()


def announce_session_expired() -> None:
    """Point the user at the login command after a 401."""
    console.print("[yellow]Your session has expired. Run 'tally login --token <token>' to sign in again.[/yellow]")


def get_settings(config_path: Path | None = None) -> Settings:
    """Load settings, exiting with a message if the config file is broken."""
    try:
        settings = load_settings(config_path)
    except (tomllib.TOMLDecodeError, ValueError) as e:
        console.print(f"[red]Config error: {e}[/red]", style="bold")
        sys.exit(1)
    configure_logging(settings.log_level)
    return settings


def build_service(settings: Settings, storage: FileStorage | None = None) -> LedgerService:
    """Create the store, executor and service for one CLI invocation."""
    if storage is None:
        storage = FileStorage()
    executor = RequestExecutor(
        settings.api_url,
        storage,
        max_attempts=settings.max_attempts,
        base_delay=settings.retry_delay,
        timeout=settings.timeout,
        on_session_expired=announce_session_expired,
    )
    return LedgerService(LedgerStore(), executor, storage)


def exit_on_error(result: Result) -> None:
    """Print an Err and exit with status 1; do nothing for Ok."""
    if not isinstance(result, Err):
        return
    if result.kind is ErrorKind.SESSION_EXPIRED:
        console.print(f"[red]{result.message}[/red]", style="bold")
    else:
        console.print(f"[red]Error: {result.message}[/red]", style="bold")
    sys.exit(1)


@contextmanager
def open_ledger(fetch: bool = True) -> Iterator[tuple[LedgerService, Settings]]:
    """Open the ledger for a command, loading budget and expenses.

    Args:
        fetch: Whether to fetch expenses from the service first.

    Yields:
        Tuple of (service, settings).
    """
    settings = get_settings()
    service = build_service(settings)
    try:
        if fetch:
            exit_on_error(service.load())
        yield service, settings
    finally:
        service.close()


def format_money(amount: Decimal, currency: str, include_sign: bool = False) -> str:
    """Format money amount for display.

    Args:
        amount: Amount to format.
        currency: Currency symbol.
        include_sign: Whether to prefix negative amounts with "-".

    Returns:
        Formatted string (e.g., "₹1,234.50" or "-₹20.00").
    """
    formatted = f"{currency}{abs(amount):,.2f}"
    if include_sign and amount < 0:
        return f"-{formatted}"
    return formatted
