"""Admin commands for init, login and logout."""

import sys

from tally.commands.context import console
from tally.config import create_default_config, get_config_path
from tally.store.storage import TOKEN_KEY, FileStorage, get_storage_path


def init_command(force: bool = False) -> None:
    """Create the tally configuration file."""
    config_path = get_config_path()

    if config_path.exists() and not force:
        console.print("[red]Initialization failed:[/red]", style="bold")
        console.print(f"  Config already exists: {config_path}")
        console.print("\n[yellow]Use 'tally init --force' to overwrite[/yellow]")
        sys.exit(1)

    try:
        console.print(f"[cyan]Creating config file at {config_path}...[/cyan]")
        create_default_config(config_path)
    except OSError as e:
        console.print(f"[red]Filesystem error: {e}[/red]", style="bold")
        sys.exit(1)

    console.print("[green]✓[/green] Config file created (permissions: 600)")
    console.print("\n[green]Initialization complete![/green]", style="bold")
    console.print(f"[dim]Config: {config_path}[/dim]")
    console.print("[dim]Set api_url in the config, then run 'tally login --token <token>'[/dim]")


def login_command(token: str) -> None:
    """Store the bearer token used for the expense service."""
    token = token.strip()
    if not token:
        console.print("[red]Token must not be empty[/red]", style="bold")
        sys.exit(1)

    try:
        FileStorage().set(TOKEN_KEY, token)
    except OSError as e:
        console.print(f"[red]Filesystem error: {e}[/red]", style="bold")
        sys.exit(1)

    console.print("[green]✓[/green] Token saved")
    console.print(f"[dim]Storage: {get_storage_path()}[/dim]")


def logout_command() -> None:
    """Forget the stored bearer token."""
    try:
        FileStorage().remove(TOKEN_KEY)
    except OSError as e:
        console.print(f"[red]Filesystem error: {e}[/red]", style="bold")
        sys.exit(1)

    console.print("[green]✓[/green] Logged out")
