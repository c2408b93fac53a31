#!/usr/bin/env python3
"""Generate the tally CLI reference from the typer app."""

import sys
from pathlib import Path
from typing import Any

# Add parent directory to path to import tally
sys.path.insert(0, str(Path(__file__).parent.parent))

import typer

from tally.cli import app


def format_option(option: Any) -> str:
    """Format an option as a Markdown list item."""
    flags = [*option.opts, *option.secondary_opts]
    line = "- " + ", ".join(f"`{flag}`" for flag in flags)
    if option.help:
        line += f": {option.help}"
    if option.default not in (None, False) and not option.required:
        line += f" (default: {option.default})"
    return line


def generate_command_doc(name: str, command: Any) -> str:
    """Generate documentation for a single command."""
    arguments = [p for p in command.params if p.param_type_name == "argument"]
    options = [p for p in command.params if p.param_type_name == "option"]
    usage = " ".join([f"uv run tally {name}", *(str(a.name).upper() for a in arguments)])

    lines = [
        f"### {name}",
        "",
        (command.help or "No description available.").strip(),
        "",
        "**Usage:**",
        "",
        "```bash",
        usage,
        "```",
        "",
    ]

    if arguments:
        lines += ["**Arguments:**", ""]
        lines += [f"- `{str(a.name).upper()}` (required)" for a in arguments]
        lines.append("")

    if options:
        lines += ["**Options:**", ""]
        lines += [format_option(o) for o in options]
        lines.append("")

    return "\n".join(lines)


def generate_cli_reference() -> str:
    """Generate complete CLI reference documentation."""
    group: Any = typer.main.get_command(app)

    lines = [
        "# tally CLI reference",
        "",
        "```bash",
        "uv run tally [COMMAND] [OPTIONS]",
        "```",
        "",
        "Every command accepts `--help`.",
        "",
        "## Commands",
        "",
    ]
    for name in sorted(group.commands):
        lines.append(generate_command_doc(name, group.commands[name]))

    return "\n".join(lines)


def main() -> None:
    """Generate and write CLI reference documentation."""
    output_path = Path(__file__).parent.parent / "docs" / "cli-commands.md"
    output_path.parent.mkdir(parents=True, exist_ok=True)

    output_path.write_text(generate_cli_reference(), encoding="utf-8")
    print(f"Generated CLI reference at {output_path}")


if __name__ == "__main__":
    main()
