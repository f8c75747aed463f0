"""Shared console utilities for CLI commands."""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from pulseguard.config import ConfigError, PulseGuardConfig, load_config

# Shared console instance for all CLI commands
console = Console()


def error(msg: str) -> None:
    """Print an error message in red."""
    console.print(f"[red]{msg}[/red]")


def warning(msg: str) -> None:
    """Print a warning message in yellow."""
    console.print(f"[yellow]{msg}[/yellow]")


def success(msg: str) -> None:
    """Print a success message in green."""
    console.print(f"[green]{msg}[/green]")


def info(msg: str) -> None:
    console.print(f"[cyan]{msg}[/cyan]")


def dim(msg: str) -> None:
    console.print(f"[dim]{msg}[/dim]")


def create_table(
    title: str,
    columns: list[tuple[str, str | dict]],
) -> Table:
    """Create a styled table with consistent formatting.

    Args:
        title: Table title.
        columns: List of (name, style) or (name, kwargs_dict) tuples.
    """
    table = Table(title=title)
    for name, style_or_kwargs in columns:
        if isinstance(style_or_kwargs, dict):
            table.add_column(name, **style_or_kwargs)
        else:
            table.add_column(name, style=style_or_kwargs)
    return table


def load_config_or_exit(config_path: Path | None) -> PulseGuardConfig:
    """Load configuration, printing a readable error and exiting on failure."""
    try:
        return load_config(config_path)
    except FileNotFoundError as e:
        error(str(e))
        dim("Create config.toml with at least a [models.default] section.")
        raise typer.Exit(1) from None
    except (ConfigError, ValueError) as e:
        error(f"Invalid configuration: {e}")
        raise typer.Exit(1) from None
