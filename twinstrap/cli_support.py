"""Shared utilities for twinstrap CLI modules."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Tuple

import typer
from rich.console import Console

from twinstrap.config.loader import ConfigLoader
from twinstrap.models.project import WorkspaceConfig

# Default config search paths (ordered by proximity to current run)
CONFIG_PATHS = [
    "./twinstrap.yml",
    str(Path.home() / ".config" / "twinstrap" / "twinstrap.yml"),
]


def find_config(config_path: Optional[str] = None) -> str:
    """Locate the active workspace file."""
    if config_path:
        return config_path

    if env_config := os.environ.get("TWINSTRAP_CONFIG"):
        return env_config

    for path in CONFIG_PATHS:
        if Path(path).expanduser().exists():
            return path

    return "twinstrap.yml"


def is_mock() -> bool:
    """Return True when CLI runs in mock (dry-run) mode."""
    return os.environ.get("TWINSTRAP_MOCK") == "1"


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> None:
    """Set up file logging for CLI commands."""
    from twinstrap.core.logger import set_verbose
    from twinstrap.core.logger import setup_file_logging as _setup_file_logging
    _setup_file_logging(log_file=log_file, verbose=verbose)
    set_verbose(verbose)


def load_workspace(config_path: Optional[str]) -> Tuple[ConfigLoader, WorkspaceConfig]:
    """Find, load and validate twinstrap.yml."""
    loader = ConfigLoader(find_config(config_path))
    workspace = loader.load()
    return loader, workspace


def handle_cli_error(
    e: Exception,
    console: Console,
    verbose: bool = False,
    exit_code: int = 1
) -> None:
    """Print the error and exit with its code.

    Args:
        e: Exception to handle
        console: Rich console for output
        verbose: Show exception traceback if True
        exit_code: Exit code to use
    """
    console.print(f"[red]Error:[/red] {e}")
    cause = e.__cause__
    if cause is not None and verbose:
        console.print(f"[dim]Caused by: {cause}[/dim]")
    if verbose:
        console.print_exception()
    raise typer.Exit(exit_code)


def print_success(console: Console, message: str, prefix: str = "✓") -> None:
    console.print(f"[green]{prefix}[/green] {message}")


def print_error(console: Console, message: str, prefix: str = "✗") -> None:
    console.print(f"[red]{prefix}[/red] {message}")


def print_warning(console: Console, message: str, prefix: str = "⚠") -> None:
    console.print(f"[yellow]{prefix}[/yellow] {message}")


def print_info(console: Console, message: str, prefix: str = "ℹ") -> None:
    console.print(f"[cyan]{prefix}[/cyan] {message}")
