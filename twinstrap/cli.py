#!/usr/bin/env python3
"""twinstrap CLI - Bootstrap a frontend/backend project pair from their repositories."""

import typer
from rich.console import Console

from twinstrap.cli_run_commands import register_run_commands
from twinstrap.cli_setup_commands import register_setup_commands
from twinstrap.cli_utility_commands import register_utility_commands

app = typer.Typer(
    name="twinstrap",
    help="""twinstrap - Bootstrap a frontend/backend web project

Clone, scaffold, commit, push and deploy. Safe to re-run.

Quick start:
  twinstrap init                 # Write a starter twinstrap.yml
  twinstrap check                # Secrets + required commands
  twinstrap plan                 # See what will happen
  twinstrap run                  # Make it happen
""",
    add_completion=False,
)

console = Console()

register_setup_commands(app, console)
register_utility_commands(app, console)
register_run_commands(app, console)

if __name__ == "__main__":
    app()
