"""Utility CLI commands - check, version."""
from typing import Optional

import typer
from rich.console import Console

from twinstrap.core.errors import BootstrapError
from twinstrap.core.pipeline import BootstrapPipeline

# Module-level console instance (will be set by register function)
console: Console = Console()

__version__ = "0.1.0"


def check(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Workspace file (twinstrap.yml)"),
    env_file: Optional[str] = typer.Option(None, "--env-file", "-e", help="Secrets file (overrides secrets_file)"),
    no_deploy: bool = typer.Option(False, "--no-deploy", help="Do not require deploy tokens"),
):
    """Validate config, secrets and required commands without changing anything."""
    from twinstrap.cli_support import handle_cli_error, load_workspace, print_success

    try:
        loader, workspace = load_workspace(config)
        print_success(console, f"Workspace '{workspace.name}' with {len(workspace.projects)} project(s)")

        pipeline = BootstrapPipeline(workspace, loader.secrets_path(env_file), deploy=not no_deploy)
        settings = pipeline.load_configuration()
        print_success(console, f"All {len(pipeline.required_names())} required variables set ({settings.source})")

        pipeline.preflight()
        print_success(console, f"Commands found: {', '.join(workspace.required_commands())}")
    except BootstrapError as e:
        handle_cli_error(e, console, exit_code=e.exit_code)

    print_success(console, "Ready to bootstrap")


def version():
    """Show twinstrap version."""
    console.print(f"twinstrap v{__version__}")


def register_utility_commands(app: typer.Typer, shared_console: Console) -> None:
    """Register utility commands with the main Typer app."""
    global console
    console = shared_console

    app.command()(check)
    app.command()(version)
