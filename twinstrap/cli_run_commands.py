"""Run and plan commands - execute or preview the bootstrap sequence."""
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from twinstrap.core.errors import EXIT_INTERRUPTED, BootstrapError
from twinstrap.core.pipeline import BootstrapPipeline
from twinstrap.models.report import BootstrapReport, ProjectState
from twinstrap.services.runner import CommandRunner

# Module-level console instance (will be set by register function)
console: Console = Console()

_STATE_STYLES = {
    ProjectState.DEPLOYED: "green",
    ProjectState.PUSHED: "green",
    ProjectState.COMMITTED: "yellow",
    ProjectState.MUTATED: "yellow",
    ProjectState.SYNCED: "yellow",
    ProjectState.ABSENT: "red",
}


def _render_report(report: BootstrapReport) -> None:
    table = Table(title="Bootstrap Summary", show_header=True, header_style="bold cyan")
    table.add_column("Project")
    table.add_column("State")
    table.add_column("Working copy")
    table.add_column("Commits", overflow="fold")
    table.add_column("Env vars", justify="right")

    for run in report.projects:
        style = _STATE_STYLES.get(run.state, "white")
        registered = len(run.registered_env)
        failed = len(run.env_failures)
        env_cell = f"{registered}" + (f" [red](+{failed} failed)[/red]" if failed else "")
        table.add_row(
            run.name,
            f"[{style}]{run.state.value}[/{style}]",
            "cloned" if run.cloned else "pulled",
            ", ".join(run.commits) or "[dim]none[/dim]",
            env_cell if (registered or failed) else "[dim]-[/dim]",
        )

    console.print(table)


def run(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Workspace file (twinstrap.yml)"),
    env_file: Optional[str] = typer.Option(None, "--env-file", "-e", help="Secrets file (overrides secrets_file)"),
    only: Optional[List[str]] = typer.Option(None, "--only", "-p", help="Bootstrap only these projects (repeatable)"),
    no_deploy: bool = typer.Option(False, "--no-deploy", help="Skip deployment and env registration"),
    strict_env: bool = typer.Option(False, "--strict-env", help="Treat env registration failures as fatal"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show actions without running them"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Path to log file"),
):
    """Run the full bootstrap: clone/pull, scaffold, commit, push, deploy.

    Stops at the first fatal error. Exit codes: 1 config, 2 preflight,
    3 provisioning, 4 mutation, 5 publish/deploy.
    """
    from twinstrap.cli_support import (
        handle_cli_error,
        is_mock,
        load_workspace,
        print_info,
        print_success,
        print_warning,
        setup_file_logging,
    )

    setup_file_logging(log_file=log_file, verbose=verbose)

    try:
        loader, workspace = load_workspace(config)
        runner = CommandRunner(mock=dry_run or is_mock(), timeout=workspace.command_timeout)
        pipeline = BootstrapPipeline(
            workspace,
            loader.secrets_path(env_file),
            runner=runner,
            strict_env=strict_env,
            deploy=not no_deploy,
            only=only,
        )
        report = pipeline.run()
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠ Operation cancelled by user[/yellow]")
        raise typer.Exit(EXIT_INTERRUPTED)
    except BootstrapError as e:
        handle_cli_error(e, console, verbose=verbose, exit_code=e.exit_code)

    _render_report(report)

    if report.repo_secrets:
        print_info(console, "Add these secrets to the repository settings (GitHub → Settings → Secrets):")
        for secret in report.repo_secrets:
            console.print(f"  - {secret}")

    if report.warnings:
        for warning in report.warnings:
            print_warning(console, warning.message)
        print_warning(console, "Bootstrap finished with env registration failures; re-run or add them manually")
        return

    if runner.mock:
        print_success(console, "Dry run complete (nothing was changed)")
    else:
        print_success(console, "Bootstrap complete")


def plan(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Workspace file (twinstrap.yml)"),
    only: Optional[List[str]] = typer.Option(None, "--only", "-p", help="Plan only these projects"),
    no_deploy: bool = typer.Option(False, "--no-deploy", help="Leave out deployment"),
):
    """Show the ordered actions a run would perform (reads nothing secret)."""
    from twinstrap.cli_support import handle_cli_error, load_workspace

    try:
        loader, workspace = load_workspace(config)
        pipeline = BootstrapPipeline(
            workspace,
            loader.secrets_path(),
            deploy=not no_deploy,
            only=only,
        )
        actions = pipeline.plan()
    except BootstrapError as e:
        handle_cli_error(e, console, exit_code=e.exit_code)

    table = Table(title=f"Bootstrap plan: {workspace.name}", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right")
    table.add_column("Project")
    table.add_column("Action", overflow="fold")
    for index, (project, action) in enumerate(actions, start=1):
        table.add_row(str(index), project, action)
    console.print(table)


def register_run_commands(app: typer.Typer, shared_console: Console) -> None:
    """Register run and plan with the main Typer app."""
    global console
    console = shared_console

    app.command()(run)
    app.command()(plan)
