"""Setup CLI commands - init, bundles."""
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from twinstrap.scaffold.templates import TemplateEngine

# Module-level console instance (will be set by register function)
console: Console = Console()

STARTER_CONFIG = Path(__file__).parent / "templates" / "twinstrap.yml"


def init(
    path: str = typer.Option("twinstrap.yml", "--path", help="Where to write the workspace file"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Project name (default: BizFlow)"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
):
    """Create a starter twinstrap.yml for a frontend + backend pair.

    Edit the repository URLs and paths, then run 'twinstrap plan'.
    """
    from twinstrap.cli_support import print_error, print_info, print_success

    target = Path(path).expanduser()
    if target.exists() and not force:
        print_error(console, f"{target} already exists (use --force to overwrite)")
        raise typer.Exit(1)

    content = STARTER_CONFIG.read_text()
    if name:
        content = content.replace("name: BizFlow", f"name: {name}", 1)

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content)
    print_success(console, f"Created {target}")
    print_info(console, "Set the repo URLs, then create the secrets file named by 'secrets_file'")


def bundles():
    """List the template bundles available to 'template:<name>' steps."""
    engine = TemplateEngine()
    table = Table(title="Template bundles", show_header=True, header_style="bold cyan")
    table.add_column("Bundle")
    table.add_column("Files", overflow="fold")
    table.add_column("Description", overflow="fold")
    for bundle in engine.list_bundles():
        table.add_row(bundle.name, ", ".join(f.path for f in bundle.files), bundle.description)
    console.print(table)


def register_setup_commands(app: typer.Typer, shared_console: Console) -> None:
    """Register setup commands with the main Typer app."""
    global console
    console = shared_console

    app.command()(init)
    app.command()(bundles)
