"""
Import command for apibundle.

Registers an API in the catalog from an exported archive.
"""

import click
import sys
from pathlib import Path
from typing import Optional

from ..api import APIBundle
from ..cli_utils import cleanup_workspace, handle_errors, output_result
from ..config import load_config, setup_logging
from ..domain import Actor, ImportResult
from ..services.import_service import ImportService


@click.command('import')
@click.argument('archive', type=click.Path(exists=True, dir_okay=False))
@click.option('--user', help='User to import as (default: actor.username from config)')
@click.option('--keep-workspace', is_flag=True, help='Keep the extracted workspace')
@click.option('--pretty', is_flag=True, help='Show progress with rich formatting')
@click.option('--debug', is_flag=True, help='Enable debug logging')
@handle_errors
def import_handler(
    archive: str,
    user: Optional[str],
    keep_workspace: bool,
    pretty: bool,
    debug: bool,
):
    """
    Import an API from a ZIP archive.

    Tiers the catalog does not support are dropped, and optional assets
    that cannot be attached are reported as warnings.

    \b
    Examples:
        apibundle import Weather-1.0.zip
        apibundle import Weather-1.0.zip --user alice@example.com
        apibundle import Weather-1.0.zip --keep-workspace --pretty
    """
    config = load_config()
    setup_logging(config, debug)

    bundle = APIBundle(config=config)
    actor = Actor(user) if user else bundle.default_actor()
    service = bundle.import_service
    keep = keep_workspace or bool(config.get('workspace', {}).get('keep', False))

    try:
        if pretty:
            _import_pretty(service, Path(archive), actor)
        else:
            _import_simple(service, Path(archive), actor)
    finally:
        if service.last_result is not None:
            cleanup_workspace(service.last_result.workspace, keep)


def _import_simple(service: ImportService, archive: Path, actor: Actor):
    """Simple text output for import."""
    for progress in service.import_archive(archive, actor):
        print(progress, file=sys.stderr)

    result = service.last_result
    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    output_result(result.to_dict())


def _import_pretty(service: ImportService, archive: Path, actor: Actor):
    """Rich formatted output for import."""
    from rich.console import Console
    from rich.progress import Progress, SpinnerColumn, TextColumn

    console = Console()
    console.print(f"\n[bold]Importing:[/bold] {archive}\n")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Starting import...", total=None)

        for message in service.import_archive(archive, actor):
            progress.update(task, description=message)

    _print_summary(console, service.last_result)


def _print_summary(console, result: ImportResult):
    from rich.table import Table

    table = Table(title="Import Summary", show_header=True)
    table.add_column("Asset", style="cyan")
    table.add_column("Attached", justify="right", style="green")

    table.add_row("Icon", "yes" if result.icon_attached else "no")
    table.add_row("Documents", str(result.documents_attached))
    table.add_row("Sequences", str(result.sequences_attached))
    table.add_row("WSDL", "yes" if result.wsdl_attached else "no")
    table.add_row("Definition", "yes" if result.definition_attached else "no")

    console.print(table)

    if result.warnings:
        console.print(f"\n[yellow]Warnings ({len(result.warnings)}):[/yellow]")
        for warning in result.warnings:
            console.print(f"  [yellow]•[/yellow] {warning}")

    console.print(f"\n[bold green]✓[/bold green] Registered: {result.api_id}")
