"""
Export command for apibundle.

Packages one API from the catalog into a portable ZIP archive.
"""

import click
import shutil
import sys
from pathlib import Path
from typing import Optional

from ..api import APIBundle
from ..cli_utils import cleanup_workspace, handle_errors, output_result
from ..config import load_config, setup_logging
from ..domain import Actor, APIIdentifier, ExportResult
from ..errors import InvalidRequestError
from ..services.export_service import ExportService


@click.command('export')
@click.argument('name')
@click.argument('version')
@click.argument('provider')
@click.option('-o', '--output', type=click.Path(dir_okay=False),
              help='Archive file to write (default: ./<name>-<version>.zip)')
@click.option('--user', help='User to export as (default: actor.username from config)')
@click.option('--keep-workspace', is_flag=True, help='Keep the staging workspace')
@click.option('--pretty', is_flag=True, help='Show progress with rich formatting')
@click.option('--debug', is_flag=True, help='Enable debug logging')
@handle_errors
def export_handler(
    name: str,
    version: str,
    provider: str,
    output: Optional[str],
    user: Optional[str],
    keep_workspace: bool,
    pretty: bool,
    debug: bool,
):
    """
    Export an API to a ZIP archive.

    The archive holds the API's metadata, icon, documentation, WSDL,
    interface definition and mediation sequences.

    \b
    Examples:
        apibundle export Weather 1.0 acme
        apibundle export Weather 1.0 acme -o /tmp/weather.zip
        apibundle export Weather 1.0 acme --user bob@example.com --pretty
    """
    config = load_config()
    setup_logging(config, debug)

    if not (name and version and provider):
        raise InvalidRequestError("Invalid API information: name, version and provider are required")

    bundle = APIBundle(config=config)
    actor = Actor(user) if user else bundle.default_actor()
    identifier = APIIdentifier(provider_name=provider, api_name=name, version=version)
    service = bundle.export_service
    keep = keep_workspace or bool(config.get('workspace', {}).get('keep', False))

    try:
        if pretty:
            _export_pretty(service, identifier, actor)
        else:
            _export_simple(service, identifier, actor)

        result = service.last_result
        target = Path(output) if output else Path.cwd() / result.archive_path.name
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(result.archive_path, target)

        summary = result.to_dict()
        summary['archive'] = str(target)
        if pretty:
            _print_summary(result, target)
        else:
            output_result(summary)
    finally:
        if service.last_result is not None:
            cleanup_workspace(service.last_result.workspace, keep)


def _export_simple(service: ExportService, identifier: APIIdentifier, actor: Actor):
    """Simple text output for export."""
    for progress in service.export(identifier, actor):
        print(progress, file=sys.stderr)

    result = service.last_result
    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)


def _export_pretty(service: ExportService, identifier: APIIdentifier, actor: Actor):
    """Rich progress spinner for export."""
    from rich.console import Console
    from rich.progress import Progress, SpinnerColumn, TextColumn

    console = Console(stderr=True)
    console.print(f"\n[bold]Exporting:[/bold] {identifier}\n")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Starting export...", total=None)

        for message in service.export(identifier, actor):
            progress.update(task, description=message)


def _print_summary(result: ExportResult, target: Path):
    """Rich summary table for a finished export."""
    from rich.console import Console
    from rich.table import Table

    console = Console()

    table = Table(title="Export Summary", show_header=True)
    table.add_column("Asset", style="cyan")
    table.add_column("Exported", justify="right", style="green")

    table.add_row("Icon", "yes" if result.icon_exported else "no")
    table.add_row("Documents", str(result.documents_exported))
    table.add_row("Sequences", str(result.sequences_exported))
    table.add_row("WSDL", "yes" if result.wsdl_exported else "no")
    table.add_row("Definition", "yes" if result.definition_exported else "no")

    console.print(table)

    if result.warnings:
        console.print(f"\n[yellow]Warnings ({len(result.warnings)}):[/yellow]")
        for warning in result.warnings:
            console.print(f"  [yellow]•[/yellow] {warning}")

    console.print(f"\n[bold green]✓[/bold green] Archive written: {target}")
