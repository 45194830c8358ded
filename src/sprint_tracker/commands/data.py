"""Data commands: export, import and storage information."""

import json
from pathlib import Path

import typer
from rich.prompt import Confirm

from sprint_tracker.config import get_settings
from sprint_tracker.services.storage_context import get_backend_override, get_storage_context
from sprint_tracker.utils.exit_codes import ERROR_GENERAL
from sprint_tracker.utils.typer_helpers import SuggestingGroup
from sprint_tracker.utils.ui.console import get_console
from sprint_tracker.utils.ui.formatters import format_import_result, format_success
from sprint_tracker.utils.uuid_utils import resolve_sprint

from .decorators import command_wrapper

app = typer.Typer(cls=SuggestingGroup, help="Data management (export, import, info)")
console = get_console()

DEFAULT_EXPORT_FILE = "sprint-data-export.json"


async def _sprint_id(identifier: str | None) -> str | None:
    if identifier is None:
        return None
    sprint = await resolve_sprint(identifier, get_storage_context())
    return sprint.id


@app.command("export")
@command_wrapper
async def export_data(
    output: Path = typer.Option(DEFAULT_EXPORT_FILE, "--output", "-o", help="Output file path"),
    sprint: str | None = typer.Option(None, "--sprint", "-s", help="Export one sprint only"),
) -> None:
    """Export data to a JSON file."""
    storage = get_storage_context()
    path = await storage.exports.export_to_file(output, await _sprint_id(sprint))
    format_success(f"Data exported to {path}")


@app.command("import")
@command_wrapper
async def import_data(
    file: Path = typer.Argument(..., help="JSON export file"),
    overwrite: bool = typer.Option(
        False, "--overwrite", help="Replace existing sprints with the same ID"
    ),
) -> None:
    """Import data from a JSON export file."""
    storage = get_storage_context()
    result = await storage.exports.import_from_file(file, overwrite=overwrite)
    format_import_result(result)
    if result.errors and result.sprints == 0:
        raise typer.Exit(code=ERROR_GENERAL)


@app.command("export-json")
@command_wrapper
async def export_json(
    sprint: str | None = typer.Option(None, "--sprint", "-s", help="Export one sprint only"),
    pretty: bool = typer.Option(False, "--pretty", "-p", help="Pretty print JSON"),
) -> None:
    """Write the export document to stdout."""
    storage = get_storage_context()
    document = await storage.exports.export_sprints_document(await _sprint_id(sprint))
    typer.echo(
        json.dumps(document.to_record(), indent=2 if pretty else None, ensure_ascii=False)
    )


@app.command("info")
@command_wrapper
async def storage_info() -> None:
    """Show where data is stored and what it holds."""
    storage = get_storage_context()
    location = get_settings().storage_path(get_backend_override())

    sprints = await storage.sprints.get_all()
    current = await storage.sprints.get_current()

    console.print("[bold]Storage info[/bold]")
    console.print(f"Backend: {storage.storage_type}")
    console.print(f"Location: {location if location is not None else 'in memory'}")
    console.print(f"Total sprints: {len(sprints)}")
    if current is not None:
        console.print(f"Current sprint: #{current.number}")
    else:
        console.print("Current sprint: None active")
    if sprints:
        console.print(f"Sprint range: #{sprints[0].number} to #{sprints[-1].number}")


@app.command("clear")
@command_wrapper
async def clear_data(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Delete every sprint, goal and criterion."""
    storage = get_storage_context()
    if not force:
        console.print("[bold red]This will delete ALL sprints, goals and criteria.[/bold red]")
        if not Confirm.ask("Are you absolutely sure?", default=False):
            console.print("[yellow]Cancelled[/yellow]")
            return

    await storage.adapter.clear_all()
    format_success("All data cleared")
