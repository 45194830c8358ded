"""Sprint management commands."""

import typer
from rich.prompt import Confirm

from sprint_tracker.services.storage_context import get_storage_context
from sprint_tracker.utils.exit_codes import ERROR_GENERAL
from sprint_tracker.utils.typer_helpers import SuggestingGroup
from sprint_tracker.utils.ui.console import get_console
from sprint_tracker.utils.ui.formatters import (
    format_info,
    format_sprint,
    format_sprint_detail,
    format_sprint_list,
    format_stats,
    format_success,
)
from sprint_tracker.utils.uuid_utils import resolve_sprint

from .decorators import AppError, command_wrapper

app = typer.Typer(cls=SuggestingGroup, help="Sprint management commands")
console = get_console()


@app.command("create")
@command_wrapper
async def create_sprint(
    number: int | None = typer.Option(
        None, "--number", "-n", help="Sprint number (next free number if omitted)"
    ),
    start: str | None = typer.Option(None, "--start", "-s", help="Start date (YYYY-MM-DD)"),
    end: str | None = typer.Option(None, "--end", "-e", help="End date (YYYY-MM-DD)"),
) -> None:
    """Create a new sprint."""
    storage = get_storage_context()
    sprint = await storage.sprints.create(number=number, start_date=start, end_date=end)
    format_success(f"Sprint #{sprint.number} created")
    format_sprint(sprint)


@app.command("list")
@command_wrapper
async def list_sprints() -> None:
    """List all sprints."""
    storage = get_storage_context()
    format_sprint_list(await storage.sprints.get_all())


@app.command("show")
@command_wrapper
async def show_sprint(
    identifier: str = typer.Argument(..., help="Sprint number or ID"),
) -> None:
    """Show a sprint with its goals and criteria."""
    storage = get_storage_context()
    sprint = await resolve_sprint(identifier, storage)
    detailed = await storage.exports.export_sprint(sprint.id)
    format_sprint_detail(detailed)


@app.command("current")
@command_wrapper
async def current_sprint() -> None:
    """Show the sprint running today."""
    storage = get_storage_context()
    sprint = await storage.sprints.get_current()
    if sprint is None:
        console.print("No active sprint found for today.")
        latest = await storage.sprints.get_latest()
        if latest is not None:
            console.print(
                f"\nLatest sprint: #{latest.number} ({latest.start_date} to {latest.end_date})"
            )
        return

    format_sprint_detail(await storage.exports.export_sprint(sprint.id))


@app.command("stats")
@command_wrapper
async def sprint_stats(
    identifier: str = typer.Argument(..., help="Sprint number or ID"),
) -> None:
    """Show goal statistics of a sprint."""
    storage = get_storage_context()
    sprint = await resolve_sprint(identifier, storage)
    stats = await storage.goals.get_sprint_stats(sprint.id)
    format_stats(sprint, stats)


@app.command("next")
@command_wrapper
async def next_sprint() -> None:
    """Show the number and dates the next sprint would get."""
    storage = get_storage_context()
    number = await storage.sprints.get_next_number()
    dates = await storage.sprints.get_suggested_next_dates()
    format_info(f"Next sprint: #{number} ({dates.start_date} to {dates.end_date})")


@app.command("update")
@command_wrapper
async def update_sprint(
    identifier: str = typer.Argument(..., help="Sprint number or ID"),
    number: int | None = typer.Option(None, "--number", "-n", help="New sprint number"),
    start: str | None = typer.Option(None, "--start", "-s", help="New start date (YYYY-MM-DD)"),
    end: str | None = typer.Option(None, "--end", "-e", help="New end date (YYYY-MM-DD)"),
) -> None:
    """Update a sprint."""
    storage = get_storage_context()
    sprint = await resolve_sprint(identifier, storage)

    changes = {}
    if number is not None:
        changes["number"] = number
    if start is not None:
        changes["start_date"] = start
    if end is not None:
        changes["end_date"] = end

    updated = await storage.sprints.update(sprint.id, **changes)
    format_success(f"Sprint #{updated.number} updated")
    format_sprint(updated)


@app.command("delete")
@command_wrapper
async def delete_sprint(
    identifier: str = typer.Argument(..., help="Sprint number or ID"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Delete a sprint with all its goals and criteria."""
    storage = get_storage_context()
    sprint = await resolve_sprint(identifier, storage)

    if not force:
        console.print(f"This will delete Sprint #{sprint.number} and all its goals.")
        if not Confirm.ask("Do you want to continue?", default=False):
            console.print("[yellow]Cancelled[/yellow]")
            return

    if not await storage.sprints.delete(sprint.id):
        raise AppError("Failed to delete sprint", ERROR_GENERAL)
    format_success(f"Sprint #{sprint.number} deleted")
