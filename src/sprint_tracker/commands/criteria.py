"""Success criterion commands."""

import typer
from rich.markup import escape
from rich.prompt import Confirm

from sprint_tracker.services.storage_context import get_storage_context
from sprint_tracker.utils.exit_codes import ERROR_GENERAL
from sprint_tracker.utils.typer_helpers import SuggestingGroup
from sprint_tracker.utils.ui.console import get_console
from sprint_tracker.utils.ui.formatters import format_criteria, format_progress, format_success
from sprint_tracker.utils.uuid_utils import resolve_criterion, resolve_goal

from .decorators import AppError, command_wrapper

app = typer.Typer(cls=SuggestingGroup, help="Success criterion commands")
console = get_console()


@app.command("add")
@command_wrapper
async def add_criterion(
    goal_id: str = typer.Argument(..., help="Goal ID or prefix"),
    description: str = typer.Option(
        ..., "--description", "-d", help="Criterion description (max 500 chars)"
    ),
) -> None:
    """Add a success criterion to a goal."""
    storage = get_storage_context()
    goal = await resolve_goal(goal_id, storage)
    criterion = await storage.criteria.create(goal_id=goal.id, description=description)
    format_success(f'Criterion added to goal "{escape(goal.title)}"')
    format_criteria([criterion])


@app.command("list")
@command_wrapper
async def list_criteria(
    goal_id: str = typer.Argument(..., help="Goal ID or prefix"),
) -> None:
    """List the criteria of a goal."""
    storage = get_storage_context()
    goal = await resolve_goal(goal_id, storage)
    console.print(f'Criteria for: "{escape(goal.title)}"')
    format_criteria(await storage.criteria.get_by_goal_id(goal.id))


@app.command("toggle")
@command_wrapper
async def toggle_criterion(
    criterion_id: str = typer.Argument(..., help="Criterion ID or prefix"),
) -> None:
    """Toggle the completion of a criterion."""
    storage = get_storage_context()
    criterion = await resolve_criterion(criterion_id, storage)
    toggled = await storage.criteria.toggle(criterion.id)
    status = "complete" if toggled.completed else "incomplete"
    format_success(f"Criterion marked as {status}")
    format_criteria([toggled])


@app.command("complete")
@command_wrapper
async def complete_criterion(
    criterion_id: str = typer.Argument(..., help="Criterion ID or prefix"),
) -> None:
    """Mark a criterion as complete."""
    storage = get_storage_context()
    criterion = await resolve_criterion(criterion_id, storage)
    completed = await storage.criteria.complete(criterion.id)
    format_success("Criterion marked as complete")
    format_criteria([completed])


@app.command("uncomplete")
@command_wrapper
async def uncomplete_criterion(
    criterion_id: str = typer.Argument(..., help="Criterion ID or prefix"),
) -> None:
    """Mark a criterion as incomplete."""
    storage = get_storage_context()
    criterion = await resolve_criterion(criterion_id, storage)
    reopened = await storage.criteria.uncomplete(criterion.id)
    format_success("Criterion marked as incomplete")
    format_criteria([reopened])


@app.command("update")
@command_wrapper
async def update_criterion(
    criterion_id: str = typer.Argument(..., help="Criterion ID or prefix"),
    description: str = typer.Option(..., "--description", "-d", help="New description"),
) -> None:
    """Change the description of a criterion."""
    storage = get_storage_context()
    criterion = await resolve_criterion(criterion_id, storage)
    updated = await storage.criteria.update(criterion.id, description=description)
    format_success("Criterion updated")
    format_criteria([updated])


@app.command("delete")
@command_wrapper
async def delete_criterion(
    criterion_id: str = typer.Argument(..., help="Criterion ID or prefix"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Delete a criterion."""
    storage = get_storage_context()
    criterion = await resolve_criterion(criterion_id, storage)

    if not force:
        console.print(f'This will delete criterion: "{escape(criterion.description)}"')
        if not Confirm.ask("Do you want to continue?", default=False):
            console.print("[yellow]Cancelled[/yellow]")
            return

    if not await storage.criteria.delete(criterion.id):
        raise AppError("Failed to delete criterion", ERROR_GENERAL)
    format_success("Criterion deleted")


@app.command("progress")
@command_wrapper
async def goal_progress(
    goal_id: str = typer.Argument(..., help="Goal ID or prefix"),
) -> None:
    """Show how many criteria of a goal are complete."""
    storage = get_storage_context()
    goal = await resolve_goal(goal_id, storage)
    console.print(f'Progress for: "{escape(goal.title)}"')
    format_progress(await storage.criteria.get_progress(goal.id))
