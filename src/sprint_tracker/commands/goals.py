"""Goal management commands."""

import typer
from rich.markup import escape
from rich.prompt import Confirm

from sprint_tracker.services.storage_context import get_storage_context
from sprint_tracker.utils.exit_codes import ERROR_GENERAL
from sprint_tracker.utils.typer_helpers import SuggestingGroup
from sprint_tracker.utils.ui.console import get_console
from sprint_tracker.utils.ui.formatters import format_goal, format_goal_list, format_success
from sprint_tracker.utils.uuid_utils import resolve_goal, resolve_sprint

from .decorators import AppError, command_wrapper

app = typer.Typer(cls=SuggestingGroup, help="Goal management commands")
console = get_console()


@app.command("create")
@command_wrapper
async def create_goal(
    sprint: str = typer.Option(..., "--sprint", "-s", help="Sprint number or ID"),
    title: str = typer.Option(..., "--title", "-t", help="Goal title (max 200 chars)"),
    owner: str = typer.Option(..., "--owner", "-o", help="Goal owner (max 50 chars)"),
    hours: float = typer.Option(..., "--hours", "-h", help="Estimated hours (0.25 steps)"),
    description: str = typer.Option("", "--description", "-d", help="Goal description"),
    criteria: list[str] | None = typer.Option(
        None, "--criteria", "-c", help="Success criterion (repeat for more)"
    ),
) -> None:
    """Create a new goal, optionally with success criteria."""
    storage = get_storage_context()
    target = await resolve_sprint(sprint, storage)

    goal = await storage.goals.create(
        sprint_id=target.id,
        title=title,
        owner=owner,
        estimated_hours=hours,
        description=description,
    )
    created = []
    if criteria:
        created = await storage.criteria.create_many(goal.id, criteria)
        # Criteria re-stamp the goal
        goal = await storage.goals.get_by_id(goal.id)

    format_success(f"Goal created in Sprint #{target.number}")
    format_goal(goal, created)


@app.command("list")
@command_wrapper
async def list_goals(
    sprint: str | None = typer.Option(None, "--sprint", "-s", help="Filter by sprint number or ID"),
    owner: str | None = typer.Option(None, "--owner", "-o", help="Filter by owner"),
) -> None:
    """List goals, optionally for one sprint or one owner."""
    storage = get_storage_context()

    if sprint is not None:
        target = await resolve_sprint(sprint, storage)
        goals = await storage.goals.get_by_sprint_id(target.id)
        if owner is not None:
            goals = [g for g in goals if g.owner == owner]
        console.print(f"Goals for Sprint #{target.number}:")
    elif owner is not None:
        goals = await storage.goals.get_by_owner(owner)
        console.print(f"Goals for owner: {escape(owner)}")
    else:
        goals = await storage.goals.get_all()

    format_goal_list(goals)


@app.command("show")
@command_wrapper
async def show_goal(
    goal_id: str = typer.Argument(..., help="Goal ID or prefix (from 'goal list')"),
) -> None:
    """Show goal details with its success criteria."""
    storage = get_storage_context()
    goal = await resolve_goal(goal_id, storage)
    format_goal(goal, await storage.criteria.get_by_goal_id(goal.id))


@app.command("update")
@command_wrapper
async def update_goal(
    goal_id: str = typer.Argument(..., help="Goal ID or prefix (from 'goal list')"),
    title: str | None = typer.Option(None, "--title", "-t", help="New title"),
    description: str | None = typer.Option(None, "--description", "-d", help="New description"),
    owner: str | None = typer.Option(None, "--owner", "-o", help="New owner"),
    hours: float | None = typer.Option(None, "--hours", "-h", help="New estimated hours"),
) -> None:
    """Update a goal."""
    storage = get_storage_context()
    goal = await resolve_goal(goal_id, storage)

    changes = {
        "title": title,
        "description": description,
        "owner": owner,
        "estimated_hours": hours,
    }
    updated = await storage.goals.update(
        goal.id, **{k: v for k, v in changes.items() if v is not None}
    )
    format_success("Goal updated")
    format_goal(updated, await storage.criteria.get_by_goal_id(updated.id))


async def _set_achieved(goal_id: str, achieved: bool, notes: str | None, lessons: str | None):
    storage = get_storage_context()
    goal = await resolve_goal(goal_id, storage)
    updated = await storage.goals.mark_achieved(goal.id, achieved, notes, lessons)
    return updated, await storage.criteria.get_by_goal_id(updated.id)


@app.command("complete")
@command_wrapper
async def complete_goal(
    goal_id: str = typer.Argument(..., help="Goal ID or prefix (from 'goal list')"),
    notes: str | None = typer.Option(None, "--notes", "-n", help="Completion notes"),
    lessons: str | None = typer.Option(None, "--lessons", "-l", help="Lessons learned"),
) -> None:
    """Mark a goal as achieved."""
    goal, criteria = await _set_achieved(goal_id, True, notes, lessons)
    format_success("Goal marked as achieved")
    format_goal(goal, criteria)


@app.command("incomplete")
@command_wrapper
async def incomplete_goal(
    goal_id: str = typer.Argument(..., help="Goal ID or prefix (from 'goal list')"),
    notes: str | None = typer.Option(None, "--notes", "-n", help="Reason or notes"),
    lessons: str | None = typer.Option(None, "--lessons", "-l", help="Lessons learned"),
) -> None:
    """Mark a goal as not achieved."""
    goal, criteria = await _set_achieved(goal_id, False, notes, lessons)
    format_success("Goal marked as not achieved")
    format_goal(goal, criteria)


@app.command("reopen")
@command_wrapper
async def reopen_goal(
    goal_id: str = typer.Argument(..., help="Goal ID or prefix (from 'goal list')"),
) -> None:
    """Clear the outcome of a goal, including its notes."""
    goal, criteria = await _set_achieved(goal_id, None, None, None)
    format_success("Goal reopened")
    format_goal(goal, criteria)


@app.command("log-hours")
@command_wrapper
async def log_hours(
    goal_id: str = typer.Argument(..., help="Goal ID or prefix (from 'goal list')"),
    hours: float = typer.Argument(..., help="Actual hours spent (0.25 steps)"),
) -> None:
    """Log actual hours spent on a goal."""
    storage = get_storage_context()
    goal = await resolve_goal(goal_id, storage)
    updated = await storage.goals.log_hours(goal.id, hours)
    format_success(f'Logged {hours:g}h for goal "{escape(updated.title)}"')


@app.command("delete")
@command_wrapper
async def delete_goal(
    goal_id: str = typer.Argument(..., help="Goal ID or prefix (from 'goal list')"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Delete a goal with all its criteria."""
    storage = get_storage_context()
    goal = await resolve_goal(goal_id, storage)

    if not force:
        console.print(f'This will delete goal "{escape(goal.title)}" and all its criteria.')
        if not Confirm.ask("Do you want to continue?", default=False):
            console.print("[yellow]Cancelled[/yellow]")
            return

    if not await storage.goals.delete(goal.id):
        raise AppError("Failed to delete goal", ERROR_GENERAL)
    format_success(f'Goal "{escape(goal.title)}" deleted')
