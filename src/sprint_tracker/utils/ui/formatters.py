"""Output formatters for sprints, goals and success criteria."""

from __future__ import annotations

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from sprint_tracker.models import (
    Goal,
    GoalProgress,
    GoalWithCriteria,
    ImportResult,
    Sprint,
    SprintStats,
    SprintWithGoals,
    SuccessCriterion,
)
from sprint_tracker.utils.ids import shorten_uuid
from sprint_tracker.utils.ui.console import get_console


def format_error(message: str) -> None:
    """Format and display an error message."""
    get_console().print(f"[bold red]Error:[/bold red] {escape(message)}")


def format_success(message: str) -> None:
    """Format and display a success message."""
    get_console().print(f"[bold green]Success:[/bold green] {message}")


def format_warning(message: str) -> None:
    """Format and display a warning message."""
    get_console().print(f"[bold yellow]Warning:[/bold yellow] {message}")


def format_info(message: str) -> None:
    """Format and display an info message."""
    get_console().print(f"[bold blue]Info:[/bold blue] {message}")


def get_progress_bar(percentage: float) -> str:
    """Get a progress bar representation."""
    filled = int(percentage / 10)
    empty = 10 - filled
    return "▓" * filled + "░" * empty


def get_completion_color(percentage: float) -> str:
    """Get color based on completion percentage."""
    if percentage >= 80:
        return "green"
    if percentage >= 40:
        return "yellow"
    return "red"


def format_achieved(achieved: bool | None) -> str:
    if achieved is True:
        return "[green]✓ achieved[/green]"
    if achieved is False:
        return "[red]✗ not achieved[/red]"
    return "[dim]open[/dim]"


def format_hours(hours: float | None) -> str:
    if hours is None:
        return "-"
    return f"{hours:g}h"


def format_sprint(sprint: Sprint) -> None:
    """Display a single sprint."""
    get_console().print(
        Panel(
            f"ID: {sprint.id}\nPeriod: {sprint.start_date} to {sprint.end_date}",
            title=f"Sprint #{sprint.number}",
            expand=False,
        )
    )


def format_sprint_list(sprints: list[Sprint]) -> None:
    """Display sprints as a table."""
    console = get_console()
    if not sprints:
        console.print("[yellow]No sprints found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("ID", style="dim")
    for sprint in sprints:
        table.add_row(
            str(sprint.number), sprint.start_date, sprint.end_date, shorten_uuid(sprint.id)
        )
    console.print(table)


def format_criteria(criteria: list[SuccessCriterion], indent: str = "") -> None:
    """Display criteria as a checklist."""
    console = get_console()
    if not criteria:
        console.print(f"{indent}[dim]No success criteria[/dim]")
        return
    for criterion in criteria:
        mark = "[green]\\[x][/green]" if criterion.completed else "[ ]"
        console.print(
            f"{indent}{mark} {escape(criterion.description)} [dim]({shorten_uuid(criterion.id)})[/dim]"
        )


def format_goal(goal: Goal, criteria: list[SuccessCriterion] | None = None) -> None:
    """Display one goal with its details and, optionally, its criteria."""
    console = get_console()
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("ID", goal.id)
    table.add_row("Title", escape(goal.title))
    table.add_row("Description", escape(goal.description or "-"))
    table.add_row("Owner", escape(goal.owner))
    table.add_row("Estimated", format_hours(goal.estimated_hours))
    table.add_row("Actual", format_hours(goal.actual_hours))
    table.add_row("Status", format_achieved(goal.achieved))
    table.add_row("Notes", escape(goal.note or "-"))
    table.add_row("Lessons", escape(goal.lessons_learned or "-"))
    table.add_row("Updated", goal.updated_at)
    console.print(table)

    if criteria is not None:
        console.print()
        console.print("[bold]Success criteria[/bold]")
        format_criteria(criteria, indent="  ")


def format_goal_list(goals: list[Goal]) -> None:
    """Display goals as a table."""
    console = get_console()
    if not goals:
        console.print("[yellow]No goals found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Owner")
    table.add_column("Hours", justify="right")
    table.add_column("Status")
    for goal in goals:
        hours = f"{format_hours(goal.actual_hours)} / {format_hours(goal.estimated_hours)}"
        table.add_row(
            shorten_uuid(goal.id),
            escape(goal.title),
            escape(goal.owner),
            hours,
            format_achieved(goal.achieved),
        )
    console.print(table)


def _format_goal_summary(goal: GoalWithCriteria) -> None:
    console = get_console()
    done = sum(1 for c in goal.success_criteria if c.completed)
    console.print(
        f"[bold]{escape(goal.title)}[/bold] [dim]({shorten_uuid(goal.id)})[/dim] "
        f"- {escape(goal.owner)}, {format_hours(goal.estimated_hours)} - {format_achieved(goal.achieved)}"
    )
    if goal.success_criteria:
        console.print(f"  Criteria: {done}/{len(goal.success_criteria)}")
        format_criteria(goal.success_criteria, indent="    ")


def format_sprint_detail(sprint: SprintWithGoals) -> None:
    """Display a sprint with its goals and their criteria."""
    console = get_console()
    format_sprint(sprint)
    if not sprint.goals:
        console.print("[dim]No goals in this sprint[/dim]")
        return
    console.print(f"[bold]Goals ({len(sprint.goals)})[/bold]")
    for goal in sprint.goals:
        _format_goal_summary(goal)


def format_stats(sprint: Sprint, stats: SprintStats) -> None:
    """Display aggregate statistics of a sprint."""
    percentage = stats.completed_goals / stats.total_goals * 100 if stats.total_goals else 0
    color = get_completion_color(percentage)
    table = Table(show_header=False, box=None, title=f"Sprint #{sprint.number} statistics")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Goals", str(stats.total_goals))
    table.add_row(
        "Achieved",
        f"[{color}]{stats.completed_goals} {get_progress_bar(percentage)} {percentage:.0f}%[/{color}]",
    )
    table.add_row("Estimated hours", format_hours(stats.estimated_hours))
    table.add_row("Actual hours", format_hours(stats.actual_hours))
    get_console().print(table)


def format_progress(progress: GoalProgress) -> None:
    """Display criterion completion of a goal."""
    color = get_completion_color(progress.percentage)
    get_console().print(
        f"[{color}]{get_progress_bar(progress.percentage)} {progress.percentage}%[/{color}] "
        f"({progress.completed}/{progress.total} criteria completed)"
    )


def format_import_result(result: ImportResult) -> None:
    """Display the counts and messages of an import run."""
    console = get_console()
    table = Table(show_header=False, box=None, title="Import result")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Sprints", str(result.sprints))
    table.add_row("Goals", str(result.goals))
    table.add_row("Criteria", str(result.criteria))
    table.add_row("Skipped", str(result.skipped))
    console.print(table)

    if result.errors:
        console.print()
        console.print("[bold yellow]Errors:[/bold yellow]")
        for error in result.errors:
            console.print(f"  - {error}", markup=False)
