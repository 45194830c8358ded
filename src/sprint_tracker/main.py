"""Main entry point for Sprint Tracker CLI."""

import typer

from sprint_tracker import __version__
from sprint_tracker.commands import criteria, data, goals, sprints
from sprint_tracker.services.storage_context import set_backend_override
from sprint_tracker.utils.typer_helpers import SuggestingGroup
from sprint_tracker.utils.ui.console import get_console

BACKENDS = ("sqlite", "objectstore", "memory")

# Create main app with custom group class
app = typer.Typer(
    name="sprint-tracker",
    cls=SuggestingGroup,
    help="Lightweight sprint tracking tool for 2-week cycles",
    no_args_is_help=True,
)

console = get_console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold]Sprint Tracker[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()


@app.callback()
def main_callback(
    backend: str | None = typer.Option(
        None,
        "--backend",
        "-b",
        help="Storage backend: sqlite, objectstore or memory (default: from environment)",
    ),
    version_flag: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
) -> None:
    """Lightweight sprint tracking tool for 2-week cycles."""
    if backend is not None and backend.lower() not in BACKENDS:
        raise typer.BadParameter(
            f"must be one of: {', '.join(BACKENDS)}", param_hint="'--backend'"
        )
    set_backend_override(backend.lower() if backend else None)


# Add subcommands
app.add_typer(sprints.app, name="sprint", help="Sprint management commands")
app.add_typer(goals.app, name="goal", help="Goal management commands")
app.add_typer(criteria.app, name="criterion", help="Success criterion commands")
app.add_typer(data.app, name="data", help="Data management (export, import, info)")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]Sprint Tracker[/bold] version [cyan]{__version__}[/cyan]")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
