"""``bookpub new`` — scaffold a new book project."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from bookpub.cli.state import CliState
from bookpub.collaborators import ProjectExistsError

console = Console()


def new_cmd(
    ctx: typer.Context,
    project_name: str = typer.Argument(..., help="Name of the project directory to create."),
) -> None:
    """Create a new book project in the current directory."""
    state: CliState = ctx.obj

    try:
        root = state.scaffolder.create(project_name)
    except ProjectExistsError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1)
    except ValueError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=2)

    console.print(
        Panel(
            "\n".join([
                "[bold green]New book project created![/bold green]",
                "",
                f"[bold]Location:[/bold]  {escape(str(root))}",
                "",
                f"[dim]cd {escape(project_name)} && bookpub dev[/dim]",
            ]),
            title="[bold]bookpub[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
