"""``bookpub lint`` — check EJS template delimiters."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from bookpub.cli.state import CliState
from bookpub.collaborators import TemplateLintError

console = Console()


def lint_cmd(
    ctx: typer.Context,
    file_name: Optional[Path] = typer.Argument(
        None, help="Template to lint. Defaults to every .ejs file under manuscript/."
    ),
) -> None:
    """Lint one template, or all templates in the manuscript."""
    state: CliState = ctx.obj
    settings = state.settings
    target = settings.resolve(file_name) if file_name else settings.manuscript_path

    try:
        checked = state.linter.lint(target)
    except (TemplateLintError, FileNotFoundError) as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1)

    if not checked:
        console.print(f"[yellow]No templates found in {escape(settings.relative(target))}[/yellow]")
        return
    console.print(f"[green]{len(checked)} template(s) OK[/green]")
