"""``bookpub dev`` — build once, then serve and rebuild on every change."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.markup import escape

from bookpub.cli.state import CliState
from bookpub.core.orchestrator import DevOrchestrator
from bookpub.core.session_machine import SessionError
from bookpub.models.build import InvalidOutputTypeError

console = Console()


def dev_cmd(
    ctx: typer.Context,
    output_type: str = typer.Option(
        "html",
        "--type",
        "-t",
        help="Specify the output type (html or pdf).",
    ),
) -> None:
    """Run the development server with live-reloading.

    Exits 0 when the session ends normally (the watcher quits, or Ctrl+C)
    and 1 when it fails.
    """
    state: CliState = ctx.obj

    try:
        orchestrator = DevOrchestrator(
            state.settings,
            state.dispatcher(),
            output_type,
            supervisor=state.supervisor,
        )
    except InvalidOutputTypeError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=2)

    kind = orchestrator.output_type.value.upper()
    console.print(f"\nRunning watcher and dev server for {kind}...\n")

    try:
        summary = asyncio.run(orchestrator.run())
    except SessionError as exc:
        console.print(f"[bold red]Dev session failed:[/bold red] [red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        console.print("\n[dim]Dev session stopped.[/dim]")
        return

    console.print(
        f"[green]Dev session ended.[/green] "
        f"[dim]{summary.rebuild_count} rebuild(s), {summary.failed_rebuilds} failed.[/dim]"
    )
