"""``bookpub build`` — convert the manuscript, then render PDF if asked.

Exit codes: 0 success (a failed PDF render is reported but still exits 0
unless ``--strict-render`` is given), 1 conversion failure, 2 invalid
output type, 3 render failure with ``--strict-render``.
"""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from bookpub.cli.state import CliState
from bookpub.core.pipeline import ConversionError
from bookpub.models.build import InvalidOutputTypeError

console = Console()


def build_cmd(
    ctx: typer.Context,
    output_type: str = typer.Option(
        "html",
        "--type",
        "-t",
        help="Specify the output type (html or pdf).",
    ),
    strict_render: bool = typer.Option(
        False,
        "--strict-render",
        help="Exit with code 3 when the PDF renderer fails.",
    ),
) -> None:
    """Build the output from the manuscript markdown files."""
    state: CliState = ctx.obj
    dispatcher = state.dispatcher()

    try:
        request = dispatcher.request_for(output_type)
    except InvalidOutputTypeError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=2)

    console.print(f"\nBuilding {request.output_type.value.upper()} Format...\n")

    try:
        result = asyncio.run(dispatcher.build(request))
    except ConversionError as exc:
        console.print(
            Panel(
                "\n".join([
                    "[bold red]Bummer. We couldn't build your book.[/bold red]",
                    "",
                    f"[bold]Output type:[/bold]  {request.output_type.value}",
                    f"[bold]Manuscript:[/bold]   {escape(str(request.manuscript_dir))}",
                    f"[bold]Reason:[/bold]       {escape(str(exc.cause))}",
                ]),
                title="[bold red]Build failed[/bold red]",
                border_style="red",
                padding=(1, 2),
            )
        )
        raise typer.Exit(code=1)

    if result.render_error:
        console.print(
            "[bold red]Bummer. We couldn't build your pdf, because:[/bold red] "
            f"[red]{escape(result.render_error)}[/red]"
        )
        if strict_render:
            raise typer.Exit(code=3)

    console.print()
    console.print(
        Panel(
            "[bold green]Yay! All Finished!![/bold green]",
            border_style="green",
            padding=(0, 4),
            expand=False,
        )
    )
