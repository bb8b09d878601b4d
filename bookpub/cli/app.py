"""Main Typer application — imports and registers all CLI commands.

Entry point: ``bookpub`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import typer
from rich.console import Console

from bookpub.cli.commands.build import build_cmd
from bookpub.cli.commands.dev import dev_cmd
from bookpub.cli.commands.lint import lint_cmd
from bookpub.cli.commands.new import new_cmd
from bookpub.cli.commands.watch import watch_cmd
from bookpub.cli.state import CliState
from bookpub.config import BookpubSettings
from bookpub.log import setup_logging

app = typer.Typer(
    name="bookpub",
    help="bookpub: build your manuscript into HTML and print-ready PDF.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="build", help="Build the output from the manuscript markdown files.")(build_cmd)
app.command(name="dev", help="Run the development server with live-reloading.")(dev_cmd)
app.command(name="new", help="Create a new book project.")(new_cmd)
app.command(name="lint", help="Lint EJS templates.")(lint_cmd)
app.command(name="watch", hidden=True)(watch_cmd)


def _version_callback(value: bool) -> None:
    if value:
        from bookpub import __version__

        Console().print(f"bookpub {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    """Build settings once per invocation and set up logging."""
    if ctx.obj is None:
        ctx.obj = CliState(BookpubSettings())
    state: CliState = ctx.obj
    setup_logging("DEBUG" if verbose else state.settings.log_level)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
