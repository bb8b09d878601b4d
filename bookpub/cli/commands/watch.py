"""``bookpub watch``: the watcher child process of ``bookpub dev``.

Hidden from help: it is started by the dev orchestrator, which passes the
resolved watcher settings as JSON and reads change batches from stdout.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import typer

from bookpub.cli.state import CliState
from bookpub.models.watcher import DEFAULT_WATCH_EXTENSIONS, DEFAULT_WATCH_ROOT

logger = logging.getLogger(__name__)


def watch_cmd(
    ctx: typer.Context,
    root: Path = typer.Option(Path("."), "--root", help="Project root."),
    config_json: str = typer.Option("{}", "--config-json", help="Resolved watcher settings."),
) -> None:
    """Watch the manuscript and print one restart message per change batch."""
    from bookpub.watcher import run_watcher

    state: CliState = ctx.obj
    try:
        payload = json.loads(config_json)
    except json.JSONDecodeError as exc:
        logger.error("Invalid --config-json: %s", exc)
        raise typer.Exit(code=2)

    delay = payload.get("delay")
    code = run_watcher(
        root,
        payload.get("watch") or [DEFAULT_WATCH_ROOT],
        payload.get("ext") or list(DEFAULT_WATCH_EXTENSIONS),
        payload.get("ignore") or [],
        delay=float(delay) if delay is not None else state.settings.watch_debounce_seconds,
    )
    raise typer.Exit(code=code)
