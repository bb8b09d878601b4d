"""Logging setup: one RichHandler on the ``bookpub`` logger."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: str | int = "INFO", console: Console | None = None) -> None:
    """Attach a RichHandler to the package logger.

    Safe to call more than once; an existing bookpub handler is replaced.
    """
    logger = logging.getLogger("bookpub")
    for handler in list(logger.handlers):
        if getattr(handler, "_bookpub", False):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler._bookpub = True  # type: ignore[attr-defined]
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    logger.addHandler(handler)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    logger.propagate = False
