"""Collaborator interfaces used by the orchestration core."""

from __future__ import annotations

from collections.abc import Awaitable
from pathlib import Path
from typing import Any, Protocol

from bookpub.models.book import BookConfig


class Converter(Protocol):
    """Turns a manuscript tree into an output tree.

    ``convert`` may be a plain method or a coroutine method; the dispatcher runs
    synchronous converters in a worker thread.
    """

    def convert(
        self,
        book: BookConfig,
        manuscript_dir: Path,
        output_dir: Path,
        output_type: str,
    ) -> Awaitable[Any] | None: ...


class TemplateLinter(Protocol):
    """Validates template files, raising on the first invalid one."""

    def lint(self, path: Path) -> list[Path]: ...


class ProjectScaffolder(Protocol):
    """Creates a new book project directory."""

    def create(self, project_name: str) -> Path: ...


