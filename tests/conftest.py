"""Shared test fixtures for bookpub."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from bookpub.config import BookpubSettings
from bookpub.models.book import BookConfig
from bookpub.models.process import (
    OutcomeKind,
    ProcessEvent,
    ProcessEventKind,
    ProcessOutcome,
    SpawnOptions,
)


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """A temporary book project with a one-chapter manuscript."""
    manuscript = tmp_path / "manuscript"
    manuscript.mkdir()
    (manuscript / "01-intro.md").write_text("# Intro\n\nHello.\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def settings(project_root: Path) -> BookpubSettings:
    """Settings rooted at the temporary project."""
    return BookpubSettings(project_root=project_root, _env_file=None)


@pytest.fixture(autouse=True)
def _reset_bookpub_logger():
    """Undo setup_logging() between tests so caplog sees bookpub records."""

    def _reset() -> None:
        logger = logging.getLogger("bookpub")
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        logger.propagate = True
        logger.setLevel(logging.NOTSET)

    _reset()
    yield
    _reset()


# ---------------------------------------------------------------------------
# Fakes shared across test modules
# ---------------------------------------------------------------------------


class RecordingConverter:
    """Async converter that records calls and writes ``index.html``.

    ``log`` may be shared with a FakeSupervisor to check call ordering.
    """

    def __init__(
        self,
        log: list[str] | None = None,
        fail: Exception | None = None,
        write_entry: bool = True,
        delay: float = 0.0,
    ) -> None:
        self.calls: list[tuple[BookConfig, Path, Path, str]] = []
        self.log = log if log is not None else []
        self.fail = fail
        self.write_entry = write_entry
        self.delay = delay
        self.active = 0
        self.max_active = 0

    async def convert(
        self, book: BookConfig, manuscript_dir: Path, output_dir: Path, output_type: str
    ) -> None:
        self.calls.append((book, manuscript_dir, output_dir, output_type))
        self.log.append(f"convert:{output_type}")
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.fail is not None:
                raise self.fail
            if self.write_entry:
                output_dir.mkdir(parents=True, exist_ok=True)
                (output_dir / "index.html").write_text("<html></html>", encoding="utf-8")
        finally:
            self.active -= 1


class FakeHandle:
    """Stands in for ProcessHandle; events are posted by test scripts."""

    def __init__(
        self,
        name: str,
        argv: list[str],
        options: SpawnOptions,
        channel: asyncio.Queue | None,
        outcome: ProcessOutcome,
    ) -> None:
        self.name = name
        self.argv = argv
        self.options = options
        self.channel = channel
        self.outcome = outcome
        self.terminated = False

    def emit(self, kind: ProcessEventKind, **fields: Any) -> None:
        assert self.channel is not None
        self.channel.put_nowait(ProcessEvent(source=self.name, kind=kind, **fields))

    async def wait(self) -> ProcessOutcome:
        return self.outcome

    async def terminate(self, timeout: float = 5.0) -> ProcessOutcome:
        self.terminated = True
        return self.outcome


class FakeSupervisor:
    """Records spawns instead of starting processes.

    ``scripts`` maps a handle name to a callable run right after the spawn,
    typically emitting events on the handle. ``outcomes`` maps a handle
    name to what ``wait()`` returns (default: clean exit).
    """

    def __init__(self, log: list[str] | None = None) -> None:
        self.log = log if log is not None else []
        self.spawned: list[FakeHandle] = []
        self.scripts: dict[str, Callable[[FakeHandle], None]] = {}
        self.outcomes: dict[str, ProcessOutcome] = {}

    def spawn(
        self,
        command: str,
        args=(),
        options: SpawnOptions | None = None,
        *,
        channel: asyncio.Queue | None = None,
    ) -> FakeHandle:
        options = options or SpawnOptions()
        name = options.name or Path(command).name
        handle = FakeHandle(
            name,
            [command, *args],
            options,
            channel,
            self.outcomes.get(name, ProcessOutcome(kind=OutcomeKind.EXITED, returncode=0)),
        )
        self.spawned.append(handle)
        self.log.append(f"spawn:{name}")
        script = self.scripts.get(name)
        if script is not None:
            script(handle)
        return handle

    def named(self, name: str) -> list[FakeHandle]:
        return [h for h in self.spawned if h.name == name]


@pytest.fixture
def call_log() -> list[str]:
    """Shared ordering log for converter and supervisor fakes."""
    return []


@pytest.fixture
def converter(call_log: list[str]) -> RecordingConverter:
    return RecordingConverter(log=call_log)


@pytest.fixture
def supervisor(call_log: list[str]) -> FakeSupervisor:
    return FakeSupervisor(log=call_log)


@pytest.fixture
def make_converter(call_log: list[str]) -> Callable[..., RecordingConverter]:
    """Factory fixture: a RecordingConverter with custom behaviour."""

    def _factory(**kwargs: Any) -> RecordingConverter:
        kwargs.setdefault("log", call_log)
        return RecordingConverter(**kwargs)

    return _factory
