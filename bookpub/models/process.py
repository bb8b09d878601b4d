"""Subprocess lifecycle models: spawn options, events, and outcomes."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict


class ProcessEventKind(str, Enum):
    """Lifecycle notifications a ``ProcessHandle`` posts to its channel."""

    STARTED = "started"
    RESTARTED = "restarted"
    EXITED_CLEANLY = "exited_cleanly"
    EXITED_WITH_ERROR = "exited_with_error"
    SPAWN_ERROR = "spawn_error"


# Kinds after which a handle posts nothing further.
TERMINAL_EVENT_KINDS: frozenset[ProcessEventKind] = frozenset({
    ProcessEventKind.EXITED_CLEANLY,
    ProcessEventKind.EXITED_WITH_ERROR,
    ProcessEventKind.SPAWN_ERROR,
})


class ProcessEvent(BaseModel):
    """A single lifecycle notification from a supervised process."""

    model_config = ConfigDict(frozen=True)

    source: str  # handle name, e.g. "watcher", "dev-server", "renderer"
    kind: ProcessEventKind
    returncode: int | None = None
    signal: int | None = None
    message: str = ""
    paths: tuple[str, ...] = ()  # changed files, for RESTARTED

    @property
    def is_terminal(self) -> bool:
        return self.kind in TERMINAL_EVENT_KINDS


class OutcomeKind(str, Enum):
    """How a supervised process ended."""

    EXITED = "exited"
    SIGNALLED = "signalled"
    SPAWN_ERROR = "spawn_error"


class ProcessOutcome(BaseModel):
    """Terminal outcome returned by ``ProcessHandle.wait()``."""

    model_config = ConfigDict(frozen=True)

    kind: OutcomeKind
    returncode: int | None = None
    signal: int | None = None
    message: str = ""

    @property
    def succeeded(self) -> bool:
        return self.kind == OutcomeKind.EXITED and self.returncode == 0

    def describe(self) -> str:
        """One-line human description, used in log messages."""
        if self.kind == OutcomeKind.SPAWN_ERROR:
            return f"could not be started: {self.message}"
        if self.kind == OutcomeKind.SIGNALLED:
            return f"terminated by signal {self.signal}"
        return f"exited with code {self.returncode}"


class SpawnOptions(BaseModel):
    """Options for ``ProcessSupervisor.spawn``.

    By default the child inherits the terminal's stdin/stdout/stderr.
    With ``capture_stdout`` the child's stdout is piped and parsed as
    JSON-line lifecycle messages (see ``bookpub.watcher``).
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    cwd: Path | None = None
    env: dict[str, str] = {}
    capture_stdout: bool = False
