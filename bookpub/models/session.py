"""Dev session state machine models.

The session moves ``idle -> building -> watching <-> rebuilding ->
terminated``. Every change of state is driven by exactly one
``SessionEvent`` taken from the session's event channel.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SessionState(str, Enum):
    """States of a dev session."""

    IDLE = "idle"
    BUILDING = "building"
    WATCHING = "watching"
    REBUILDING = "rebuilding"
    TERMINATED = "terminated"


# Valid state transitions, enforced by SessionMachine.
# REBUILDING -> REBUILDING is an overlapping rebuild: tolerated, never dropped.
VALID_TRANSITIONS: dict[SessionState, set[SessionState]] = {
    SessionState.IDLE: {SessionState.BUILDING, SessionState.TERMINATED},
    SessionState.BUILDING: {SessionState.WATCHING, SessionState.TERMINATED},
    SessionState.WATCHING: {SessionState.REBUILDING, SessionState.TERMINATED},
    SessionState.REBUILDING: {
        SessionState.REBUILDING,
        SessionState.WATCHING,
        SessionState.TERMINATED,
    },
    SessionState.TERMINATED: set(),  # terminal
}


class SessionEventKind(str, Enum):
    """Messages accepted by the session's event channel."""

    START = "start"
    INITIAL_BUILD_DONE = "initial_build_done"
    INITIAL_BUILD_FAILED = "initial_build_failed"
    WATCHER_RESTART = "watcher_restart"
    REBUILD_DONE = "rebuild_done"
    WATCHER_EXIT = "watcher_exit"
    WATCHER_SPAWN_ERROR = "watcher_spawn_error"
    SERVER_EXIT = "server_exit"
    SERVER_SPAWN_ERROR = "server_spawn_error"


class SessionAction(str, Enum):
    """Side effects the state machine asks its orchestrator to perform."""

    RUN_INITIAL_BUILD = "run_initial_build"
    START_CHILDREN = "start_children"
    RUN_REBUILD = "run_rebuild"
    SHUTDOWN = "shutdown"


class SessionEvent(BaseModel):
    """One message on the session's event channel."""

    model_config = ConfigDict(frozen=True)

    kind: SessionEventKind
    ok: bool = True  # for exits and build completions
    message: str = ""
    paths: tuple[str, ...] = ()


class SessionTransition(BaseModel):
    """Records a single state transition, kept in the session history."""

    model_config = ConfigDict(frozen=True)

    from_state: SessionState
    to_state: SessionState
    event: SessionEventKind
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class SessionSummary(BaseModel):
    """Value the session's completion signal resolves to."""

    model_config = ConfigDict(frozen=True)

    output_type: str
    final_state: SessionState
    rebuild_count: int = 0
    failed_rebuilds: int = 0
    max_concurrent_builds: int = 0
    history: list[SessionTransition] = []
