"""Dev session state machine.

Enforces:
- Valid state transitions only (VALID_TRANSITIONS table)
- One handler per event kind, each returning the actions to perform
- Overlapping rebuilds are counted and tolerated, never dropped
- Every transition recorded in the session history

The machine performs no I/O. ``DevOrchestrator`` feeds it events from the
session's channel and carries out the actions it returns, which keeps every
transition testable with synthetic events.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from bookpub.models.build import OutputType
from bookpub.models.session import (
    VALID_TRANSITIONS,
    SessionAction,
    SessionEvent,
    SessionEventKind,
    SessionState,
    SessionSummary,
    SessionTransition,
)

logger = logging.getLogger(__name__)


class InvalidTransitionError(RuntimeError):
    """Raised when a requested state transition is not valid."""


class SessionError(RuntimeError):
    """The failure a dev session's completion signal carries."""


class SessionMachine:
    """Tracks one dev session's state.

    Parameters
    ----------
    output_type:
        The output type every build in this session produces.
    """

    def __init__(self, output_type: OutputType) -> None:
        self.output_type = output_type
        self.state = SessionState.IDLE
        self.history: list[SessionTransition] = []

        # Build bookkeeping
        self.in_flight = 0
        self.max_concurrent_builds = 0
        self.rebuild_count = 0
        self.failed_rebuilds = 0

        # Set once TERMINATED is reached
        self.succeeded: bool | None = None
        self.failure: str | None = None

        self._handlers: dict[
            SessionEventKind, Callable[[SessionEvent], list[SessionAction]]
        ] = {
            SessionEventKind.START: self._on_start,
            SessionEventKind.INITIAL_BUILD_DONE: self._on_initial_build_done,
            SessionEventKind.INITIAL_BUILD_FAILED: self._on_initial_build_failed,
            SessionEventKind.WATCHER_RESTART: self._on_watcher_restart,
            SessionEventKind.REBUILD_DONE: self._on_rebuild_done,
            SessionEventKind.WATCHER_EXIT: self._on_watcher_exit,
            SessionEventKind.WATCHER_SPAWN_ERROR: self._on_spawn_error,
            SessionEventKind.SERVER_EXIT: self._on_server_exit,
            SessionEventKind.SERVER_SPAWN_ERROR: self._on_spawn_error,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def terminated(self) -> bool:
        return self.state == SessionState.TERMINATED

    def handle(self, event: SessionEvent) -> list[SessionAction]:
        """Apply *event* and return the actions the orchestrator must run."""
        if self.terminated:
            logger.debug("Session terminated, ignoring %s", event.kind.value)
            return []
        return self._handlers[event.kind](event)

    def transition(self, target: SessionState, event: SessionEventKind) -> SessionTransition:
        """Move to *target*, recording the transition.

        Raises
        ------
        InvalidTransitionError
            If VALID_TRANSITIONS does not allow the move.
        """
        allowed = VALID_TRANSITIONS.get(self.state, set())
        if target not in allowed:
            raise InvalidTransitionError(
                f"Cannot transition session from {self.state.value} to {target.value} "
                f"on {event.value}. Allowed: {sorted(s.value for s in allowed)}"
            )
        record = SessionTransition(from_state=self.state, to_state=target, event=event)
        self.history.append(record)
        logger.debug("Session %s -> %s (%s)", self.state.value, target.value, event.value)
        self.state = target
        return record

    def summary(self) -> SessionSummary:
        return SessionSummary(
            output_type=self.output_type.value,
            final_state=self.state,
            rebuild_count=self.rebuild_count,
            failed_rebuilds=self.failed_rebuilds,
            max_concurrent_builds=self.max_concurrent_builds,
            history=list(self.history),
        )

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_start(self, event: SessionEvent) -> list[SessionAction]:
        self.transition(SessionState.BUILDING, event.kind)
        self._build_started()
        return [SessionAction.RUN_INITIAL_BUILD]

    def _on_initial_build_done(self, event: SessionEvent) -> list[SessionAction]:
        self._build_finished()
        self.transition(SessionState.WATCHING, event.kind)
        return [SessionAction.START_CHILDREN]

    def _on_initial_build_failed(self, event: SessionEvent) -> list[SessionAction]:
        self._build_finished()
        return self._terminate(event, ok=False)

    def _on_watcher_restart(self, event: SessionEvent) -> list[SessionAction]:
        self.transition(SessionState.REBUILDING, event.kind)
        self._build_started()
        self.rebuild_count += 1
        if self.in_flight > 1:
            logger.warning(
                "Rebuild #%d started while %d earlier build(s) are still running; "
                "their writes to the output directory may interleave",
                self.rebuild_count,
                self.in_flight - 1,
            )
        return [SessionAction.RUN_REBUILD]

    def _on_rebuild_done(self, event: SessionEvent) -> list[SessionAction]:
        self._build_finished()
        if not event.ok:
            self.failed_rebuilds += 1
        if self.in_flight == 0 and self.state == SessionState.REBUILDING:
            self.transition(SessionState.WATCHING, event.kind)
        return []

    def _on_watcher_exit(self, event: SessionEvent) -> list[SessionAction]:
        return self._terminate(event, ok=event.ok)

    def _on_server_exit(self, event: SessionEvent) -> list[SessionAction]:
        return self._terminate(event, ok=event.ok)

    def _on_spawn_error(self, event: SessionEvent) -> list[SessionAction]:
        return self._terminate(event, ok=False)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _build_started(self) -> None:
        self.in_flight += 1
        self.max_concurrent_builds = max(self.max_concurrent_builds, self.in_flight)

    def _build_finished(self) -> None:
        self.in_flight = max(0, self.in_flight - 1)

    def _terminate(self, event: SessionEvent, *, ok: bool) -> list[SessionAction]:
        self.transition(SessionState.TERMINATED, event.kind)
        self.succeeded = ok
        if not ok:
            self.failure = event.message or f"session ended on {event.kind.value}"
        return [SessionAction.SHUTDOWN]
