"""bookpub data models — all Pydantic v2, all frozen (immutable)."""

from bookpub.models.book import BookConfig
from bookpub.models.build import (
    BuildRequest,
    BuildResult,
    InvalidOutputTypeError,
    OutputType,
)
from bookpub.models.process import (
    OutcomeKind,
    ProcessEvent,
    ProcessEventKind,
    ProcessOutcome,
    SpawnOptions,
)
from bookpub.models.session import (
    VALID_TRANSITIONS,
    SessionAction,
    SessionEvent,
    SessionEventKind,
    SessionState,
    SessionSummary,
    SessionTransition,
)
from bookpub.models.watcher import (
    DEFAULT_WATCH_EXTENSIONS,
    DEFAULT_WATCH_ROOT,
    WatcherConfig,
)

__all__ = [
    # book
    "BookConfig",
    # build
    "BuildRequest",
    "BuildResult",
    "InvalidOutputTypeError",
    "OutputType",
    # process
    "OutcomeKind",
    "ProcessEvent",
    "ProcessEventKind",
    "ProcessOutcome",
    "SpawnOptions",
    # session
    "SessionAction",
    "SessionEvent",
    "SessionEventKind",
    "SessionState",
    "SessionSummary",
    "SessionTransition",
    "VALID_TRANSITIONS",
    # watcher
    "DEFAULT_WATCH_EXTENSIONS",
    "DEFAULT_WATCH_ROOT",
    "WatcherConfig",
]
