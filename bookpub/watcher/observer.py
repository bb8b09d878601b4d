"""watchdog-based file watching for the watcher child process."""

from __future__ import annotations

import fnmatch
import logging
import signal
import sys
import threading
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import TextIO

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from bookpub.watcher import protocol

log = logging.getLogger(__name__)


class ChangeBatcher:
    """Collects changed paths and flushes them once things go quiet.

    Every ``add()`` restarts the quiet-period timer, so a burst of editor
    writes produces a single batch.
    """

    def __init__(self, delay: float, flush: Callable[[list[str]], None]) -> None:
        self.delay = delay
        self._flush = flush
        self._pending: set[str] = set()
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None

    def add(self, path: str) -> None:
        with self._lock:
            self._pending.add(path)
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._pending.clear()

    def _fire(self) -> None:
        with self._lock:
            paths = sorted(self._pending)
            self._pending.clear()
            self._timer = None
        if paths:
            self._flush(paths)


class ManuscriptChangeHandler(FileSystemEventHandler):
    """A watchdog event handler that filters events by extension and ignore globs."""

    def __init__(
        self,
        root: Path,
        extensions: Iterable[str],
        ignore: Iterable[str],
        notify: Callable[[str], None],
    ) -> None:
        super().__init__()
        self.root = root
        self.extensions = {e.lower().lstrip(".") for e in extensions}
        self.ignore = list(ignore)
        self._notify = notify

    def matches(self, path_str: str) -> bool:
        path = Path(path_str)
        if path.suffix.lower().lstrip(".") not in self.extensions:
            return False
        try:
            rel = path.resolve().relative_to(self.root.resolve()).as_posix()
        except ValueError:
            rel = path.as_posix()
        return not any(
            fnmatch.fnmatch(rel, pattern) or fnmatch.fnmatch(path.name, pattern)
            for pattern in self.ignore
        )

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type in ("opened", "closed_no_write"):
            return
        candidates = [event.src_path, getattr(event, "dest_path", "")]
        for candidate in candidates:
            if candidate and self.matches(str(candidate)):
                log.debug("Watchdog event: %s on %s", event.event_type, candidate)
                self._notify(str(candidate))


def run_watcher(
    root: Path,
    watch: Iterable[str],
    extensions: Iterable[str],
    ignore: Iterable[str] = (),
    delay: float = 0.3,
    out: TextIO | None = None,
) -> int:
    """Watch *watch* directories under *root* until interrupted.

    Returns the process exit code: 0 on SIGINT/SIGTERM, 1 if nothing could
    be watched or the observer thread died.
    """
    out = out or sys.stdout
    write_lock = threading.Lock()

    def emit(paths: list[str]) -> None:
        with write_lock:
            out.write(protocol.encode_restart(paths) + "\n")
            out.flush()

    batcher = ChangeBatcher(delay, emit)
    handler = ManuscriptChangeHandler(root, extensions, ignore, batcher.add)

    observer = Observer()
    scheduled = 0
    for entry in watch:
        target = root / entry
        if not target.exists():
            log.warning("Watch path does not exist, skipping: %s", target)
            continue
        observer.schedule(handler, str(target), recursive=target.is_dir())
        scheduled += 1
    if not scheduled:
        log.error("Nothing to watch under %s", root)
        return 1

    stop = threading.Event()

    def _request_stop(signum, frame) -> None:  # noqa: ARG001
        stop.set()

    signal.signal(signal.SIGTERM, _request_stop)
    signal.signal(signal.SIGINT, _request_stop)

    observer.start()
    with write_lock:
        out.write(protocol.encode_message(protocol.READY, watching=scheduled) + "\n")
        out.flush()

    exit_code = 0
    try:
        while not stop.wait(timeout=0.5):
            if not observer.is_alive():
                log.error("Watchdog observer thread has stopped unexpectedly.")
                exit_code = 1
                break
    finally:
        batcher.cancel()
        observer.stop()
        observer.join()
    return exit_code
