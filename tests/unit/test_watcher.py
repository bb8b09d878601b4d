"""Tests for the watcher child: protocol lines, event filtering, batching."""

from __future__ import annotations

import io
import threading
from pathlib import Path

from watchdog.events import FileCreatedEvent, FileModifiedEvent, FileMovedEvent, DirModifiedEvent

from bookpub.watcher import ChangeBatcher, ManuscriptChangeHandler, run_watcher
from bookpub.watcher import protocol


class TestProtocol:
    def test_restart_round_trip(self):
        line = protocol.encode_restart(["b.md", "a.md"])
        assert "\n" not in line
        assert protocol.decode_message(line) == {"event": "restart", "paths": ["a.md", "b.md"]}

    def test_plain_output_is_not_a_message(self):
        assert protocol.decode_message("webpack compiled successfully") is None
        assert protocol.decode_message("{broken json") is None
        assert protocol.decode_message('{"no_event": 1}') is None
        assert protocol.decode_message("[1, 2]") is None


class TestManuscriptChangeHandler:
    def _handler(self, root: Path, seen: list[str], ignore=()) -> ManuscriptChangeHandler:
        return ManuscriptChangeHandler(root, ["md", "css"], ignore, seen.append)

    def test_extension_filter(self, tmp_path: Path):
        seen: list[str] = []
        handler = self._handler(tmp_path, seen)
        handler.dispatch(FileModifiedEvent(str(tmp_path / "manuscript" / "one.md")))
        handler.dispatch(FileModifiedEvent(str(tmp_path / "manuscript" / "one.md.swp")))
        handler.dispatch(FileCreatedEvent(str(tmp_path / "manuscript" / "style.CSS")))
        assert seen == [
            str(tmp_path / "manuscript" / "one.md"),
            str(tmp_path / "manuscript" / "style.CSS"),
        ]

    def test_directories_ignored(self, tmp_path: Path):
        seen: list[str] = []
        self._handler(tmp_path, seen).dispatch(DirModifiedEvent(str(tmp_path / "manuscript")))
        assert seen == []

    def test_ignore_globs(self, tmp_path: Path):
        seen: list[str] = []
        handler = self._handler(tmp_path, seen, ignore=["manuscript/drafts/*", "*.bak.md"])
        handler.dispatch(FileModifiedEvent(str(tmp_path / "manuscript" / "drafts" / "x.md")))
        handler.dispatch(FileModifiedEvent(str(tmp_path / "manuscript" / "ch1.bak.md")))
        handler.dispatch(FileModifiedEvent(str(tmp_path / "manuscript" / "ch1.md")))
        assert seen == [str(tmp_path / "manuscript" / "ch1.md")]

    def test_move_reports_destination(self, tmp_path: Path):
        seen: list[str] = []
        handler = self._handler(tmp_path, seen)
        handler.dispatch(FileMovedEvent(
            str(tmp_path / "manuscript" / ".tmp123"), str(tmp_path / "manuscript" / "ch2.md")
        ))
        assert seen == [str(tmp_path / "manuscript" / "ch2.md")]


class TestChangeBatcher:
    def test_burst_becomes_one_batch(self):
        batches: list[list[str]] = []
        flushed = threading.Event()

        def flush(paths: list[str]) -> None:
            batches.append(paths)
            flushed.set()

        batcher = ChangeBatcher(0.05, flush)
        for path in ["b.md", "a.md", "b.md"]:
            batcher.add(path)

        assert flushed.wait(timeout=2.0)
        assert batches == [["a.md", "b.md"]]

    def test_cancel_drops_pending(self):
        batches: list[list[str]] = []
        batcher = ChangeBatcher(0.05, batches.append)
        batcher.add("a.md")
        batcher.cancel()
        threading.Event().wait(0.15)
        assert batches == []


class TestRunWatcher:
    def test_nothing_to_watch(self, tmp_path: Path):
        out = io.StringIO()
        code = run_watcher(tmp_path, ["missing"], ["md"], out=out)
        assert code == 1
        assert out.getvalue() == ""
