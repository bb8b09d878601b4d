"""Tests for the BuildPipelineDispatcher: conversion, render chaining, errors."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import pytest

from bookpub.config import BookpubSettings
from bookpub.core.pipeline import BuildPipelineDispatcher, ConversionError
from bookpub.models.build import InvalidOutputTypeError, OutputType
from bookpub.models.process import OutcomeKind, ProcessOutcome


class TestHtmlBuild:
    def test_html_converts_without_rendering(self, settings, converter, supervisor):
        dispatcher = BuildPipelineDispatcher(settings, converter, supervisor)
        result = asyncio.run(dispatcher.dispatch("html"))

        assert len(converter.calls) == 1
        book, manuscript_dir, output_dir, output_type = converter.calls[0]
        assert manuscript_dir == settings.project_root / "manuscript"
        assert output_dir == settings.project_root / "build" / "html"
        assert output_type == "html"
        assert book.title == "Untitled Book"
        assert supervisor.spawned == []
        assert result.ok
        assert result.html_entry == output_dir / "index.html"

    def test_book_config_is_passed_through(self, settings, converter, supervisor):
        settings.book_config_path.write_text("title: Field Notes\n", encoding="utf-8")
        dispatcher = BuildPipelineDispatcher(settings, converter, supervisor)
        asyncio.run(dispatcher.dispatch("html"))
        assert converter.calls[0][0].title == "Field Notes"

    def test_logs_locations(self, settings, converter, supervisor, caplog):
        caplog.set_level(logging.INFO, logger="bookpub")
        asyncio.run(BuildPipelineDispatcher(settings, converter, supervisor).dispatch("html"))
        assert "Manuscript Location: /manuscript/" in caplog.text
        assert "Build Output Location: /build/html/" in caplog.text

    def test_sync_converter_runs_in_thread(self, settings, supervisor):
        calls = []

        class SyncConverter:
            def convert(self, book, manuscript_dir, output_dir, output_type):
                calls.append(output_type)

        dispatcher = BuildPipelineDispatcher(settings, SyncConverter(), supervisor)
        asyncio.run(dispatcher.dispatch(OutputType.HTML))
        assert calls == ["html"]


class TestPdfBuild:
    def test_render_follows_conversion(self, settings, converter, supervisor, call_log):
        dispatcher = BuildPipelineDispatcher(settings, converter, supervisor)
        result = asyncio.run(dispatcher.dispatch("pdf"))

        assert call_log == ["convert:pdf", "spawn:renderer"]
        handle = supervisor.spawned[0]
        assert handle.argv == ["prince", "build/pdf/index.html"]
        assert handle.options.cwd == settings.project_root
        assert result.rendered
        assert result.pdf_path == settings.project_root / "build" / "pdf" / "index.pdf"

    def test_custom_renderer(self, project_root: Path, converter, supervisor):
        settings = BookpubSettings(
            project_root=project_root, renderer="/opt/prince/bin/prince", _env_file=None
        )
        asyncio.run(BuildPipelineDispatcher(settings, converter, supervisor).dispatch("pdf"))
        assert supervisor.spawned[0].argv[0] == "/opt/prince/bin/prince"

    def test_renderer_failure_is_recorded(self, settings, converter, supervisor):
        supervisor.outcomes["renderer"] = ProcessOutcome(kind=OutcomeKind.EXITED, returncode=1)
        result = asyncio.run(
            BuildPipelineDispatcher(settings, converter, supervisor).dispatch("pdf")
        )
        assert not result.ok
        assert result.pdf_path is None
        assert result.render_error == "prince exited with code 1"
        assert (settings.output_path("pdf") / "index.html").exists()

    def test_missing_entry_skips_render(self, settings, make_converter, supervisor):
        converter = make_converter(write_entry=False)
        result = asyncio.run(
            BuildPipelineDispatcher(settings, converter, supervisor).dispatch("pdf")
        )
        assert supervisor.spawned == []
        assert "index.html" in result.render_error

    def test_missing_renderer_binary(self, project_root: Path, converter):
        settings = BookpubSettings(
            project_root=project_root, renderer="bookpub-no-such-renderer", _env_file=None
        )
        result = asyncio.run(BuildPipelineDispatcher(settings, converter).dispatch("pdf"))
        assert result.render_outcome.kind == OutcomeKind.SPAWN_ERROR
        assert "could not be started" in result.render_error


class TestFailures:
    def test_conversion_error_skips_render(self, settings, make_converter, supervisor):
        converter = make_converter(fail=RuntimeError("bad front matter"))
        dispatcher = BuildPipelineDispatcher(settings, converter, supervisor)

        with pytest.raises(ConversionError) as info:
            asyncio.run(dispatcher.dispatch("pdf"))

        assert isinstance(info.value.cause, RuntimeError)
        assert "bad front matter" in str(info.value)
        assert info.value.request.output_type == OutputType.PDF
        assert supervisor.spawned == []

    def test_unknown_type_does_nothing(self, settings, converter, supervisor):
        dispatcher = BuildPipelineDispatcher(settings, converter, supervisor)
        with pytest.raises(InvalidOutputTypeError):
            dispatcher.request_for("epub")
        with pytest.raises(InvalidOutputTypeError):
            asyncio.run(dispatcher.dispatch("epub"))
        assert converter.calls == []
        assert supervisor.spawned == []
        assert not (settings.project_root / "build").exists()

    def test_each_build_gets_a_fresh_request(self, settings, converter, supervisor):
        dispatcher = BuildPipelineDispatcher(settings, converter, supervisor)

        async def twice():
            return await dispatcher.dispatch("html"), await dispatcher.dispatch("html")

        first, second = asyncio.run(twice())
        assert first.request == second.request
        assert first.request is not second.request
