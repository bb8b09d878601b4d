"""Tests for book.config.yml loading."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from bookpub.core.book_config import load_book_config
from bookpub.models.book import BookConfig


class TestLoadBookConfig:
    def test_missing_file_gives_defaults(self, tmp_path: Path):
        assert load_book_config(tmp_path / "book.config.yml") == BookConfig()

    def test_reads_yaml(self, tmp_path: Path):
        path = tmp_path / "book.config.yml"
        path.write_text(
            "title: My Book\nauthor: A. Writer\nstylesheets:\n  - print.css\n",
            encoding="utf-8",
        )
        book = load_book_config(path)
        assert book.title == "My Book"
        assert book.author == "A. Writer"
        assert book.stylesheets == ["print.css"]

    def test_empty_file_gives_defaults(self, tmp_path: Path):
        path = tmp_path / "book.config.yml"
        path.write_text("", encoding="utf-8")
        assert load_book_config(path) == BookConfig()

    @pytest.mark.parametrize("content", ["title: [unclosed", "- just\n- a list\n"])
    def test_bad_content_logged_and_defaulted(
        self, tmp_path: Path, content: str, caplog: pytest.LogCaptureFixture
    ):
        caplog.set_level(logging.WARNING, logger="bookpub")
        path = tmp_path / "book.config.yml"
        path.write_text(content, encoding="utf-8")
        assert load_book_config(path) == BookConfig()
        assert caplog.records

    def test_invalid_values_defaulted(self, tmp_path: Path):
        path = tmp_path / "book.config.yml"
        path.write_text("stylesheets: 42\n", encoding="utf-8")
        assert load_book_config(path) == BookConfig()
