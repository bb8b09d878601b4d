"""Tests for the default collaborators: converter, linter, scaffolder."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from bookpub.collaborators import (
    BookProjectScaffolder,
    ConversionFailure,
    EjsTemplateLinter,
    MarkdownConverter,
    ProjectExistsError,
    TemplateLintError,
)
from bookpub.collaborators.converter import natural_sort_key
from bookpub.models.book import BookConfig


class TestMarkdownConverter:
    def test_natural_order(self, tmp_path: Path):
        names = ["10-end.md", "2-middle.md", "1-start.md"]
        ordered = sorted((tmp_path / n for n in names), key=natural_sort_key)
        assert [p.name for p in ordered] == ["1-start.md", "2-middle.md", "10-end.md"]

    def test_converts_into_index(self, tmp_path: Path):
        manuscript = tmp_path / "manuscript"
        (manuscript / "img").mkdir(parents=True)
        (manuscript / "10-end.md").write_text("# The End\n", encoding="utf-8")
        (manuscript / "2-start.md").write_text("# Start\n\nSome *text*.\n", encoding="utf-8")
        (manuscript / "style.css").write_text("body {}\n", encoding="utf-8")
        (manuscript / "img" / "cover.png").write_bytes(b"\x89PNG")
        output = tmp_path / "build" / "html"

        book = BookConfig(title="Field <Notes>", stylesheets=["style.css"])
        entry = MarkdownConverter().convert(book, manuscript, output, "html")

        html = entry.read_text(encoding="utf-8")
        assert entry == output / "index.html"
        assert html.index('id="2-start"') < html.index('id="10-end"')
        assert "<em>text</em>" in html
        assert "<title>Field &lt;Notes&gt;</title>" in html
        assert '<link rel="stylesheet" href="style.css">' in html
        assert (output / "style.css").exists()
        assert (output / "img" / "cover.png").exists()

    def test_missing_manuscript(self, tmp_path: Path):
        with pytest.raises(ConversionFailure, match="not found"):
            MarkdownConverter().convert(BookConfig(), tmp_path / "nope", tmp_path / "out", "html")

    def test_empty_manuscript(self, tmp_path: Path):
        (tmp_path / "manuscript").mkdir()
        with pytest.raises(ConversionFailure, match="No markup files"):
            MarkdownConverter().convert(
                BookConfig(), tmp_path / "manuscript", tmp_path / "out", "html"
            )


class TestEjsTemplateLinter:
    def test_valid_templates(self, tmp_path: Path):
        (tmp_path / "a.ejs").write_text("<h1><%= title %></h1>\n<%- body -%>\n", encoding="utf-8")
        (tmp_path / "b.ejs").write_text("Literal <%% stays %%>\n", encoding="utf-8")
        checked = EjsTemplateLinter().lint(tmp_path)
        assert [p.name for p in checked] == ["a.ejs", "b.ejs"]

    def test_unclosed_tag(self, tmp_path: Path):
        bad = tmp_path / "bad.ejs"
        bad.write_text("line one\n<% if (x) {\n", encoding="utf-8")
        with pytest.raises(TemplateLintError) as info:
            EjsTemplateLinter().lint(tmp_path)
        assert info.value.path == bad
        assert info.value.line == 2

    def test_stray_closer(self, tmp_path: Path):
        bad = tmp_path / "bad.ejs"
        bad.write_text("oops %>\n", encoding="utf-8")
        with pytest.raises(TemplateLintError, match="without a matching"):
            EjsTemplateLinter().lint(bad)

    def test_missing_path(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            EjsTemplateLinter().lint(tmp_path / "missing.ejs")


class TestBookProjectScaffolder:
    def test_creates_project(self, tmp_path: Path):
        root = BookProjectScaffolder(tmp_path).create("my-first-book")

        assert root == tmp_path / "my-first-book"
        assert "# My First Book" in (root / "manuscript" / "index.md").read_text(encoding="utf-8")
        config = yaml.safe_load((root / "book.config.yml").read_text(encoding="utf-8"))
        assert config["title"] == "My First Book"
        assert "build/" in (root / ".gitignore").read_text(encoding="utf-8")

    def test_refuses_existing_directory(self, tmp_path: Path):
        (tmp_path / "taken").mkdir()
        with pytest.raises(ProjectExistsError):
            BookProjectScaffolder(tmp_path).create("taken")

    @pytest.mark.parametrize("name", ["", "  ", "a/b", ".."])
    def test_invalid_names(self, tmp_path: Path, name: str):
        with pytest.raises(ValueError):
            BookProjectScaffolder(tmp_path).create(name)
