"""Default conversion collaborator: Markdown manuscript -> single HTML page.

Markdown files under the manuscript directory are rendered in natural
order (``2-intro.md`` before ``10-outro.md``) with markdown2 and joined
into ``index.html``. Static assets (stylesheets, scripts, images, fonts)
are copied alongside, keeping their relative paths.
"""

from __future__ import annotations

import logging
import re
import shutil
from html import escape
from pathlib import Path

from markdown2 import Markdown

from bookpub.models.book import BookConfig

logger = logging.getLogger(__name__)

MARKUP_SUFFIXES = {".md", ".mdx", ".markdown"}
ASSET_SUFFIXES = {
    ".css", ".js", ".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp",
    ".woff", ".woff2", ".ttf", ".otf",
}
MARKDOWN_EXTRAS = ["fenced-code-blocks", "tables", "footnotes", "header-ids", "smarty-pants"]


class ConversionFailure(RuntimeError):
    """Raised when the manuscript cannot be converted."""


def natural_sort_key(path: Path) -> list:
    """Sort paths with embedded numbers naturally (2.md before 10.md)."""
    return [
        int(text) if text.isdigit() else text.lower()
        for text in re.split(r"(\d+)", path.as_posix())
    ]


def _page(body: str, book: BookConfig, output_type: str) -> str:
    links = "\n".join(
        f'  <link rel="stylesheet" href="{escape(href)}">' for href in book.stylesheets
    )
    scripts = "\n".join(
        f'  <script src="{escape(src)}"></script>' for src in book.scripts
    )
    return f"""<!DOCTYPE html>
<html lang="{escape(book.language)}" data-output="{output_type}">
<head>
  <meta charset="utf-8">
  <title>{escape(book.title)}</title>
{links}
</head>
<body>
{body}
{scripts}
</body>
</html>
"""


class MarkdownConverter:
    """Renders the manuscript into ``<output_dir>/index.html``."""

    def __init__(self, extras: list[str] | None = None) -> None:
        self.extras = extras if extras is not None else list(MARKDOWN_EXTRAS)

    def convert(
        self,
        book: BookConfig,
        manuscript_dir: Path,
        output_dir: Path,
        output_type: str,
    ) -> Path:
        if not manuscript_dir.is_dir():
            raise ConversionFailure(f"Manuscript directory not found: {manuscript_dir}")

        sources = sorted(
            (p for p in manuscript_dir.rglob("*") if p.suffix.lower() in MARKUP_SUFFIXES),
            key=natural_sort_key,
        )
        if not sources:
            raise ConversionFailure(f"No markup files found in {manuscript_dir}")

        renderer = Markdown(extras=self.extras)
        sections: list[str] = []
        for source in sources:
            try:
                text = source.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise ConversionFailure(f"Cannot read {source.name}: {exc}") from exc
            renderer.reset()
            sections.append(
                f'<section id="{escape(source.stem)}">\n{renderer.convert(text)}</section>'
            )

        output_dir.mkdir(parents=True, exist_ok=True)
        entry = output_dir / "index.html"
        entry.write_text(_page("\n".join(sections), book, output_type), encoding="utf-8")

        copied = self._copy_assets(manuscript_dir, output_dir)
        logger.debug(
            "Converted %d file(s) into %s, copied %d asset(s)", len(sources), entry, copied
        )
        return entry

    @staticmethod
    def _copy_assets(manuscript_dir: Path, output_dir: Path) -> int:
        count = 0
        for asset in manuscript_dir.rglob("*"):
            if not asset.is_file() or asset.suffix.lower() not in ASSET_SUFFIXES:
                continue
            target = output_dir / asset.relative_to(manuscript_dir)
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(asset, target)
            count += 1
        return count
