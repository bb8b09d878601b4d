"""Default project scaffolder for ``bookpub new``."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_INDEX_MD = """# {title}

Start writing your book here. Every Markdown file in `manuscript/` is
included in the build, in natural filename order.
"""

_GITIGNORE = "build/\n.env\n"


class ProjectExistsError(FileExistsError):
    """Raised when the target project directory already exists."""


class BookProjectScaffolder:
    """Creates ``<parent>/<project_name>`` with a starter manuscript.

    Parameters
    ----------
    parent:
        Directory the project is created in (normally the working directory).
    """

    def __init__(self, parent: Path) -> None:
        self.parent = parent

    def create(self, project_name: str) -> Path:
        name = project_name.strip()
        if not name or Path(name).name != name or name in (".", ".."):
            raise ValueError(f"Invalid project name: {project_name!r}")

        root = self.parent / name
        if root.exists():
            raise ProjectExistsError(f"Directory already exists: {root}")

        title = name.replace("-", " ").replace("_", " ").title()
        (root / "manuscript").mkdir(parents=True)
        (root / "manuscript" / "index.md").write_text(
            _INDEX_MD.format(title=title), encoding="utf-8"
        )
        (root / "book.config.yml").write_text(
            yaml.safe_dump({"title": title, "author": "", "language": "en"}, sort_keys=False),
            encoding="utf-8",
        )
        (root / ".gitignore").write_text(_GITIGNORE, encoding="utf-8")

        logger.info("Created new book project at %s", root)
        return root
