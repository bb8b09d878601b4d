"""Default template linter for ``.ejs`` files.

Only structural problems are detected: every ``<%`` opening tag must be
closed by a ``%>`` before the next one opens, and no ``%>`` may appear
without an opener. Linting stops at the first invalid file.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

TEMPLATE_SUFFIX = ".ejs"
_TAG = re.compile(r"<%%|%%>|<%|%>")


class TemplateLintError(ValueError):
    """Raised for the first template that fails linting."""

    def __init__(self, path: Path, line: int, message: str) -> None:
        self.path = path
        self.line = line
        super().__init__(f"{path}:{line}: {message}")


def _check(path: Path, text: str) -> None:
    open_line: int | None = None
    for match in _TAG.finditer(text):
        token = match.group(0)
        if token in ("<%%", "%%>"):  # literal delimiters
            continue
        line = text.count("\n", 0, match.start()) + 1
        if token == "<%":
            if open_line is not None:
                raise TemplateLintError(
                    path, line, f"tag opened before the tag on line {open_line} was closed"
                )
            open_line = line
        else:
            if open_line is None:
                raise TemplateLintError(path, line, "closing %> without a matching <%")
            open_line = None
    if open_line is not None:
        raise TemplateLintError(path, open_line, "unclosed <% tag")


class EjsTemplateLinter:
    """Lints one template file, or every template under a directory."""

    def lint(self, path: Path) -> list[Path]:
        """Return the files checked; raise ``TemplateLintError`` on the first bad one."""
        if path.is_dir():
            files = sorted(p for p in path.rglob(f"*{TEMPLATE_SUFFIX}") if p.is_file())
        elif path.exists():
            files = [path]
        else:
            raise FileNotFoundError(f"No such file or directory: {path}")

        for file in files:
            try:
                text = file.read_text(encoding="utf-8")
            except UnicodeDecodeError as exc:
                raise TemplateLintError(file, 1, f"not valid UTF-8 ({exc.reason})") from exc
            _check(file, text)
            logger.debug("Template OK: %s", file)
        return files
