"""Watcher configuration model.

Field names follow the nodemon-style JSON files authors already keep in
their projects (``execMap``, ``ext``, ``watch``), so an existing
``nodemon.json`` can be read without translation.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Markup, template, script, style, and data formats.
DEFAULT_WATCH_EXTENSIONS: tuple[str, ...] = (
    "md",
    "mdx",
    "js",
    "ejs",
    "json",
    "html",
    "css",
    "scss",
    "yaml",
)

DEFAULT_WATCH_ROOT = "manuscript"


def _split_csv(value: Any) -> Any:
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(",") if part.strip())
    return value


class WatcherConfig(BaseModel):
    """Resolved configuration for one dev session's watcher process.

    Never mutated after resolution; a changed configuration is always
    re-resolved into a new instance.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    script: str | None = None
    ext: tuple[str, ...] = DEFAULT_WATCH_EXTENSIONS
    exec_command: str | None = Field(default=None, alias="exec")
    watch: tuple[str, ...] = (DEFAULT_WATCH_ROOT,)
    exec_map: dict[str, str] = Field(default_factory=dict, alias="execMap")
    ignore: tuple[str, ...] = ()
    delay: float | None = None  # seconds; overrides the debounce setting

    # Provenance, not part of the user's file.
    config_file: Path | None = None
    source: Literal["file", "default"] = "default"
    raw: dict[str, Any] = Field(default_factory=dict)

    @field_validator("ext", mode="before")
    @classmethod
    def _normalize_ext(cls, value: Any) -> Any:
        value = _split_csv(value)
        if isinstance(value, (list, tuple)):
            return tuple(str(e).lstrip(".").lower() for e in value if str(e).strip())
        return value

    @field_validator("watch", "ignore", mode="before")
    @classmethod
    def _normalize_paths(cls, value: Any) -> Any:
        if isinstance(value, str):
            return (value,)
        return value

    @field_validator("delay", mode="before")
    @classmethod
    def _normalize_delay(cls, value: Any) -> Any:
        # nodemon accepts "2.5" (seconds) as well as 2500 (milliseconds).
        if isinstance(value, str):
            value = value.strip().rstrip("s")
            return float(value) if value else None
        if isinstance(value, int) and value > 100:
            return value / 1000
        return value

    def has_html_exec(self) -> bool:
        """Whether the execution map carries the mandatory ``html`` entry."""
        return bool(self.exec_map) and bool(self.exec_map.get("html"))

    def watch_payload(self) -> dict[str, Any]:
        """The subset of fields the watcher child process needs."""
        return {
            "watch": list(self.watch),
            "ext": list(self.ext),
            "ignore": list(self.ignore),
            "delay": self.delay,
        }
