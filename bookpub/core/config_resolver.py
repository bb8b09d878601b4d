"""Watcher configuration resolution.

Two providers share one interface, ``provide() -> WatcherConfig | None``:

- ``FileWatcherConfigProvider`` reads the author's JSON file (``nodemon.json``
  by default) and accepts it only when its execution map has an ``html``
  entry.
- ``DefaultWatcherConfigProvider`` always produces the safe default.

``WatcherConfigResolver`` asks them in order. Configuration is read as
declarative JSON only; no user code is imported or executed.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from bookpub.models.build import OutputType
from bookpub.models.watcher import (
    DEFAULT_WATCH_EXTENSIONS,
    DEFAULT_WATCH_ROOT,
    WatcherConfig,
)

logger = logging.getLogger(__name__)

TOOL_NAME = "bookpub"


class WatcherConfigProvider(Protocol):
    """Source of a watcher configuration."""

    def provide(self) -> WatcherConfig | None:
        """Return a config, or None if this provider has nothing usable."""
        ...


class FileWatcherConfigProvider:
    """Reads a user-supplied watcher configuration file.

    Parameters
    ----------
    path:
        Absolute path to the JSON file.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def provide(self) -> WatcherConfig | None:
        if not self.path.exists():
            logger.debug("No watcher config at %s", self.path)
            return None

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring %s: could not parse it (%s)", self.path.name, exc)
            return None

        if not isinstance(raw, dict):
            logger.warning(
                "Ignoring %s: expected a JSON object, got %s",
                self.path.name,
                type(raw).__name__,
            )
            return None

        if not validate_user_config(raw):
            logger.warning(
                "Ignoring %s: it must declare a non-empty \"execMap\" with an \"html\" entry",
                self.path.name,
            )
            return None

        try:
            return WatcherConfig.model_validate(
                {**raw, "config_file": self.path, "source": "file", "raw": raw}
            )
        except ValidationError as exc:
            logger.warning("Ignoring %s: %s", self.path.name, exc)
            return None


class DefaultWatcherConfigProvider:
    """Builds the default config for one output type."""

    def __init__(self, output_type: OutputType | str) -> None:
        self.output_type = OutputType.parse(output_type)

    def provide(self) -> WatcherConfig:
        return default_watcher_config(self.output_type)


def validate_user_config(raw: object) -> bool:
    """The minimal contract: a non-empty ``execMap`` with an ``html`` key."""
    if not isinstance(raw, dict):
        return False
    exec_map = raw.get("execMap")
    return isinstance(exec_map, dict) and bool(exec_map) and bool(exec_map.get("html"))


def default_watcher_config(output_type: OutputType | str) -> WatcherConfig:
    """The watcher settings used when no valid user file exists."""
    parsed = OutputType.parse(output_type)
    return WatcherConfig(
        script=TOOL_NAME,
        ext=DEFAULT_WATCH_EXTENSIONS,
        exec_command=f"{TOOL_NAME} build --type {parsed.value}",
        watch=(DEFAULT_WATCH_ROOT,),
        source="default",
    )


class WatcherConfigResolver:
    """Resolves the watcher configuration for a dev session.

    Parameters
    ----------
    config_path:
        Where the user's watcher file would live.
    providers:
        Optional explicit provider chain (mostly for tests). When given,
        the default provider is still appended as the last resort.
    """

    def __init__(
        self,
        config_path: Path,
        providers: list[WatcherConfigProvider] | None = None,
    ) -> None:
        self.config_path = config_path
        self._providers = providers

    def resolve(self, output_type: OutputType | str) -> WatcherConfig:
        """Return the user's config if it is valid, else the default."""
        parsed = OutputType.parse(output_type)
        providers = (
            list(self._providers)
            if self._providers is not None
            else [FileWatcherConfigProvider(self.config_path)]
        )

        for provider in providers:
            config = provider.provide()
            if config is not None:
                logger.info("Using watcher settings from %s", config.config_file or "provider")
                return config

        logger.info("Using default watcher settings with outputType: %s.", parsed.value)
        return DefaultWatcherConfigProvider(parsed).provide()
