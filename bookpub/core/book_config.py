"""Loader for the optional ``book.config.yml`` project file."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from bookpub.models.book import BookConfig

logger = logging.getLogger(__name__)


def load_book_config(path: Path) -> BookConfig:
    """Load project configuration from *path*.

    A missing file yields the defaults. Unparsable YAML, a document that is
    not a mapping, or values that fail validation are logged and also yield
    the defaults, so the converter always receives a usable ``BookConfig``.
    """
    if not path.exists():
        logger.debug("No project config at %s, using defaults", path)
        return BookConfig()

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Could not read %s, using defaults: %s", path.name, exc)
        return BookConfig()

    if data is None:
        return BookConfig()
    if not isinstance(data, dict):
        logger.warning(
            "%s must contain a mapping, got %s; using defaults",
            path.name,
            type(data).__name__,
        )
        return BookConfig()

    try:
        return BookConfig.model_validate(data)
    except ValidationError as exc:
        logger.warning("Invalid %s, using defaults: %s", path.name, exc)
        return BookConfig()
