"""Project configuration model (``book.config.yml``)."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class BookConfig(BaseModel):
    """Book metadata handed to the conversion collaborator.

    Unknown keys are kept, so converters can read their own settings
    without this model having to know about them.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    title: str = "Untitled Book"
    author: str = ""
    language: str = "en"
    stylesheets: list[str] = []
    scripts: list[str] = []

    def get(self, key: str, default: Any = None) -> Any:
        """Dict-style lookup across declared and extra fields."""
        if key in type(self).model_fields:
            return getattr(self, key)
        return (self.model_extra or {}).get(key, default)
