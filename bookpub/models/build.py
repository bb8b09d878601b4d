"""Build request and result models.

A ``BuildRequest`` is constructed fresh for every build and rebuild; it is
never reused or patched between invocations.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from bookpub.models.process import ProcessOutcome

if TYPE_CHECKING:
    from bookpub.config import BookpubSettings


class InvalidOutputTypeError(ValueError):
    """Raised when an output type other than html or pdf is requested."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(
            'Invalid output type specified. Use either "html" or "pdf".'
        )


class OutputType(str, Enum):
    """The output formats the build pipeline can produce."""

    HTML = "html"
    PDF = "pdf"

    @classmethod
    def parse(cls, value: str | OutputType) -> OutputType:
        """Return the matching member or raise ``InvalidOutputTypeError``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise InvalidOutputTypeError(value) from exc


class BuildRequest(BaseModel):
    """One build of the manuscript into one output tree."""

    model_config = ConfigDict(frozen=True)

    manuscript_dir: Path
    output_dir: Path
    output_type: OutputType

    @classmethod
    def for_type(
        cls, settings: BookpubSettings, output_type: str | OutputType
    ) -> BuildRequest:
        """Build a request for ``build/<type>`` under the project root."""
        parsed = OutputType.parse(output_type)
        return cls(
            manuscript_dir=settings.manuscript_path,
            output_dir=settings.output_path(parsed),
            output_type=parsed,
        )

    @property
    def entry_file(self) -> Path:
        """The HTML entry point the conversion is expected to produce."""
        return self.output_dir / "index.html"

    @property
    def pdf_file(self) -> Path:
        return self.output_dir / "index.pdf"


class BuildResult(BaseModel):
    """Outcome of a single pipeline run.

    ``render_error`` is set when the print renderer could not run or
    failed; the HTML output is still valid in that case.
    """

    model_config = ConfigDict(frozen=True)

    request: BuildRequest
    html_entry: Path
    pdf_path: Path | None = None
    render_outcome: ProcessOutcome | None = None
    render_error: str | None = None

    @property
    def rendered(self) -> bool:
        return self.pdf_path is not None and self.render_error is None

    @property
    def ok(self) -> bool:
        """True when every step requested by the output type succeeded."""
        if self.request.output_type == OutputType.PDF:
            return self.rendered
        return True
