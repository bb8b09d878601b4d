"""Build pipeline dispatcher — conversion, then (for PDF) rendering.

Lifecycle of one ``build()`` call:

    validate output type -> load book config -> convert
        -> [pdf only] check entry file -> spawn renderer -> wait

The render step never starts before conversion has returned and the HTML
entry file exists. A conversion failure aborts the request with
``ConversionError``; a render failure is recorded on the ``BuildResult``
and leaves the HTML output in place.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from pathlib import Path

from bookpub.collaborators.base import Converter
from bookpub.config import BookpubSettings
from bookpub.core.book_config import load_book_config
from bookpub.core.supervisor import ProcessSupervisor
from bookpub.models.build import BuildRequest, BuildResult, OutputType
from bookpub.models.process import SpawnOptions

logger = logging.getLogger(__name__)


class ConversionError(RuntimeError):
    """Raised when the conversion collaborator fails for a request."""

    def __init__(self, request: BuildRequest, cause: BaseException) -> None:
        self.request = request
        self.cause = cause
        super().__init__(
            f"Conversion to {request.output_type.value} failed: {cause}"
        )


class BuildPipelineDispatcher:
    """Runs builds for one project.

    Parameters
    ----------
    settings:
        Project settings (paths, renderer binary).
    converter:
        The conversion collaborator.
    supervisor:
        Process supervisor used to spawn the print renderer.
    """

    def __init__(
        self,
        settings: BookpubSettings,
        converter: Converter,
        supervisor: ProcessSupervisor | None = None,
    ) -> None:
        self.settings = settings
        self.converter = converter
        self.supervisor = supervisor or ProcessSupervisor(cwd=settings.project_root)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def request_for(self, output_type: str | OutputType) -> BuildRequest:
        """Build a fresh request; raises ``InvalidOutputTypeError`` up front."""
        return BuildRequest.for_type(self.settings, output_type)

    async def dispatch(self, output_type: str | OutputType) -> BuildResult:
        """Validate *output_type*, then run a build for it."""
        return await self.build(self.request_for(output_type))

    async def build(self, request: BuildRequest) -> BuildResult:
        """Run the pipeline for *request*.

        Raises
        ------
        ConversionError
            If conversion fails. Nothing is rendered in that case.
        """
        await self._convert(request)
        result = BuildResult(request=request, html_entry=request.entry_file)

        if request.output_type == OutputType.PDF:
            result = await self._render(result)
        return result

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _convert(self, request: BuildRequest) -> None:
        logger.info(
            "Manuscript Location: %s  Build Output Location: %s",
            self.settings.relative(request.manuscript_dir) + "/",
            self.settings.relative(request.output_dir) + "/",
        )
        book = load_book_config(self.settings.book_config_path)
        convert = self.converter.convert
        args = (book, request.manuscript_dir, request.output_dir, request.output_type.value)

        try:
            if inspect.iscoroutinefunction(convert):
                await convert(*args)
            else:
                await asyncio.to_thread(convert, *args)
        except Exception as exc:
            raise ConversionError(request, exc) from exc

    async def _render(self, result: BuildResult) -> BuildResult:
        request = result.request
        entry = request.entry_file
        if not entry.exists():
            message = f"HTML entry file not found: {self.settings.relative(entry)}"
            logger.error("Could not build the PDF: %s", message)
            return result.model_copy(update={"render_error": message})

        entry_arg = self._relative_arg(entry)
        logger.info(
            "Building your Print PDF to %s", self.settings.relative(request.pdf_file)
        )
        handle = self.supervisor.spawn(
            self.settings.renderer,
            [entry_arg],
            SpawnOptions(name="renderer", cwd=self.settings.project_root),
        )
        outcome = await handle.wait()

        if outcome.succeeded:
            return result.model_copy(
                update={"pdf_path": request.pdf_file, "render_outcome": outcome}
            )

        message = f"{self.settings.renderer} {outcome.describe()}"
        logger.error("Could not build the PDF: %s", message)
        return result.model_copy(
            update={"render_outcome": outcome, "render_error": message}
        )

    def _relative_arg(self, path: Path) -> str:
        try:
            return path.relative_to(self.settings.project_root).as_posix()
        except ValueError:
            return str(path)
