"""Objects shared by every command of one CLI invocation."""

from __future__ import annotations

from bookpub.collaborators import (
    BookProjectScaffolder,
    Converter,
    EjsTemplateLinter,
    MarkdownConverter,
    ProjectScaffolder,
    TemplateLinter,
)
from bookpub.config import BookpubSettings
from bookpub.core.pipeline import BuildPipelineDispatcher
from bookpub.core.supervisor import ProcessSupervisor


class CliState:
    """Settings plus the collaborators the commands run against.

    The app callback builds the default one. Callers embedding the CLI
    (and the tests) can pass their own through ``obj=`` instead.

    Parameters
    ----------
    settings:
        Settings for this invocation.
    converter, linter, scaffolder:
        Collaborators; the shipped defaults when omitted.
    supervisor:
        Process supervisor shared by the renderer and the dev children.
    """

    def __init__(
        self,
        settings: BookpubSettings,
        *,
        converter: Converter | None = None,
        linter: TemplateLinter | None = None,
        scaffolder: ProjectScaffolder | None = None,
        supervisor: ProcessSupervisor | None = None,
    ) -> None:
        self.settings = settings
        self.converter = converter or MarkdownConverter()
        self.linter = linter or EjsTemplateLinter()
        self.scaffolder = scaffolder or BookProjectScaffolder(settings.project_root)
        self.supervisor = supervisor or ProcessSupervisor(cwd=settings.project_root)

    def dispatcher(self) -> BuildPipelineDispatcher:
        return BuildPipelineDispatcher(self.settings, self.converter, self.supervisor)
