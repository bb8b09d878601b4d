"""External collaborators: conversion, template linting, scaffolding.

The orchestration core only depends on the interfaces in ``base``. The
default implementations shipped alongside are deliberately small; projects
can pass their own objects to ``BuildPipelineDispatcher`` or the CLI.
"""

from bookpub.collaborators.base import Converter, ProjectScaffolder, TemplateLinter
from bookpub.collaborators.converter import ConversionFailure, MarkdownConverter
from bookpub.collaborators.linter import EjsTemplateLinter, TemplateLintError
from bookpub.collaborators.scaffold import BookProjectScaffolder, ProjectExistsError

__all__ = [
    "BookProjectScaffolder",
    "ConversionFailure",
    "Converter",
    "EjsTemplateLinter",
    "MarkdownConverter",
    "ProjectExistsError",
    "ProjectScaffolder",
    "TemplateLintError",
    "TemplateLinter",
]
