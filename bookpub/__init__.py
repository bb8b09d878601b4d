"""bookpub: build a manuscript into HTML and print-ready PDF.

  - ``bookpub build`` converts ``manuscript/`` into ``build/<type>/`` and,
    for PDF, runs the print renderer on the result
  - ``bookpub dev`` builds once, then runs a dev server and a file watcher
    and rebuilds on every change batch
  - ``bookpub new`` and ``bookpub lint`` scaffold projects and check templates
"""

__version__ = "0.1.0"
__description__ = "Manuscript to HTML and PDF book builder with a live-reloading dev loop"

from bookpub.config import BookpubSettings
from bookpub.core.orchestrator import DevOrchestrator
from bookpub.core.pipeline import BuildPipelineDispatcher

__all__ = ["BookpubSettings", "BuildPipelineDispatcher", "DevOrchestrator", "__version__"]
