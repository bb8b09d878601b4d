"""Watcher child process: watches the manuscript and reports change batches.

Runs as ``python -m bookpub watch``. It only observes; rebuilding is the
dev orchestrator's job. See ``protocol`` for the stdout message format.
"""

from bookpub.watcher.observer import ChangeBatcher, ManuscriptChangeHandler, run_watcher

__all__ = ["ChangeBatcher", "ManuscriptChangeHandler", "run_watcher"]
