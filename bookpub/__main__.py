"""Allow ``python -m bookpub``; the dev orchestrator starts its watcher this way."""

from bookpub.cli.app import main

main()
