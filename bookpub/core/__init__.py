"""Orchestration core: config resolution, process supervision, build
dispatch, and the dev session state machine."""
