"""CLI layer: Typer app, rich console output, exit codes."""
