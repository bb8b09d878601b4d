"""Built-in dev server: serves one output tree with live reload.

Started by ``bookpub dev`` when the project has no bundler config::

    python -m bookpub.devserver --env outputType=html --root build/html

Browsers reload whenever anything under ``--root`` changes, which is what
every rebuild does.
"""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from livereload import Server

from bookpub.log import setup_logging
from bookpub.models.build import InvalidOutputTypeError, OutputType

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False)


def parse_env(values: list[str]) -> dict[str, str]:
    """Turn ``["outputType=pdf", ...]`` into a dict; bare keys map to ``""``."""
    env: dict[str, str] = {}
    for value in values:
        key, _, rest = value.partition("=")
        env[key.strip()] = rest.strip()
    return env


@app.command()
def serve_cmd(
    root: Path = typer.Option(..., "--root", help="Directory to serve."),
    env: list[str] = typer.Option([], "--env", help="KEY=VALUE build variables."),
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8080, "--port"),
    log_level: str = typer.Option("INFO", "--log-level"),
) -> None:
    """Serve ROOT and reload connected browsers on change."""
    setup_logging(log_level)
    variables = parse_env(env)
    try:
        output_type = OutputType.parse(variables.get("outputType", "html"))
    except InvalidOutputTypeError as exc:
        logger.error("%s", exc)
        raise typer.Exit(code=2)

    root.mkdir(parents=True, exist_ok=True)

    server = Server()
    server.watch(str(root), delay=0.2)
    logger.info(
        "Serving %s output from %s at http://%s:%d", output_type.value, root, host, port
    )
    server.serve(root=str(root), host=host, port=port, open_url_delay=None)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
