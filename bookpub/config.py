"""Runtime settings: env-driven, constructed once per invocation.

Centralized config using pydantic-settings. Reads from a .env file and
BOOKPUB_* environment variables. The CLI builds one ``BookpubSettings``
at startup and passes it explicitly to every component; nothing reads
the working directory or package metadata behind the caller's back.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from bookpub.models.build import OutputType


class BookpubSettings(BaseSettings):
    """Settings for one bookpub invocation.

    All settings can be overridden via BOOKPUB_* environment variables
    or a .env file in the project root.

    Examples
    --------
    Override via environment::

        export BOOKPUB_RENDERER=/opt/prince/bin/prince
        export BOOKPUB_DEV_SERVER_PORT=9000
        export BOOKPUB_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="BOOKPUB_",
        env_file_encoding="utf-8",
        frozen=True,
    )

    # Project layout, relative paths resolve against project_root
    project_root: Path = Field(default_factory=Path.cwd)
    manuscript_dir: Path = Path("manuscript")
    build_dir: Path = Path("build")
    book_config_file: Path = Path("book.config.yml")
    watcher_config_file: Path = Path("nodemon.json")
    webpack_config_file: Path = Path("webpack.config.js")

    # External tools
    renderer: str = "prince"
    bundler_command: str = "npx webpack"

    # Dev server
    dev_server_host: str = "127.0.0.1"
    dev_server_port: int = 8080

    # Process handling
    watch_debounce_seconds: float = 0.3
    terminate_timeout_seconds: float = 5.0

    # Observability
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Derived paths
    # ------------------------------------------------------------------

    def resolve(self, path: Path) -> Path:
        """Resolve *path* against the project root."""
        return path if path.is_absolute() else self.project_root / path

    @property
    def manuscript_path(self) -> Path:
        return self.resolve(self.manuscript_dir)

    def output_path(self, output_type: OutputType | str) -> Path:
        """Output tree for *output_type*, e.g. ``<root>/build/html``."""
        return self.resolve(self.build_dir) / OutputType.parse(output_type).value

    @property
    def book_config_path(self) -> Path:
        return self.resolve(self.book_config_file)

    @property
    def watcher_config_path(self) -> Path:
        return self.resolve(self.watcher_config_file)

    @property
    def webpack_config_path(self) -> Path:
        return self.resolve(self.webpack_config_file)

    def relative(self, path: Path) -> str:
        """Render *path* relative to the project root for user output."""
        try:
            return "/" + path.relative_to(self.project_root).as_posix()
        except ValueError:
            return str(path)
