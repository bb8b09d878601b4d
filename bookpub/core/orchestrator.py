"""Dev orchestrator — the coordinator for ``bookpub dev`` sessions.

The DevOrchestrator wires together the BuildPipelineDispatcher, the
ProcessSupervisor, the WatcherConfigResolver, and the SessionMachine.
Everything that happens during a session arrives as a message on one
event channel (an ``asyncio.Queue``): lifecycle events from the two child
processes and completion messages from build tasks. Each message is
translated into a ``SessionEvent``, handed to the state machine, and the
actions it returns are carried out here.

A session ends when the watcher ends (for any reason), when the dev-server
ends, or when either child cannot be started. The surviving child is then
terminated, so no process outlives the session.
"""

from __future__ import annotations

import asyncio
import json
import logging
import shlex
import sys

from bookpub.config import BookpubSettings
from bookpub.core.config_resolver import WatcherConfigResolver
from bookpub.core.pipeline import BuildPipelineDispatcher
from bookpub.core.session_machine import SessionError, SessionMachine
from bookpub.core.supervisor import ProcessHandle, ProcessSupervisor
from bookpub.models.build import OutputType
from bookpub.models.process import ProcessEvent, ProcessEventKind, SpawnOptions
from bookpub.models.session import (
    SessionAction,
    SessionEvent,
    SessionEventKind,
    SessionSummary,
)
from bookpub.models.watcher import WatcherConfig

logger = logging.getLogger(__name__)

WATCHER = "watcher"
DEV_SERVER = "dev-server"


class DevOrchestrator:
    """Runs one dev session.

    Parameters
    ----------
    settings:
        Project settings.
    dispatcher:
        Build pipeline used for the initial build and every rebuild.
    output_type:
        ``html`` or ``pdf``. Validated immediately; an invalid value raises
        ``InvalidOutputTypeError`` before anything runs.
    supervisor:
        Spawns the dev-server and watcher. Defaults to a real supervisor.
    resolver:
        Watcher config resolver. Defaults to one reading the project's
        watcher file.
    """

    def __init__(
        self,
        settings: BookpubSettings,
        dispatcher: BuildPipelineDispatcher,
        output_type: str | OutputType,
        *,
        supervisor: ProcessSupervisor | None = None,
        resolver: WatcherConfigResolver | None = None,
    ) -> None:
        self.settings = settings
        self.output_type = OutputType.parse(output_type)
        self.dispatcher = dispatcher
        self.supervisor = supervisor or ProcessSupervisor(cwd=settings.project_root)
        self.resolver = resolver or WatcherConfigResolver(settings.watcher_config_path)
        self.machine = SessionMachine(self.output_type)

        self.watcher_config: WatcherConfig | None = None
        self.dev_server: ProcessHandle | None = None
        self.watcher: ProcessHandle | None = None

        self._channel: asyncio.Queue | None = None
        self._completion: asyncio.Future[SessionSummary] | None = None
        self._build_tasks: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    @property
    def completion(self) -> asyncio.Future[SessionSummary]:
        """Resolves with the session summary, or fails with ``SessionError``."""
        if self._completion is None:
            raise RuntimeError("Session has not been started")
        return self._completion

    def post(self, message: SessionEvent | ProcessEvent) -> None:
        """Put a message on the session's event channel."""
        if self._channel is None:
            raise RuntimeError("Session has not been started")
        self._channel.put_nowait(message)

    def start(self) -> None:
        """Create the event channel and completion signal, then queue START."""
        loop = asyncio.get_running_loop()
        self._channel = asyncio.Queue()
        self._completion = loop.create_future()
        self.post(SessionEvent(kind=SessionEventKind.START))

    async def run(self) -> SessionSummary:
        """Drive the session until it terminates.

        Returns the session summary, or raises ``SessionError``.
        """
        if self._channel is None:
            self.start()
        assert self._channel is not None

        try:
            while not self.machine.terminated:
                message = await self._channel.get()
                event = self._translate(message)
                if event is None:
                    continue
                for action in self.machine.handle(event):
                    self._perform(action)
        finally:
            await self._shutdown()

        if self.machine.succeeded:
            self.completion.set_result(self.machine.summary())
        else:
            self.completion.set_exception(SessionError(self.machine.failure))
        return await self.completion

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _perform(self, action: SessionAction) -> None:
        if action == SessionAction.RUN_INITIAL_BUILD:
            self._spawn_task(self._initial_build(), "initial-build")
        elif action == SessionAction.START_CHILDREN:
            self._start_children()
        elif action == SessionAction.RUN_REBUILD:
            self._spawn_task(self._rebuild(self.machine.rebuild_count), "rebuild")
        elif action == SessionAction.SHUTDOWN:
            logger.debug("Shutdown requested by session machine")

    def _spawn_task(self, coro, name: str) -> None:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._build_tasks.add(task)
        task.add_done_callback(self._build_tasks.discard)

    async def _initial_build(self) -> None:
        try:
            await self.dispatcher.dispatch(self.output_type)
        except Exception as exc:
            logger.error("Initial build failed: %s", exc)
            self.post(SessionEvent(
                kind=SessionEventKind.INITIAL_BUILD_FAILED, ok=False, message=str(exc)
            ))
            return
        self.post(SessionEvent(kind=SessionEventKind.INITIAL_BUILD_DONE))

    async def _rebuild(self, number: int) -> None:
        logger.info("Rebuilding %s... (#%d)", self.output_type.value.upper(), number)
        try:
            result = await self.dispatcher.dispatch(self.output_type)
        except Exception as exc:  # noqa: BLE001
            logger.error("Rebuild #%d failed, still watching: %s", number, exc)
            self.post(SessionEvent(
                kind=SessionEventKind.REBUILD_DONE, ok=False, message=str(exc)
            ))
            return
        self.post(SessionEvent(
            kind=SessionEventKind.REBUILD_DONE,
            ok=result.ok,
            message=result.render_error or "",
        ))

    def _start_children(self) -> None:
        self.watcher_config = self.resolver.resolve(self.output_type)
        logger.info(
            "Watching %s for changes to .%s",
            ", ".join(self.watcher_config.watch),
            ", .".join(self.watcher_config.ext),
        )

        command, args = self.dev_server_command()
        self.dev_server = self.supervisor.spawn(
            command,
            args,
            SpawnOptions(name=DEV_SERVER, cwd=self.settings.project_root),
            channel=self._channel,
        )

        command, args = self.watcher_command(self.watcher_config)
        self.watcher = self.supervisor.spawn(
            command,
            args,
            SpawnOptions(name=WATCHER, cwd=self.settings.project_root, capture_stdout=True),
            channel=self._channel,
        )

    async def _shutdown(self) -> None:
        timeout = self.settings.terminate_timeout_seconds
        handles = [h for h in (self.watcher, self.dev_server) if h is not None]
        if handles:
            await asyncio.gather(
                *(h.terminate(timeout) for h in handles), return_exceptions=True
            )
        if self._build_tasks:
            logger.debug("Waiting for %d in-flight build(s)", len(self._build_tasks))
            await asyncio.gather(*list(self._build_tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Child commands
    # ------------------------------------------------------------------

    def dev_server_command(self) -> tuple[str, list[str]]:
        """The bundler when a webpack config exists, else the built-in server."""
        env_arg = ["--env", f"outputType={self.output_type.value}"]
        webpack_config = self.settings.webpack_config_path
        if webpack_config.exists():
            program, *rest = shlex.split(self.settings.bundler_command)
            return program, [*rest, "serve", *env_arg, "--config", str(webpack_config)]

        return sys.executable, [
            "-m", "bookpub.devserver",
            *env_arg,
            "--root", str(self.settings.output_path(self.output_type)),
            "--host", self.settings.dev_server_host,
            "--port", str(self.settings.dev_server_port),
        ]

    def watcher_command(self, config: WatcherConfig) -> tuple[str, list[str]]:
        delay = config.delay if config.delay is not None else self.settings.watch_debounce_seconds
        payload = {**config.watch_payload(), "delay": delay}
        return sys.executable, [
            "-m", "bookpub", "watch",
            "--root", str(self.settings.project_root),
            "--config-json", json.dumps(payload),
        ]

    # ------------------------------------------------------------------
    # Message translation
    # ------------------------------------------------------------------

    def _translate(self, message: SessionEvent | ProcessEvent) -> SessionEvent | None:
        if isinstance(message, SessionEvent):
            return message

        kind = message.kind
        if kind == ProcessEventKind.STARTED:
            logger.debug("%s started", message.source)
            return None

        if message.source == WATCHER:
            if kind == ProcessEventKind.RESTARTED:
                return SessionEvent(kind=SessionEventKind.WATCHER_RESTART, paths=message.paths)
            if kind == ProcessEventKind.SPAWN_ERROR:
                return SessionEvent(
                    kind=SessionEventKind.WATCHER_SPAWN_ERROR, ok=False,
                    message=f"watcher could not be started: {message.message}",
                )
            ok = kind == ProcessEventKind.EXITED_CLEANLY
            if ok:
                logger.info("Watcher exited, ending dev session")
            else:
                logger.error("Watcher %s, ending dev session", message.message)
            return SessionEvent(
                kind=SessionEventKind.WATCHER_EXIT, ok=ok,
                message="" if ok else f"watcher {message.message}",
            )

        if message.source == DEV_SERVER:
            if kind == ProcessEventKind.SPAWN_ERROR:
                return SessionEvent(
                    kind=SessionEventKind.SERVER_SPAWN_ERROR, ok=False,
                    message=f"dev-server could not be started: {message.message}",
                )
            if kind in (ProcessEventKind.EXITED_CLEANLY, ProcessEventKind.EXITED_WITH_ERROR):
                ok = kind == ProcessEventKind.EXITED_CLEANLY
                if not ok:
                    logger.error("Dev-server %s, ending dev session", message.message)
                return SessionEvent(
                    kind=SessionEventKind.SERVER_EXIT, ok=ok,
                    message="" if ok else f"dev-server {message.message}",
                )

        logger.debug("Ignoring %s event from %s", kind.value, message.source)
        return None
