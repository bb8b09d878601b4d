"""Process supervisor — spawns one external process per call.

Start failures (missing binary, permission denied) are never raised to the
caller. They arrive as a ``spawn_error`` event on the handle's channel and
as the outcome of ``wait()``, so one child failing to start cannot stop the
rest of a session from running.

The supervisor never restarts anything; restart policy belongs to the
caller.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from collections.abc import Sequence
from pathlib import Path

from bookpub.models.process import (
    OutcomeKind,
    ProcessEvent,
    ProcessEventKind,
    ProcessOutcome,
    SpawnOptions,
)
from bookpub.watcher import protocol

logger = logging.getLogger(__name__)

# Longest stdout line read from a captured child; a restart batch for a few
# hundred thousand paths still fits.
STDOUT_LINE_LIMIT = 16 * 1024 * 1024


class ProcessHandle:
    """Owns one spawned process and its lifecycle notifications.

    A handle has exactly one owner, which is responsible for calling
    ``terminate()`` when it is done with the process. Events are posted to
    *channel* when one is given; ``wait()`` works either way.

    Parameters
    ----------
    argv:
        Full command line, program first.
    options:
        Spawn options (name, cwd, env, stdout capture).
    channel:
        Optional queue receiving ``ProcessEvent`` instances.
    """

    def __init__(
        self,
        argv: Sequence[str],
        options: SpawnOptions,
        channel: asyncio.Queue | None = None,
    ) -> None:
        self.argv = [str(a) for a in argv]
        self.name = options.name or Path(self.argv[0]).name
        self._options = options
        self._channel = channel
        self._process: asyncio.subprocess.Process | None = None
        self._spawned = asyncio.Event()
        self._outcome: asyncio.Future[ProcessOutcome] = (
            asyncio.get_running_loop().create_future()
        )
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"process:{self.name}"
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    @property
    def done(self) -> bool:
        return self._outcome.done()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def wait(self) -> ProcessOutcome:
        """Wait for the terminal outcome: exit code, signal, or spawn error."""
        return await asyncio.shield(self._outcome)

    async def terminate(self, timeout: float = 5.0) -> ProcessOutcome:
        """Stop the process: SIGTERM, then SIGKILL after *timeout* seconds.

        Does nothing if the process never started or has already ended.
        """
        await self._spawned.wait()
        process = self._process
        if process is None or process.returncode is not None:
            return await self.wait()

        logger.debug("Terminating %s (pid %s)", self.name, process.pid)
        try:
            process.terminate()
        except ProcessLookupError:
            pass
        try:
            await asyncio.wait_for(process.wait(), timeout)
        except asyncio.TimeoutError:
            logger.warning("%s did not exit within %.1fs, killing it", self.name, timeout)
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()
        return await self.wait()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _post(self, kind: ProcessEventKind, **fields: object) -> None:
        if self._channel is None:
            return
        self._channel.put_nowait(ProcessEvent(source=self.name, kind=kind, **fields))

    async def _run(self) -> None:
        env = {**os.environ, **self._options.env} if self._options.env else None
        stdout = asyncio.subprocess.PIPE if self._options.capture_stdout else None

        try:
            self._process = await asyncio.create_subprocess_exec(
                *self.argv,
                cwd=str(self._options.cwd) if self._options.cwd else None,
                env=env,
                stdout=stdout,
                limit=STDOUT_LINE_LIMIT,
            )
        except OSError as exc:
            message = f"{exc.strerror or exc} ({self.argv[0]})"
            logger.error("Error: %s could not be started: %s", self.name, message)
            self._outcome.set_result(
                ProcessOutcome(kind=OutcomeKind.SPAWN_ERROR, message=message)
            )
            self._post(ProcessEventKind.SPAWN_ERROR, message=message)
            return
        finally:
            self._spawned.set()

        logger.debug("Started %s (pid %s): %s", self.name, self._process.pid, " ".join(self.argv))
        self._post(ProcessEventKind.STARTED)

        try:
            if self._process.stdout is not None:
                await self._read_messages(self._process.stdout)
            returncode = await self._process.wait()
        except Exception as exc:
            await self._lost(exc)
            return

        if returncode < 0:
            outcome = ProcessOutcome(
                kind=OutcomeKind.SIGNALLED, returncode=returncode, signal=-returncode
            )
        else:
            outcome = ProcessOutcome(kind=OutcomeKind.EXITED, returncode=returncode)

        if outcome.succeeded:
            logger.debug("%s exited cleanly", self.name)
            self._post(ProcessEventKind.EXITED_CLEANLY, returncode=returncode)
        else:
            logger.debug("%s %s", self.name, outcome.describe())
            self._post(
                ProcessEventKind.EXITED_WITH_ERROR,
                returncode=outcome.returncode,
                signal=outcome.signal,
                message=outcome.describe(),
            )
        self._outcome.set_result(outcome)

    async def _lost(self, exc: Exception) -> None:
        """Kill a process we can no longer follow and report it as failed."""
        assert self._process is not None
        logger.error("Lost track of %s, killing it: %s", self.name, exc)
        try:
            self._process.kill()
        except ProcessLookupError:
            pass
        returncode = await self._process.wait()
        message = f"was stopped after a supervisor error: {exc}"
        self._outcome.set_result(
            ProcessOutcome(kind=OutcomeKind.EXITED, returncode=returncode or 1, message=message)
        )
        self._post(
            ProcessEventKind.EXITED_WITH_ERROR, returncode=returncode or 1, message=message
        )

    async def _read_messages(self, stream: asyncio.StreamReader) -> None:
        """Translate protocol lines into events; echo everything else.

        A line longer than ``STDOUT_LINE_LIMIT`` is dropped with a warning
        and reading carries on, so the pipe is always drained.
        """
        while True:
            try:
                raw = await stream.readline()
            except ValueError as exc:
                logger.warning("%s: dropped an oversized stdout line (%s)", self.name, exc)
                continue
            if not raw:
                return
            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            message = protocol.decode_message(line)
            if message is None:
                sys.stdout.write(line + "\n")
                sys.stdout.flush()
                continue
            if message[protocol.MESSAGE_KEY] == protocol.RESTART:
                paths = tuple(str(p) for p in message.get("paths", []))
                self._post(ProcessEventKind.RESTARTED, paths=paths)
            else:
                logger.debug("%s: %s", self.name, message)


class ProcessSupervisor:
    """Factory for ``ProcessHandle`` objects.

    Parameters
    ----------
    cwd:
        Default working directory for spawned processes.
    """

    def __init__(self, cwd: Path | None = None) -> None:
        self.cwd = cwd

    def spawn(
        self,
        command: str,
        args: Sequence[str] = (),
        options: SpawnOptions | None = None,
        *,
        channel: asyncio.Queue | None = None,
    ) -> ProcessHandle:
        """Start *command* with *args* and return its handle immediately.

        Must be called from a running event loop. Never raises for start
        failures; see the module docstring.
        """
        options = options or SpawnOptions()
        if options.cwd is None and self.cwd is not None:
            options = options.model_copy(update={"cwd": self.cwd})
        return ProcessHandle([command, *args], options, channel)
