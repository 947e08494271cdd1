"""
Backend Process Supervisor

Owns a single backend child process for the desktop launcher: spawns it,
waits for its port to accept connections, reports crashes, and shuts it down
with SIGTERM followed by SIGKILL.

Failures are terminal for the current run. Nothing is retried or restarted;
the caller decides whether to abort the application.

Usage:
    from video_agent.process_supervisor import ProcessSupervisor

    supervisor = ProcessSupervisor(settings)
    await supervisor.launch()
    ...
    await supervisor.stop()
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

from .process_supervisor_helpers.delay_calculator import BackoffConfig
from .process_supervisor_helpers.errors import (
    AlreadyRunningError,
    SpawnError,
    StartupTimeoutError,
    SupervisorError,
    error_for_failure,
)
from .process_supervisor_helpers.exit_codes import describe_exit, exit_hint
from .process_supervisor_helpers.output_pump import start_pumps
from .process_supervisor_helpers.process_terminator import terminate_process
from .process_supervisor_helpers.readiness_probe import (
    PortCheck,
    ReadinessOutcome,
    ReadinessProbe,
    ReadinessWaiter,
    check_for_mode,
)
from .process_supervisor_helpers.spawner import SpawnFunc, spawn_backend
from .process_supervisor_helpers.types import (
    ACTIVE_STATES,
    DEFAULT_PROBE_ATTEMPT_TIMEOUT_SECONDS,
    DEFAULT_START_GRACE_SECONDS,
    DEFAULT_STOP_GRACE_SECONDS,
    FailureKind,
    ProcessExit,
    SupervisorFailure,
    SupervisorSettings,
    SupervisorState,
)

logger = logging.getLogger(__name__)

FailureCallback = Callable[[SupervisorFailure], None]

_CRASH_STATES = frozenset({SupervisorState.STARTING, SupervisorState.WAITING_FOR_READY})


class ProcessSupervisor:
    """
    Lifecycle owner for one backend process.

    State flows NOT_STARTED -> STARTING -> WAITING_FOR_READY -> READY, then
    STOPPING -> STOPPED on an explicit stop. Any failure moves to FAILED with
    a SupervisorFailure describing it; ``on_failure`` is called once per run.
    """

    def __init__(
        self,
        settings: SupervisorSettings,
        *,
        spawn: SpawnFunc = spawn_backend,
        check: Optional[PortCheck] = None,
        backoff: Optional[BackoffConfig] = None,
        start_grace_seconds: float = DEFAULT_START_GRACE_SECONDS,
        stop_grace_seconds: float = DEFAULT_STOP_GRACE_SECONDS,
        attempt_timeout_seconds: float = DEFAULT_PROBE_ATTEMPT_TIMEOUT_SECONDS,
        on_failure: Optional[FailureCallback] = None,
    ):
        self.settings = settings
        self.start_grace_seconds = start_grace_seconds
        self.stop_grace_seconds = stop_grace_seconds
        self.attempt_timeout_seconds = attempt_timeout_seconds
        self.backoff = backoff or BackoffConfig()
        self._spawn = spawn
        self._check = check or check_for_mode(settings.probe_mode)
        self._on_failure = on_failure

        self._state = SupervisorState.NOT_STARTED
        self._failure: Optional[SupervisorFailure] = None
        self._process: Optional[asyncio.subprocess.Process] = None
        self._exit_future: Optional[asyncio.Future] = None
        self._watcher: Optional[asyncio.Task] = None
        self._pumps: List[asyncio.Task] = []
        self._stop_task: Optional[asyncio.Task] = None
        self._last_exit: Optional[ProcessExit] = None

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def failure(self) -> Optional[SupervisorFailure]:
        return self._failure

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process is not None else None

    @property
    def last_exit(self) -> Optional[ProcessExit]:
        return self._last_exit

    async def launch(self) -> None:
        """Start the backend and wait until it accepts connections."""
        await self.start()
        await self.wait_until_ready()

    async def start(self) -> None:
        """
        Spawn the backend process.

        Raises:
            AlreadyRunningError: If a run is active or a process is still owned
            SpawnError: If the process could not be created
            ProcessCrashedError: If it exited during the start grace delay
        """
        if self._state in ACTIVE_STATES or self._process is not None:
            raise AlreadyRunningError(
                f"Backend process is already {self._state.value} (PID {self.pid})",
                state=self._state,
            )

        self._failure = None
        self._last_exit = None
        self._stop_task = None
        self._cancel_pumps()
        self._transition(SupervisorState.STARTING)

        try:
            process = await self._spawn(self.settings)
        except SpawnError as exc:
            logger.error("Failed to start backend: %s", exc)
            self._fail(SupervisorFailure(kind=FailureKind.SPAWN_ERROR, message=str(exc)))
            raise

        logger.info("Backend process started (PID %s)", process.pid)
        self._process = process
        exit_future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._exit_future = exit_future
        self._pumps = start_pumps(process)
        self._watcher = asyncio.create_task(self._watch_exit(process, exit_future))

        if self.start_grace_seconds > 0:
            await asyncio.wait({exit_future}, timeout=self.start_grace_seconds)

        if self._state is SupervisorState.FAILED and self._failure is not None:
            raise error_for_failure(self._failure)
        if self._state is SupervisorState.STARTING:
            self._transition(SupervisorState.WAITING_FOR_READY)

    async def wait_until_ready(self) -> None:
        """
        Poll the backend port until it answers.

        Raises:
            StartupTimeoutError: If the port never answered within the startup timeout
            ProcessCrashedError: If the backend exited while waiting
            SupervisorError: If called outside of a startup, or stopped meanwhile
        """
        if self._state is SupervisorState.READY:
            return
        if self._state is SupervisorState.FAILED and self._failure is not None:
            raise error_for_failure(self._failure)
        if self._state is not SupervisorState.WAITING_FOR_READY:
            raise SupervisorError(f"Cannot wait for readiness while {self._state.value}", state=self._state)

        probe = ReadinessProbe(
            host=self.settings.host,
            port=self.settings.port,
            deadline=self.settings.startup_timeout_seconds,
            attempt_timeout=self.attempt_timeout_seconds,
        )
        logger.info("Waiting for backend to be ready on %s:%s...", probe.host, probe.port)
        outcome = await ReadinessWaiter(probe, check=self._check, backoff=self.backoff).wait(self._exit_future)

        if self._state is SupervisorState.FAILED and self._failure is not None:
            raise error_for_failure(self._failure)

        if outcome is ReadinessOutcome.READY and self._state is SupervisorState.WAITING_FOR_READY:
            self._transition(SupervisorState.READY)
            return

        if outcome is ReadinessOutcome.TIMEOUT and self._state is SupervisorState.WAITING_FOR_READY:
            message = f"Backend did not start within {self.settings.startup_timeout_seconds:g} seconds"
            self._fail(SupervisorFailure(kind=FailureKind.TIMEOUT, message=message))
            raise StartupTimeoutError(message, timeout_seconds=self.settings.startup_timeout_seconds)

        raise SupervisorError(f"Backend stopped while waiting for readiness ({self._state.value})", state=self._state)

    async def wait_for_exit(self) -> ProcessExit:
        """Block until the current backend process exits."""
        if self._exit_future is None:
            raise SupervisorError("Backend process was never started")
        return await asyncio.shield(self._exit_future)

    async def stop(self) -> Optional[ProcessExit]:
        """
        Stop the backend: SIGTERM now, SIGKILL after the stop grace window.

        Safe to call when nothing is running. Concurrent calls share one shutdown.

        Returns:
            The exit observed for the stopped process, if any
        """
        if self._stop_task is not None:
            return await asyncio.shield(self._stop_task)
        if self._process is None:
            return self._last_exit

        self._stop_task = asyncio.create_task(self._stop(self._process))
        return await asyncio.shield(self._stop_task)

    async def _stop(self, process: asyncio.subprocess.Process) -> Optional[ProcessExit]:
        previous = self._state
        if previous is not SupervisorState.FAILED:
            self._transition(SupervisorState.STOPPING)

        try:
            process_exit = await terminate_process(process, grace_seconds=self.stop_grace_seconds)
            if process_exit is not None and self._watcher is not None:
                await asyncio.shield(self._watcher)
        finally:
            self._cancel_watcher()
            self._cancel_pumps()
            self._process = None
            if self._exit_future is not None and not self._exit_future.done():
                self._exit_future.set_exception(SupervisorError("Backend process did not exit after SIGKILL"))
                # Marked retrieved; wait_for_exit() callers still receive it.
                self._exit_future.exception()
            if previous is not SupervisorState.FAILED:
                self._transition(SupervisorState.STOPPED)

        if process_exit is not None:
            self._last_exit = process_exit
        return process_exit

    async def _watch_exit(self, process: asyncio.subprocess.Process, exit_future: asyncio.Future) -> None:
        returncode = await process.wait()
        process_exit = ProcessExit.from_returncode(returncode)
        logger.info(
            "Backend process exited with code %s, signal %s",
            process_exit.exit_code,
            process_exit.signal_name,
        )
        self._handle_exit(process, process_exit)
        if not exit_future.done():
            exit_future.set_result(process_exit)

    def _handle_exit(self, process: asyncio.subprocess.Process, process_exit: ProcessExit) -> None:
        if process is not self._process:
            return
        self._last_exit = process_exit
        state = self._state

        if state is SupervisorState.STOPPING:
            return

        self._process = None
        if state is SupervisorState.FAILED:
            logger.debug("Backend process exited after the run had already failed")
            return

        crashed = state in _CRASH_STATES or (
            state is SupervisorState.READY and process_exit.exit_code not in (None, 0)
        )
        if crashed:
            message = describe_exit(process_exit)
            logger.error("%s", message)
            self._fail(
                SupervisorFailure(
                    kind=FailureKind.CRASHED,
                    message=message,
                    exit_code=process_exit.exit_code,
                    signal_name=process_exit.signal_name,
                    hint=exit_hint(process_exit),
                )
            )
            return

        logger.warning(
            "Backend process ended on its own (code %s, signal %s); treating as stopped",
            process_exit.exit_code,
            process_exit.signal_name,
        )
        self._transition(SupervisorState.STOPPED)

    def _fail(self, failure: SupervisorFailure) -> None:
        if self._state is SupervisorState.FAILED:
            return
        self._failure = failure
        self._transition(SupervisorState.FAILED)
        if self._on_failure is not None:
            self._on_failure(failure)

    def _transition(self, new_state: SupervisorState) -> None:
        if new_state is self._state:
            return
        logger.debug("Supervisor state %s -> %s", self._state.value, new_state.value)
        self._state = new_state

    def _cancel_watcher(self) -> None:
        if self._watcher is not None and not self._watcher.done():
            self._watcher.cancel()
        self._watcher = None

    def _cancel_pumps(self) -> None:
        for task in self._pumps:
            if not task.done():
                task.cancel()
        self._pumps = []


__all__ = ["FailureCallback", "ProcessSupervisor"]
