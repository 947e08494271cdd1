from __future__ import annotations

import asyncio
from typing import Iterable, List, Optional

from video_agent.process_supervisor_helpers.types import ProbeMode, SupervisorSettings


class FakeBackendProcess:
    """Stand-in for ``asyncio.subprocess.Process`` driven by the test."""

    def __init__(self, pid: int = 4321, *, exit_on_terminate: bool = True):
        self.pid = pid
        self.returncode: Optional[int] = None
        self.stdout = None
        self.stderr = None
        self.exit_on_terminate = exit_on_terminate
        self.terminate_calls = 0
        self.kill_calls = 0
        self._exited = asyncio.Event()

    async def wait(self) -> int:
        await self._exited.wait()
        assert self.returncode is not None
        return self.returncode

    def exit(self, returncode: int) -> None:
        if self.returncode is None:
            self.returncode = returncode
        self._exited.set()

    def terminate(self) -> None:
        self.terminate_calls += 1
        if self.returncode is not None:
            raise ProcessLookupError
        if self.exit_on_terminate:
            self.exit(-15)

    def kill(self) -> None:
        self.kill_calls += 1
        if self.returncode is not None:
            raise ProcessLookupError
        self.exit(-9)


class ScriptedSpawner:
    """Spawn function returning prepared processes in order."""

    def __init__(self, processes: Iterable[FakeBackendProcess]):
        self._processes = list(processes)
        self.calls: List[SupervisorSettings] = []

    async def __call__(self, settings: SupervisorSettings) -> FakeBackendProcess:
        self.calls.append(settings)
        return self._processes.pop(0)


class ScriptedCheck:
    """Port check answering from a script; the last answer repeats."""

    def __init__(self, answers: Iterable[bool]):
        self._answers = list(answers)
        self.calls = 0

    async def __call__(self, host: str, port: int, timeout: float) -> bool:
        self.calls += 1
        if len(self._answers) > 1:
            return self._answers.pop(0)
        return self._answers[0]


def make_settings(**overrides) -> SupervisorSettings:
    values = {
        "command": "bash",
        "args": ("start-server.sh",),
        "port": 3000,
        "startup_timeout_seconds": 5.0,
        "probe_mode": ProbeMode.TCP,
    }
    values.update(overrides)
    return SupervisorSettings(**values)
