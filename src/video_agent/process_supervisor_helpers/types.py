"""Type definitions for backend process supervision."""

from __future__ import annotations

import signal
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional, Tuple

DEFAULT_BACKEND_HOST = "localhost"
DEFAULT_STARTUP_TIMEOUT_SECONDS = 60.0
DEFAULT_START_GRACE_SECONDS = 0.5
DEFAULT_STOP_GRACE_SECONDS = 5.0
DEFAULT_PROBE_ATTEMPT_TIMEOUT_SECONDS = 1.0


class SupervisorState(Enum):
    """Lifecycle states of the supervised backend process"""

    NOT_STARTED = "not_started"
    STARTING = "starting"
    WAITING_FOR_READY = "waiting_for_ready"
    READY = "ready"
    FAILED = "failed"
    STOPPING = "stopping"
    STOPPED = "stopped"


ACTIVE_STATES = frozenset(
    {
        SupervisorState.STARTING,
        SupervisorState.WAITING_FOR_READY,
        SupervisorState.READY,
        SupervisorState.STOPPING,
    }
)


class FailureKind(Enum):
    """Terminal failure reasons for a supervised run"""

    SPAWN_ERROR = "spawn_error"
    TIMEOUT = "timeout"
    CRASHED = "crashed"


class ProbeMode(Enum):
    """How readiness of the backend port is checked"""

    TCP = "tcp"
    HTTP = "http"


@dataclass(frozen=True)
class ProcessExit:
    """Exit notification for a child process.

    Exactly one of ``exit_code`` and ``signal_name`` is normally set: a process
    killed by a signal has no exit code.
    """

    exit_code: Optional[int]
    signal_name: Optional[str] = None

    @classmethod
    def from_returncode(cls, returncode: int) -> "ProcessExit":
        """Build from an asyncio return code, where ``-N`` means killed by signal N."""
        if returncode >= 0:
            return cls(exit_code=returncode)
        try:
            name = signal.Signals(-returncode).name
        except ValueError:
            name = f"SIG{-returncode}"
        return cls(exit_code=None, signal_name=name)

    @property
    def is_clean(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True)
class SupervisorFailure:
    """Reason attached to the ``FAILED`` state."""

    kind: FailureKind
    message: str
    exit_code: Optional[int] = None
    signal_name: Optional[str] = None
    hint: Optional[str] = None


@dataclass(frozen=True)
class SupervisorSettings:
    """What to run and where to look for it once it is up."""

    command: str
    args: Tuple[str, ...]
    port: int
    host: str = DEFAULT_BACKEND_HOST
    startup_timeout_seconds: float = DEFAULT_STARTUP_TIMEOUT_SECONDS
    probe_mode: ProbeMode = ProbeMode.TCP
    cwd: Optional[str] = None
    env: Mapping[str, str] = field(default_factory=dict)

    @property
    def command_line(self) -> str:
        return " ".join((self.command, *self.args))


__all__ = [
    "ACTIVE_STATES",
    "DEFAULT_BACKEND_HOST",
    "DEFAULT_PROBE_ATTEMPT_TIMEOUT_SECONDS",
    "DEFAULT_START_GRACE_SECONDS",
    "DEFAULT_STARTUP_TIMEOUT_SECONDS",
    "DEFAULT_STOP_GRACE_SECONDS",
    "FailureKind",
    "ProbeMode",
    "ProcessExit",
    "SupervisorFailure",
    "SupervisorSettings",
    "SupervisorState",
]
