"""Helper modules for backend process supervision."""

from .delay_calculator import BackoffConfig, DelayCalculator
from .errors import (
    AlreadyRunningError,
    ProcessCrashedError,
    SpawnError,
    StartupTimeoutError,
    SupervisorError,
)
from .exit_codes import describe_exit, exit_hint
from .readiness_probe import ReadinessOutcome, ReadinessProbe, ReadinessWaiter, check_http_port, check_tcp_port
from .types import FailureKind, ProbeMode, ProcessExit, SupervisorFailure, SupervisorSettings, SupervisorState

__all__ = [
    "AlreadyRunningError",
    "BackoffConfig",
    "DelayCalculator",
    "FailureKind",
    "ProbeMode",
    "ProcessCrashedError",
    "ProcessExit",
    "ReadinessOutcome",
    "ReadinessProbe",
    "ReadinessWaiter",
    "SpawnError",
    "StartupTimeoutError",
    "SupervisorError",
    "SupervisorFailure",
    "SupervisorSettings",
    "SupervisorState",
    "check_http_port",
    "check_tcp_port",
    "describe_exit",
    "exit_hint",
]
