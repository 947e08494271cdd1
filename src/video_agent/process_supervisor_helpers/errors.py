"""Exceptions raised by the backend process supervisor."""

from __future__ import annotations

from typing import Any, Optional

from video_agent.exceptions import ApplicationError

from .types import FailureKind, SupervisorFailure


class SupervisorError(ApplicationError):
    """Backend process supervision failed."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Backend process supervision failed"
        super().__init__(message, **kwargs)


class AlreadyRunningError(SupervisorError):
    """start() was called while a backend process is still owned."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Backend process is already running"
        super().__init__(message, **kwargs)


class SpawnError(SupervisorError):
    """The operating system refused to create the backend process."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Failed to start backend process"
        super().__init__(message, **kwargs)


class StartupTimeoutError(SupervisorError):
    """The backend never became reachable within the startup timeout."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Backend did not become ready in time"
        super().__init__(message, **kwargs)


class ProcessCrashedError(SupervisorError):
    """The backend process exited on its own."""

    exit_code: Optional[int]
    signal_name: Optional[str]
    hint: Optional[str]

    def __init__(
        self,
        message: str = "",
        *,
        exit_code: Optional[int] = None,
        signal_name: Optional[str] = None,
        hint: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        if not message:
            message = "Backend process exited unexpectedly"
        super().__init__(message, exit_code=exit_code, signal_name=signal_name, hint=hint, **kwargs)


def error_for_failure(failure: SupervisorFailure) -> SupervisorError:
    """Build the exception matching a recorded failure."""
    if failure.kind is FailureKind.SPAWN_ERROR:
        return SpawnError(failure.message)
    if failure.kind is FailureKind.TIMEOUT:
        return StartupTimeoutError(failure.message)
    return ProcessCrashedError(
        failure.message,
        exit_code=failure.exit_code,
        signal_name=failure.signal_name,
        hint=failure.hint,
    )


__all__ = [
    "AlreadyRunningError",
    "ProcessCrashedError",
    "SpawnError",
    "StartupTimeoutError",
    "SupervisorError",
    "error_for_failure",
]
