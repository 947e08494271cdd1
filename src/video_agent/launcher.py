"""Desktop launcher: start the backend, show the frontend, shut everything down on exit."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
import webbrowser
from typing import Callable, Optional, Sequence

from .config import ConfigurationError
from .config.launcher import PRESETS, LauncherSettings, apply_overrides, load_launcher_settings
from .logging_config import setup_logging
from .process_supervisor import ProcessSupervisor
from .process_supervisor_helpers.errors import (
    ProcessCrashedError,
    SpawnError,
    StartupTimeoutError,
    SupervisorError,
)
from .process_supervisor_helpers.types import SupervisorState

logger = logging.getLogger(__name__)

SERVICE_NAME = "launcher"
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2

UrlOpener = Callable[[str], object]


def format_failure_message(exc: SupervisorError, settings: LauncherSettings) -> str:
    """User-facing text for a failed startup or a backend crash."""
    if isinstance(exc, StartupTimeoutError):
        return (
            "Startup Error\n\n"
            f"Backend did not start within {settings.supervisor.startup_timeout_seconds:g} seconds.\n\n"
            "Please check:\n"
            "1. Backend script path is correct\n"
            "2. Backend command is correct\n"
            "3. Required dependencies are installed"
        )
    if isinstance(exc, ProcessCrashedError):
        return f"Backend Error\n\n{exc}"
    if isinstance(exc, SpawnError):
        return f"Startup Error\n\nFailed to start application: {exc}"
    return f"Application Error\n\n{exc}"


def _report_failure(exc: SupervisorError, settings: LauncherSettings) -> None:
    sys.stderr.write(format_failure_message(exc, settings) + "\n")


def _install_signal_handlers(loop: asyncio.AbstractEventLoop, shutdown: asyncio.Event) -> list[signal.Signals]:
    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown.set)
        except (NotImplementedError, RuntimeError):
            # add_signal_handler is unavailable on Windows event loops and off the main thread.
            logger.debug("Cannot install handler for %s", sig.name)
            continue
        installed.append(sig)
    return installed


def _remove_signal_handlers(loop: asyncio.AbstractEventLoop, installed: Sequence[signal.Signals]) -> None:
    for sig in installed:
        loop.remove_signal_handler(sig)


async def _first_of(primary: asyncio.Task, shutdown: asyncio.Event) -> bool:
    """Wait for ``primary`` or a shutdown request; return True if ``primary`` finished first."""
    shutdown_task = asyncio.create_task(shutdown.wait())
    try:
        done, _pending = await asyncio.wait({primary, shutdown_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        shutdown_task.cancel()
    if primary in done:
        return True
    primary.cancel()
    try:
        await primary
    except asyncio.CancelledError:
        logger.debug("Cancelled %s after shutdown request", primary.get_name())
    except SupervisorError as exc:
        logger.debug("Ignoring %s raised during shutdown: %s", type(exc).__name__, exc)
    return False


async def run_launcher(
    settings: LauncherSettings,
    *,
    supervisor: Optional[ProcessSupervisor] = None,
    open_url: UrlOpener = webbrowser.open,
    shutdown: Optional[asyncio.Event] = None,
) -> int:
    """
    Run the desktop launcher until the backend exits or shutdown is requested.

    Args:
        settings: Backend and frontend configuration
        supervisor: Supervisor to drive; built from ``settings`` when omitted
        open_url: Callable used to show the frontend
        shutdown: Event that requests shutdown; SIGINT/SIGTERM set it

    Returns:
        Process exit status
    """
    supervisor = supervisor or ProcessSupervisor(settings.supervisor)
    shutdown = shutdown or asyncio.Event()
    loop = asyncio.get_running_loop()
    installed = _install_signal_handlers(loop, shutdown)

    try:
        launch_task = asyncio.create_task(supervisor.launch(), name="launch-backend")
        if not await _first_of(launch_task, shutdown):
            logger.info("Shutdown requested during startup")
            return EXIT_OK
        try:
            launch_task.result()
        except SupervisorError as exc:
            logger.error("Backend startup failed: %s", exc)
            _report_failure(exc, settings)
            return EXIT_FAILURE

        if settings.open_browser:
            logger.info("Opening frontend at %s", settings.frontend_url)
            open_url(settings.frontend_url)

        exit_task = asyncio.create_task(supervisor.wait_for_exit(), name="backend-exit")
        if not await _first_of(exit_task, shutdown):
            logger.info("Shutdown requested; stopping backend")
            return EXIT_OK

        if supervisor.state is SupervisorState.FAILED and supervisor.failure is not None:
            _report_failure(
                ProcessCrashedError(
                    supervisor.failure.message,
                    exit_code=supervisor.failure.exit_code,
                    signal_name=supervisor.failure.signal_name,
                    hint=supervisor.failure.hint,
                ),
                settings,
            )
            return EXIT_FAILURE
        logger.info("Backend exited; closing launcher")
        return EXIT_OK
    finally:
        await supervisor.stop()
        _remove_signal_handlers(loop, installed)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Start the video agent backend and open its frontend")
    parser.add_argument("--preset", choices=sorted(PRESETS), help="Backend/frontend pairing to start from")
    parser.add_argument("--command", help="Command that runs the backend (e.g. bash, python3, node)")
    parser.add_argument("--script", help="Script or entry point passed to the backend command")
    parser.add_argument("--port", type=int, help="Port the backend listens on")
    parser.add_argument("--timeout-ms", type=int, help="Maximum time to wait for the backend, in milliseconds")
    parser.add_argument("--probe", choices=("tcp", "http"), help="How to check that the backend is ready")
    parser.add_argument("--frontend-url", help="URL to open once the backend is ready")
    parser.add_argument("--no-browser", action="store_true", help="Do not open the frontend URL")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Console log level",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(SERVICE_NAME, level=getattr(logging, args.log_level))

    try:
        settings = apply_overrides(
            load_launcher_settings(args.preset),
            command=args.command,
            script=args.script,
            port=args.port,
            timeout_ms=args.timeout_ms,
            probe=args.probe,
            frontend_url=args.frontend_url,
            open_browser=False if args.no_browser else None,
        )
    except ConfigurationError as exc:
        sys.stderr.write(f"Configuration error: {exc}\n")
        return EXIT_CONFIG_ERROR

    try:
        return asyncio.run(run_launcher(settings))
    except KeyboardInterrupt:
        logger.info("Launcher interrupted by user")
        return EXIT_OK


__all__ = ["build_parser", "format_failure_message", "main", "run_launcher"]
