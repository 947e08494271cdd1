"""Terminate the backend process tree with graceful shutdown then force kill."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

import psutil

from .types import DEFAULT_STOP_GRACE_SECONDS, ProcessExit

logger = logging.getLogger(__name__)

FORCE_KILL_TIMEOUT_SECONDS = 2.0


def collect_descendants(pid: int) -> List[psutil.Process]:
    """Return every live descendant of ``pid``; empty if it is already gone."""
    try:
        return psutil.Process(pid).children(recursive=True)
    except psutil.NoSuchProcess:
        logger.debug("Process %s vanished before its children could be listed", pid)
        return []
    except psutil.AccessDenied:
        logger.warning("Access denied while listing children of backend process %s", pid)
        return []


def _signal_descendants(descendants: List[psutil.Process], *, force: bool) -> None:
    for child in descendants:
        try:
            if force:
                child.kill()
            else:
                child.terminate()
        except psutil.NoSuchProcess:
            logger.debug("Backend child %s exited before it was signalled", child.pid)
        except psutil.AccessDenied:
            logger.warning("Access denied while signalling backend child %s", child.pid)


def _reap_descendants(descendants: List[psutil.Process]) -> None:
    """Force kill descendants that outlived their parent."""
    if not descendants:
        return
    _gone, alive = psutil.wait_procs(descendants, timeout=0)
    if alive:
        logger.warning("Force killing %d leftover backend child process(es)", len(alive))
        _signal_descendants(alive, force=True)


def _send(process: asyncio.subprocess.Process, *, force: bool) -> None:
    try:
        if force:
            process.kill()
        else:
            process.terminate()
    except ProcessLookupError:
        logger.debug("Backend process %s already exited", process.pid)


async def terminate_process(
    process: asyncio.subprocess.Process,
    *,
    grace_seconds: float = DEFAULT_STOP_GRACE_SECONDS,
    force_timeout: float = FORCE_KILL_TIMEOUT_SECONDS,
) -> Optional[ProcessExit]:
    """
    Send SIGTERM to the process and its descendants, then SIGKILL after ``grace_seconds``.

    Args:
        process: Backend process handle
        grace_seconds: How long to wait for a graceful exit
        force_timeout: How long to wait after SIGKILL

    Returns:
        The observed exit, or None if the process outlived SIGKILL
    """
    pid = process.pid
    descendants = collect_descendants(pid)

    logger.info("Stopping backend process (PID %s)", pid)
    _send(process, force=False)
    _signal_descendants(descendants, force=False)

    try:
        returncode = await asyncio.wait_for(process.wait(), timeout=grace_seconds)
    except asyncio.TimeoutError:
        logger.warning("Backend process %s did not terminate within %ss; sending SIGKILL", pid, grace_seconds)
    else:
        logger.info("Backend process %s terminated gracefully", pid)
        _reap_descendants(descendants)
        return ProcessExit.from_returncode(returncode)

    _send(process, force=True)
    _signal_descendants(descendants, force=True)
    try:
        returncode = await asyncio.wait_for(process.wait(), timeout=force_timeout)
    except asyncio.TimeoutError:
        logger.error("Backend process %s persisted after SIGKILL for %ss; manual intervention required", pid, force_timeout)
        return None
    logger.info("Backend process %s force killed", pid)
    return ProcessExit.from_returncode(returncode)


__all__ = ["FORCE_KILL_TIMEOUT_SECONDS", "collect_descendants", "terminate_process"]
