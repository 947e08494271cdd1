"""Create the backend child process."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Awaitable, Callable

from .errors import SpawnError
from .types import SupervisorSettings

logger = logging.getLogger(__name__)

SpawnFunc = Callable[[SupervisorSettings], Awaitable[asyncio.subprocess.Process]]


def build_environment(settings: SupervisorSettings) -> dict[str, str]:
    """Inherited environment with the configured overrides applied."""
    env = dict(os.environ)
    env.update(settings.env)
    return env


async def spawn_backend(settings: SupervisorSettings) -> asyncio.subprocess.Process:
    """
    Spawn the backend with piped stdout/stderr and a closed stdin.

    Raises:
        SpawnError: If the operating system cannot create the process
    """
    logger.info("Starting backend process: %s", settings.command_line)
    try:
        return await asyncio.create_subprocess_exec(
            settings.command,
            *settings.args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=build_environment(settings),
            cwd=settings.cwd,
        )
    except OSError as exc:
        raise SpawnError(f"Failed to start backend ({settings.command_line}): {exc}", command=settings.command_line) from exc


__all__ = ["SpawnFunc", "build_environment", "spawn_backend"]
