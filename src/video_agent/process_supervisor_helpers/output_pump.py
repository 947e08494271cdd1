"""Forward backend stdout/stderr into the launcher log."""

from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger("video_agent.backend")

STDOUT_LABEL = "Backend"
STDERR_LABEL = "Backend Error"
_OVERSIZED_CHUNK_BYTES = 64 * 1024


async def pump_stream(stream: asyncio.StreamReader, *, label: str, level: int) -> int:
    """
    Log each line read from ``stream`` until EOF.

    Args:
        stream: Child process pipe
        label: Prefix identifying the pipe in the log
        level: Logging level for forwarded lines

    Returns:
        Number of lines forwarded
    """
    forwarded = 0
    while True:
        try:
            raw = await stream.readline()
        except ValueError:
            # Line longer than the reader limit; take what is buffered instead.
            raw = await stream.read(_OVERSIZED_CHUNK_BYTES)
        if not raw:
            return forwarded

        text = raw.decode("utf-8", errors="replace").strip()
        if text:
            logger.log(level, "[%s] %s", label, text)
            forwarded += 1


def start_pumps(process: asyncio.subprocess.Process) -> list[asyncio.Task]:
    """Start forwarding tasks for whichever pipes ``process`` exposes."""
    tasks: list[asyncio.Task] = []
    if process.stdout is not None:
        tasks.append(asyncio.create_task(pump_stream(process.stdout, label=STDOUT_LABEL, level=logging.INFO)))
    if process.stderr is not None:
        tasks.append(asyncio.create_task(pump_stream(process.stderr, label=STDERR_LABEL, level=logging.WARNING)))
    return tasks


__all__ = ["STDERR_LABEL", "STDOUT_LABEL", "pump_stream", "start_pumps"]
