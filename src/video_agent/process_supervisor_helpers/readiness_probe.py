"""Readiness probing for the backend listening port."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

import aiohttp
from aiohttp import ClientError, ClientTimeout

from .delay_calculator import BackoffConfig, DelayCalculator
from .types import DEFAULT_PROBE_ATTEMPT_TIMEOUT_SECONDS, ProbeMode

logger = logging.getLogger(__name__)

PortCheck = Callable[[str, int, float], Awaitable[bool]]


@dataclass(frozen=True)
class ReadinessProbe:
    """Target and time budget for one readiness wait."""

    host: str
    port: int
    deadline: float
    attempt_timeout: float = DEFAULT_PROBE_ATTEMPT_TIMEOUT_SECONDS


class ReadinessOutcome(Enum):
    """How a readiness wait ended"""

    READY = "ready"
    TIMEOUT = "timeout"
    EXITED = "exited"


async def check_tcp_port(host: str, port: int, timeout: float) -> bool:
    """Return True when a TCP connection to ``host:port`` is accepted."""
    try:
        _reader, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=timeout)
    except (asyncio.TimeoutError, OSError) as exc:
        logger.debug("TCP probe of %s:%s failed: %s", host, port, exc)
        return False

    writer.close()
    try:
        await writer.wait_closed()
    except OSError as exc:
        logger.debug("Closing TCP probe connection to %s:%s failed: %s", host, port, exc)
    return True


async def check_http_port(host: str, port: int, timeout: float) -> bool:
    """Return True when ``GET /`` on ``host:port`` produces any HTTP response."""
    url = f"http://{host}:{port}/"
    try:
        async with aiohttp.ClientSession() as session:
            async with session.get(url, timeout=ClientTimeout(total=timeout)) as response:
                logger.debug("HTTP probe of %s answered with status %s", url, response.status)
                return True
    except asyncio.TimeoutError:
        logger.debug("HTTP probe of %s timed out after %.2fs", url, timeout)
        return False
    except (ClientError, OSError) as exc:
        logger.debug("HTTP probe of %s failed: %s", url, exc)
        return False


def check_for_mode(mode: ProbeMode) -> PortCheck:
    """Return the port check used for ``mode``."""
    if mode is ProbeMode.HTTP:
        return check_http_port
    return check_tcp_port


class ReadinessWaiter:
    """Polls a port with capped exponential backoff until it answers or time runs out."""

    def __init__(
        self,
        probe: ReadinessProbe,
        *,
        check: PortCheck = check_tcp_port,
        backoff: Optional[BackoffConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.probe = probe
        self.check = check
        self.backoff = backoff or BackoffConfig()
        self._clock = clock

    async def wait(self, exit_future: Optional[asyncio.Future] = None) -> ReadinessOutcome:
        """
        Wait until the probe succeeds, the deadline passes or the process exits.

        Neither the per-attempt timeout nor the backoff sleep is allowed to run
        past the deadline.

        Args:
            exit_future: Resolves when the probed process exits

        Returns:
            The outcome of the wait
        """
        started = self._clock()
        attempt = 0

        while True:
            if exit_future is not None and exit_future.done():
                return ReadinessOutcome.EXITED

            remaining = self.probe.deadline - (self._clock() - started)
            if remaining <= 0:
                logger.error("Backend startup timeout after %.1fs", self.probe.deadline)
                return ReadinessOutcome.TIMEOUT

            attempt_timeout = min(self.probe.attempt_timeout, remaining)
            if await self.check(self.probe.host, self.probe.port, attempt_timeout):
                logger.info("Backend is ready on %s:%s", self.probe.host, self.probe.port)
                return ReadinessOutcome.READY

            remaining = self.probe.deadline - (self._clock() - started)
            delay = DelayCalculator.calculate_bounded_delay(self.backoff, attempt, remaining)
            if await self._sleep_unless_exited(delay, exit_future):
                return ReadinessOutcome.EXITED
            attempt += 1
            logger.debug("Waiting for backend... (attempt %d)", attempt)

    @staticmethod
    async def _sleep_unless_exited(delay: float, exit_future: Optional[asyncio.Future]) -> bool:
        """Sleep for ``delay`` seconds; return True early if the process exits."""
        if exit_future is None:
            await asyncio.sleep(delay)
            return False
        done, _pending = await asyncio.wait({exit_future}, timeout=delay)
        return bool(done)


__all__ = [
    "PortCheck",
    "ReadinessOutcome",
    "ReadinessProbe",
    "ReadinessWaiter",
    "check_for_mode",
    "check_http_port",
    "check_tcp_port",
]
