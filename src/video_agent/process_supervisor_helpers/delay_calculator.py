"""Delay calculation helpers for readiness polling."""

from dataclasses import dataclass


@dataclass
class BackoffConfig:
    """Configuration for capped exponential backoff between readiness probes"""

    initial_delay: float = 0.1
    max_delay: float = 1.0
    multiplier: float = 2.0


class DelayCalculator:
    """Calculates capped exponential backoff delays."""

    @staticmethod
    def calculate_delay(config: BackoffConfig, attempt: int) -> float:
        """
        Calculate the delay before retry number ``attempt``.

        Args:
            config: Backoff configuration
            attempt: Zero-based retry number

        Returns:
            Delay in seconds
        """
        if attempt < 0:
            raise ValueError(f"attempt must be non-negative (got {attempt})")
        return min(config.initial_delay * (config.multiplier**attempt), config.max_delay)

    @classmethod
    def calculate_bounded_delay(cls, config: BackoffConfig, attempt: int, remaining: float) -> float:
        """
        Calculate the delay for ``attempt`` without sleeping past the deadline.

        Args:
            config: Backoff configuration
            attempt: Zero-based retry number
            remaining: Seconds left before the overall deadline

        Returns:
            Delay in seconds, never negative
        """
        return max(0.0, min(cls.calculate_delay(config, attempt), remaining))


__all__ = ["BackoffConfig", "DelayCalculator"]
