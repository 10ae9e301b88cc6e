"""Injectable sources of latency, randomness and time for the simulators.

Simulators never call ambient randomness or sleep directly. They receive a
``random.Random`` (seedable), a ``DelayStrategy`` and a clock, so tests can
force both branches of every probabilistic decision and skip latency.
"""

import random
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import UTC, datetime

from orderflow.config import get_settings

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


class DelayStrategy(ABC):
    """How simulated gateway latency is spent."""

    @abstractmethod
    def wait(self, low_ms: int, high_ms: int, rng: random.Random) -> float:
        """Wait for a duration drawn from [low_ms, high_ms]; return seconds waited."""
        ...


class NoDelay(DelayStrategy):
    """Latency is skipped; only the drawn duration is reported."""

    def wait(self, low_ms: int, high_ms: int, rng: random.Random) -> float:
        return 0.0


class SleepDelay(DelayStrategy):
    """Blocks the calling thread for the drawn duration."""

    def __init__(self, sleep: Callable[[float], None] = time.sleep) -> None:
        self._sleep = sleep

    def wait(self, low_ms: int, high_ms: int, rng: random.Random) -> float:
        seconds = rng.uniform(low_ms, high_ms) / 1000
        self._sleep(seconds)
        return seconds


def default_rng() -> random.Random:
    """A random source seeded from settings (unseeded when no seed is configured)."""
    return random.Random(get_settings().random_seed)


def default_delay() -> DelayStrategy:
    return SleepDelay() if get_settings().simulate_latency else NoDelay()
