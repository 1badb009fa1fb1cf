"""
Dependency injection interfaces for time and randomness.

Components that make random decisions (the demo scanner, the fallback
estimators) or read the clock take one of these providers in their
constructor so tests can swap in deterministic versions.
"""

import random
import time
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class TimeProvider(Protocol):
    """Protocol for time-related operations."""

    def current_timestamp(self) -> float:
        """Get current Unix timestamp."""
        ...

    def current_time_ms(self) -> int:
        """Get current time in milliseconds."""
        ...


@runtime_checkable
class RandomProvider(Protocol):
    """Protocol for random number generation."""

    def random(self) -> float:
        """Generate random float between 0.0 and 1.0."""
        ...

    def randint(self, a: int, b: int) -> int:
        """Generate random integer between a and b (inclusive)."""
        ...

    def uniform(self, a: float, b: float) -> float:
        """Generate random float between a and b."""
        ...


class SystemTimeProvider:
    """Production time provider using system time."""

    def current_timestamp(self) -> float:
        return time.time()

    def current_time_ms(self) -> int:
        return int(time.time() * 1000)


class SystemRandomProvider:
    """Production random provider backed by its own ``random.Random``."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def random(self) -> float:
        return self._rng.random()

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)

    def uniform(self, a: float, b: float) -> float:
        return self._rng.uniform(a, b)


class DeterministicTimeProvider:
    """Deterministic time provider for tests."""

    def __init__(self, start_time: float = 1704067200.0):  # 2024-01-01
        self._current_time = start_time

    def current_timestamp(self) -> float:
        return self._current_time

    def current_time_ms(self) -> int:
        return int(self._current_time * 1000)

    def advance_time(self, seconds: float) -> None:
        """Manually advance time by specified seconds."""
        self._current_time += seconds


class ScriptedRandomProvider:
    """
    Random provider that replays a fixed sequence of ``random()`` values.

    ``uniform(a, b)`` consumes the next value as the interpolation factor,
    so a test can script every decision the scanner makes. The sequence
    cycles when exhausted.
    """

    def __init__(self, values):
        if not values:
            raise ValueError("ScriptedRandomProvider needs at least one value")
        self._values = list(values)
        self._index = 0

    def random(self) -> float:
        value = self._values[self._index % len(self._values)]
        self._index += 1
        return value

    def randint(self, a: int, b: int) -> int:
        return a + int(self.random() * (b - a + 1)) if b > a else a

    def uniform(self, a: float, b: float) -> float:
        return a + (b - a) * self.random()


class DeterministicRandomProvider:
    """Seeded random provider for reproducible tests."""

    def __init__(self, seed: int = 42):
        self._rng = random.Random(seed)

    def random(self) -> float:
        return self._rng.random()

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)

    def uniform(self, a: float, b: float) -> float:
        return self._rng.uniform(a, b)
