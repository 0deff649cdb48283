"""
Running-mean filters used for self-monitoring signals.

Both filters are O(1) per sample and return a defined value before their
window fills, averaging over the samples seen so far.
"""

from abc import ABC, abstractmethod
from typing import List

import numpy as np

from .validation import require_greater_equal, require_not_none


class RunningMeanFilter(ABC):
    """Common contract of the running-mean filters."""

    def __init__(self, name: str, window_size: int):
        require_not_none(name, "name")
        require_greater_equal(window_size, "window_size", 1)
        self.name = name
        self.window_size = int(window_size)

    @abstractmethod
    def filter(self, value: float) -> float:
        """Feed ``value`` and return the updated running mean."""

    @abstractmethod
    def last_output(self) -> float:
        """Return the most recent running mean (0 before any sample)."""

    @abstractmethod
    def reset(self) -> None:
        """Forget every sample seen so far."""

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name!r}, "
            f"window_size={self.window_size}, last_output={self.last_output():.6f})"
        )


class SimpleRunningMeanFilter(RunningMeanFilter):
    """Fixed-window running mean backed by a ring buffer and a running sum."""

    def __init__(self, name: str, window_size: int):
        super().__init__(name, window_size)
        self._buffer = np.zeros(self.window_size, dtype=np.float64)
        self._index = 0
        self._count = 0
        self._sum = 0.0
        self._last_output = 0.0

    def filter(self, value: float) -> float:
        self._sum -= self._buffer[self._index]
        self._sum += value
        self._buffer[self._index] = value
        self._index = (self._index + 1) % self.window_size
        if self._count < self.window_size:
            self._count += 1

        self._last_output = self._sum / self._count
        return self._last_output

    def last_output(self) -> float:
        return self._last_output

    def reset(self) -> None:
        self._buffer.fill(0.0)
        self._index = 0
        self._count = 0
        self._sum = 0.0
        self._last_output = 0.0

    @property
    def count(self) -> int:
        """Number of samples currently in the window."""
        return self._count


class TripleCascadedMeanFilter(RunningMeanFilter):
    """
    Three simple running means chained in series.

    The three window lengths follow a geometric ratio ``R`` chosen so that
    ``(1/R + 1/R^2 + 1/R^3) * C`` approximates the requested window size,
    which gives a smoother output than a single filter of the same span at
    the cost of extra phase lag.
    """

    WINDOW_RATIO = 1.2067
    CONSTANT = 2.08458

    def __init__(self, name: str, window_size: int):
        super().__init__(name, window_size)
        self._stages = [
            SimpleRunningMeanFilter(f"{name} (stage {i + 1})", size)
            for i, size in enumerate(self.cascade_window_sizes(self.window_size))
        ]

    @classmethod
    def cascade_window_sizes(cls, window_size: int) -> List[int]:
        """Window lengths of the three stages; each is at least 1."""
        m = window_size / cls.CONSTANT
        return [
            max(1, int(round(m / cls.WINDOW_RATIO ** power)))
            for power in (1, 2, 3)
        ]

    def filter(self, value: float) -> float:
        filtered = value
        for stage in self._stages:
            filtered = stage.filter(filtered)
        return filtered

    def last_output(self) -> float:
        return self._stages[-1].last_output()

    def reset(self) -> None:
        for stage in self._stages:
            stage.reset()
