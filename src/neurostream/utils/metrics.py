"""
Metrics and Evaluation Utilities for Neurostream.

This module provides map quality measures (quantization and topographic
error), a small time series container, and an observer that records the
self-monitoring signals published by streaming maps.
"""

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)


class TimeSeries:
    """Sequence of ``(time, value)`` points appended in time order."""

    def __init__(self, name: str):
        self.name = name
        self._times: List[int] = []
        self._values: List[float] = []

    def append(self, time: int, value: float) -> None:
        self._times.append(int(time))
        self._values.append(float(value))

    def times(self) -> np.ndarray:
        return np.asarray(self._times, dtype=np.int64)

    def values(self) -> np.ndarray:
        return np.asarray(self._values, dtype=np.float64)

    def last(self) -> Tuple[int, float]:
        """Most recent point; raises ``IndexError`` when empty."""
        return self._times[-1], self._values[-1]

    def to_csv(self, path: Union[str, Path]) -> None:
        """Write the series as a two-column CSV file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(["time", self.name])
            writer.writerows(zip(self._times, self._values))

    def __len__(self) -> int:
        return len(self._times)

    def __iter__(self):
        return iter(zip(self._times, self._values))

    def __repr__(self) -> str:
        return f"TimeSeries('{self.name}', {len(self)} points)"


class MetricsRecorder:
    """
    Observer recording drift, activity and quantization error of a UbiSOM.

    Register it with ``model.add_observer(recorder)``; every notification
    appends the model's current running means, keyed by its step count.
    """

    def __init__(self):
        self.drift = TimeSeries("drift")
        self.activity = TimeSeries("activity")
        self.quantization_error = TimeSeries("quantization_error")

    def __call__(self, model) -> None:
        step = model.step_count
        self.drift.append(step, model.current_drift)
        self.activity.append(step, model.current_activity)
        self.quantization_error.append(step, model.current_quantization_error)

    def to_csv(self, path: Union[str, Path]) -> None:
        """Write all three series side by side."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(["step", "drift", "activity", "quantization_error"])
            writer.writerows(
                zip(
                    self.drift.times().tolist(),
                    self.drift.values().tolist(),
                    self.activity.values().tolist(),
                    self.quantization_error.values().tolist(),
                )
            )
        logger.info(f"Wrote {len(self.drift)} metric rows to {path}")


def quantization_error(som, data: Iterable) -> float:
    """
    Mean distance between each input and its best-matching prototype.

    Args:
        som: Self-organizing map
        data: Input vectors, shape (n, dimensionality)

    Returns:
        Mean quantization error
    """
    data = np.asarray(data, dtype=np.float64)
    distances = som.metric.pairwise(data, som.weights)
    return float(np.mean(np.min(distances, axis=1)))


def topographic_error(som, data: Iterable) -> float:
    """
    Fraction of inputs whose first and second best-matching units are not
    lattice neighbors.
    """
    data = np.asarray(data, dtype=np.float64)
    if som.size < 2:
        return 0.0

    distances = som.metric.pairwise(data, som.weights)
    ranked = np.argsort(distances, axis=1, kind="stable")[:, :2]
    errors = 0
    for first, second in ranked:
        if not som.are_neighbors(som.neuron_at(first), som.neuron_at(second)):
            errors += 1
    return errors / data.shape[0]


@dataclass(frozen=True)
class SOMStatistics:
    """Quantization and topographic error of a map over a dataset."""

    quantization_error: float
    topographic_error: float

    @classmethod
    def compute(cls, som, data: Iterable) -> "SOMStatistics":
        data = np.asarray(data, dtype=np.float64)
        return cls(
            quantization_error=quantization_error(som, data),
            topographic_error=topographic_error(som, data),
        )

    def __str__(self) -> str:
        return (
            f"Quantization Error = {self.quantization_error:.3f} | "
            f"Topographic Error = {self.topographic_error:.3f}"
        )
