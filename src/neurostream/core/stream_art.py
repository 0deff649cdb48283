"""
StreamART2A Module for Neurostream.

This module implements StreamART2A, an adaptive-resonance style online
clustering algorithm that summarizes an evolving data stream into a bounded
set of weighted micro-categories.

Inputs are processed in landmark windows. Inside a window, each input either
resonates with its closest micro-category (which is then nudged towards it)
or commits a new one. The window codebook is kept at most ``q`` categories by
merging the closest pair, lowering the vigilance as needed. At each landmark
boundary the window codebook is archived into a bounded, time-ordered store
holding at most ``K`` categories, which acts as the model memory of the whole
stream.
"""

import logging
import math
import threading
from typing import List, Optional, Tuple

import numpy as np

from ..configs.schema import StreamART2AConfig
from ..utils.bounded import BoundedTimeOrderedSet
from ..utils.filters import SimpleRunningMeanFilter
from ..utils.metrics import TimeSeries
from ..utils.observable import Observable
from ..utils.validation import (
    DimensionalityMismatchError,
    InvalidArgumentError,
    require_dimensionality,
    require_greater_equal,
    require_in_range,
)
from .micro_category import MicroCategory, merge_categories

logger = logging.getLogger(__name__)

# Tolerance for floating point round-off in the vigilance test.
MATCH_TOLERANCE = 1e-13


def euclidean_distance(a: np.ndarray, b: np.ndarray) -> float:
    """Euclidean distance between two vectors of equal dimensionality."""
    if a.shape[0] != b.shape[0]:
        raise DimensionalityMismatchError(a.shape[0], b.shape[0])
    return float(np.sqrt(np.sum((a - b) ** 2)))


class StreamART2A(Observable):
    """
    Landmark-window online clustering into weighted micro-categories.

    The archive is written only at landmark boundaries and read by the
    ``codebook*`` queries; a single lock makes the archive-and-clear step
    atomic with respect to those readers. Observers are notified at every
    landmark boundary.

    Args:
        dimensionality: Dimensionality of every input vector
        dmin: Lower bound of each input component
        dmax: Upper bound of each input component
        learning_rate: Prototype blending factor on resonance
        landmark_window_size: Number of inputs per landmark window
        q: Maximum number of active micro-categories per window
        K: Maximum number of archived micro-categories
    """

    def __init__(
        self,
        dimensionality: int,
        dmin: float,
        dmax: float,
        learning_rate: float,
        landmark_window_size: int,
        q: int,
        K: int,
    ):
        super().__init__()
        require_greater_equal(dimensionality, "dimensionality", 1)
        if dmax <= dmin:
            raise InvalidArgumentError(f"dmax ({dmax}) must be greater than dmin ({dmin})")
        require_in_range(learning_rate, "learning_rate", 0.0, 1.0)
        require_greater_equal(landmark_window_size, "landmark_window_size", 1)
        require_greater_equal(q, "q", 1)
        require_greater_equal(K, "K", 1)

        self.dimensionality = int(dimensionality)
        self.learning_rate = float(learning_rate)
        self.landmark_window_size = int(landmark_window_size)
        self.q = int(q)
        self.K = int(K)
        self._input_manifold = (dmax - dmin) * math.sqrt(dimensionality)

        self._vigilance = 1.0
        self._step_count = 0

        self._codebook: List[MicroCategory] = []
        self._archive: BoundedTimeOrderedSet[MicroCategory] = BoundedTimeOrderedSet(
            self.K, timestamp_of=lambda category: category.timestamp
        )
        self._archive_lock = threading.Lock()

        logger.info(
            f"Initialized StreamART2A (dim={dimensionality}, window={landmark_window_size}, "
            f"q={q}, K={K}, manifold={self._input_manifold:.4f})"
        )

    @classmethod
    def from_config(cls, config: StreamART2AConfig) -> "StreamART2A":
        return cls(
            dimensionality=config.dimensionality,
            dmin=config.dmin,
            dmax=config.dmax,
            learning_rate=config.learning_rate,
            landmark_window_size=config.landmark_window_size,
            q=config.q,
            K=config.K,
        )

    @property
    def vigilance(self) -> float:
        return self._vigilance

    @property
    def input_manifold(self) -> float:
        return self._input_manifold

    @property
    def step_count(self) -> int:
        return self._step_count

    @property
    def active_codebook_size(self) -> int:
        return len(self._codebook)

    @property
    def archive_size(self) -> int:
        with self._archive_lock:
            return len(self._archive)

    def learn(self, input: np.ndarray) -> None:
        """
        Process one stream element.

        Args:
            input: Vector of the configured dimensionality; it is copied, never
                retained or modified

        Raises:
            DimensionalityMismatchError: If the input has the wrong length
        """
        x = require_dimensionality(input, self.dimensionality)

        self._step_count += 1

        self._absorb(x)

        # A commit may leave the window codebook one over q; merge before
        # returning so callers never observe more than q active categories.
        if len(self._codebook) > self.q:
            self._merge_closest_categories()

        # The landmark closes the window that ends with this input, so every
        # window archives exactly landmark_window_size inputs.
        if self._step_count % self.landmark_window_size == 0:
            self._archive_codebook_and_reset()

    def _absorb(self, x: np.ndarray) -> None:
        """Resonate with the closest category or commit a new one."""
        if not self._codebook:
            self._codebook.append(MicroCategory(x.copy(), self._step_count))
            return

        category, distance = self._search_closest_category(x)
        similarity = self.distance_to_similarity(distance)

        if self._matches(similarity):
            # W(t + 1) = learningRate * X + (1 - learningRate) * W(t)
            category.prototype *= 1.0 - self.learning_rate
            category.prototype += self.learning_rate * x
            category.increment_weight()
            category.set_timestamp(self._step_count)
        else:
            self._codebook.append(MicroCategory(x.copy(), self._step_count))

    def codebook(self) -> List[MicroCategory]:
        """Copies of every archived micro-category."""
        return self.codebook_between(0, self._step_count)

    def codebook_until(self, timestamp_horizon: int) -> List[MicroCategory]:
        """Copies of archived micro-categories updated at or after ``timestamp_horizon``."""
        return self.codebook_between(timestamp_horizon, max(self._step_count, timestamp_horizon))

    def codebook_between(self, t_low: int, t_high: int) -> List[MicroCategory]:
        """
        Copies of archived micro-categories with timestamp in ``[t_low, t_high]``.

        Raises:
            InvalidArgumentError: If ``t_high < t_low``
        """
        if t_high < t_low:
            raise InvalidArgumentError(
                f"t_high ({t_high}) must be greater or equal than t_low ({t_low})"
            )

        with self._archive_lock:
            return [category.copy() for category in self._archive.between(t_low, t_high)]

    def active_codebook(self) -> List[MicroCategory]:
        """Copies of the current (unarchived) window codebook."""
        return [category.copy() for category in self._codebook]

    def vigilance_to_distance(self, vigilance: float) -> float:
        """Distance radius equivalent to a vigilance value."""
        return self._input_manifold * (1.0 - vigilance)

    def distance_to_similarity(self, distance: float) -> float:
        return 1.0 - distance / self._input_manifold

    def _matches(self, similarity: float) -> bool:
        return similarity >= self._vigilance or abs(similarity - self._vigilance) < MATCH_TOLERANCE

    def _search_closest_category(self, x: np.ndarray) -> Tuple[Optional[MicroCategory], float]:
        best: Optional[MicroCategory] = None
        best_distance = math.inf
        for category in self._codebook:
            distance = euclidean_distance(category.prototype, x)
            if distance < best_distance:
                best = category
                best_distance = distance
        return best, best_distance

    def _merge_closest_categories(self) -> None:
        """
        Replace the most similar pair of window categories by their weighted merge.

        The vigilance drops to the pair's similarity when that is lower. A pair
        spanning the full input range has similarity 0, so the vigilance can
        reach 0 and every later input of the window resonates; the landmark
        boundary restores it to 1.
        """
        k = len(self._codebook)
        c1, c2 = 0, 1
        best_similarity = -math.inf
        for i in range(k - 1):
            for j in range(i + 1, k):
                similarity = self.distance_to_similarity(
                    euclidean_distance(self._codebook[i].prototype, self._codebook[j].prototype)
                )
                if similarity > best_similarity:
                    best_similarity = similarity
                    c1, c2 = i, j

        merged = merge_categories(self._codebook[c1], self._codebook[c2], self._step_count)

        if best_similarity < self._vigilance:
            logger.debug(
                f"Vigilance lowered {self._vigilance:.6f} -> {best_similarity:.6f} "
                f"at step {self._step_count}"
            )
            self._vigilance = best_similarity

        # c2 > c1, so removing c2 first keeps c1 valid
        del self._codebook[c2]
        del self._codebook[c1]
        self._codebook.append(merged)

    def _archive_codebook_and_reset(self) -> None:
        for category in self._codebook:
            category.set_vigilance_radius(self._vigilance)

        with self._archive_lock:
            self._archive.add_all(self._codebook)
            self._codebook = []

        logger.debug(
            f"Landmark at step {self._step_count}: archived window "
            f"(vigilance={self._vigilance:.6f}, archive size={len(self._archive)})"
        )
        self._vigilance = 1.0
        self.notify_observers()

    def __repr__(self) -> str:
        return (
            f"StreamART2A(codebook_size={len(self._codebook)}, "
            f"archive_size={len(self._archive)}, input_manifold={self._input_manifold:.4f}, "
            f"learning_rate={self.learning_rate}, landmark_window_size={self.landmark_window_size}, "
            f"q={self.q}, K={self.K}, vigilance={self._vigilance:.6f}, "
            f"step_count={self._step_count})"
        )


class StreamART2AWithConceptDrift(StreamART2A):
    """
    StreamART2A tracking how well the archive explains the current input.

    After each step, the distance from the input to the closest archived
    category (normalized by the input manifold) is smoothed with a running
    mean over one landmark window and appended to a time series. A rising
    curve signals that the stream drifted away from its archived summary.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._archive_quantization_error = SimpleRunningMeanFilter(
            "Archive QE", self.landmark_window_size
        )
        self.quantization_error_series = TimeSeries("Running QE")

    def learn(self, input: np.ndarray) -> None:
        super().learn(input)
        x = np.asarray(input, dtype=np.float64)

        with self._archive_lock:
            if not self._archive:
                return
            prototypes = np.stack([category.prototype for category in self._archive])

        min_distance = float(np.min(np.sqrt(np.sum((prototypes - x) ** 2, axis=1))))
        value = self._archive_quantization_error.filter(min_distance / self._input_manifold)
        self.quantization_error_series.append(self._step_count, value)

    @property
    def current_quantization_error(self) -> float:
        return self._archive_quantization_error.last_output()
