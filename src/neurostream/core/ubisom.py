"""
UbiSOM Module for Neurostream.

UbiSOM is a streaming self-organizing map that monitors its own fit to the
stream. Each learning step records which neurons were touched, and three
running means (quantization error, neuron activity, and a composite drift
signal) summarize how well the map currently represents the input
distribution. The learning rate ``alpha`` and neighborhood radius ``sigma``
are scheduled by the current phase:

- Ordering: both decay exponentially from their initial to final values
  over ``T`` iterations, unfolding the map.
- Converging: both are proportional to the current drift, capped at their
  final values once drift exceeds the level captured when the phase began.

Phase changes are requested by the caller through ``ordering_state()`` and
``converging_state()``. With ``auto_transition`` enabled the model follows
its built-in policy instead: Ordering moves to Converging when its ``T``
iterations elapse, and Converging restarts Ordering after ``sigma`` stays
pinned at ``sigma_f`` for ``T`` consecutive iterations.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Tuple, Union

import numpy as np

from ..configs.schema import UbiSOMConfig
from ..utils.filters import SimpleRunningMeanFilter, TripleCascadedMeanFilter
from ..utils.registry import register_model
from ..utils.validation import (
    require_dimensionality,
    require_greater_equal,
    require_in_range,
    require_positive,
)
from .distance import MetricDistance
from .functions import exponential, gaussian, valid_neighborhood_mask
from .lattice import Lattice
from .som import StreamingSOM

logger = logging.getLogger(__name__)

# Tolerance when checking that sigma sits at its final value.
SIGMA_EQUALITY_TOLERANCE = 1e-4


class UbiSOMPhase(str, Enum):
    """Learning phases of a UbiSOM."""

    ORDERING = "ordering"
    CONVERGING = "converging"


@dataclass
class OrderingState:
    """Exponential decay of alpha and sigma over the first ``T`` iterations."""

    alpha_0: float
    alpha_f: float
    sigma_0: float
    sigma_f: float
    T: int
    processed_iterations: int = 0

    phase: ClassVar[UbiSOMPhase] = UbiSOMPhase.ORDERING

    def compute_schedule(self, drift: float) -> Tuple[float, float]:
        self.processed_iterations += 1
        alpha = exponential(self.alpha_0, self.alpha_f, self.processed_iterations, self.T)
        sigma = exponential(self.sigma_0, self.sigma_f, self.processed_iterations, self.T)
        return alpha, sigma

    @property
    def duration_elapsed(self) -> bool:
        return self.processed_iterations >= self.T

    @property
    def finished(self) -> bool:
        return self.duration_elapsed


@dataclass
class ConvergingState:
    """Alpha and sigma proportional to drift, capped above ``drift_threshold``."""

    alpha_f: float
    sigma_f: float
    T: int
    drift_threshold: float
    parameters_high_count: int = 0
    alpha_magnification: float = field(init=False)
    sigma_magnification: float = field(init=False)

    phase: ClassVar[UbiSOMPhase] = UbiSOMPhase.CONVERGING

    def __post_init__(self):
        if self.drift_threshold > 0:
            self.alpha_magnification = self.alpha_f / self.drift_threshold
            self.sigma_magnification = self.sigma_f / self.drift_threshold
        else:
            self.alpha_magnification = 0.0
            self.sigma_magnification = 0.0

    def compute_schedule(self, drift: float) -> Tuple[float, float]:
        if drift > self.drift_threshold:
            alpha, sigma = self.alpha_f, self.sigma_f
        else:
            alpha = drift * self.alpha_magnification
            sigma = drift * self.sigma_magnification

        if abs(sigma - self.sigma_f) < SIGMA_EQUALITY_TOLERANCE:
            self.parameters_high_count += 1
        else:
            self.parameters_high_count = 0
        return alpha, sigma

    @property
    def saturated(self) -> bool:
        """Sigma stayed at its final value for ``T`` consecutive iterations."""
        return self.parameters_high_count >= self.T

    @property
    def finished(self) -> bool:
        return self.saturated


UbiSOMState = Union[OrderingState, ConvergingState]


@register_model("ubisom")
class UbiSOM(StreamingSOM):
    """
    Streaming SOM with self-monitoring and drift-driven parameter schedules.

    Args:
        width: Number of lattice columns
        height: Number of lattice rows
        dimensionality: Input dimensionality
        lattice: Lattice instance or registry name
        metric: Metric distance instance or registry name
        alpha_0: Initial learning rate
        alpha_f: Final learning rate
        sigma_0: Initial neighborhood radius, as a fraction of the lattice diagonal
        sigma_f: Final neighborhood radius, as a fraction of the lattice diagonal
        beta: Weight of quantization error versus inactivity in the drift
        T: Self-monitoring window length and ordering duration, in iterations
        auto_transition: Follow the built-in phase transition policy
        seed: Seed or generator for prototype initialization
    """

    def __init__(
        self,
        width: int,
        height: int,
        dimensionality: int,
        lattice: Union[str, Lattice, None] = None,
        metric: Union[str, MetricDistance, None] = None,
        alpha_0: float = 0.1,
        alpha_f: float = 0.08,
        sigma_0: float = 0.6,
        sigma_f: float = 0.2,
        beta: float = 0.7,
        T: int = 2000,
        auto_transition: bool = False,
        seed: Union[int, np.random.Generator, None] = None,
    ):
        require_positive(alpha_0, "alpha_0")
        require_positive(alpha_f, "alpha_f")
        require_positive(sigma_0, "sigma_0")
        require_positive(sigma_f, "sigma_f")
        require_in_range(beta, "beta", 0.0, 1.0)
        require_greater_equal(T, "T", 1)
        super().__init__(width, height, dimensionality, lattice=lattice, metric=metric, seed=seed)

        self.alpha_0 = alpha_0
        self.alpha_f = alpha_f
        self.sigma_0 = sigma_0
        self.sigma_f = sigma_f
        self.beta = beta
        self.T = int(T)
        self.auto_transition = auto_transition

        self._activity_timestamps = np.zeros(self.size, dtype=np.int64)
        self._bmu_timestamps = np.zeros(self.size, dtype=np.int64)
        self._dimensionality_ratio = math.sqrt(self.dimensionality)
        self._step_count = 0

        self._quantization_error_mean = TripleCascadedMeanFilter("Mean QE", self.T)
        self._activity_mean = SimpleRunningMeanFilter("Mean Activity", self.T)
        self._drift_mean = TripleCascadedMeanFilter("Drift", self.T)

        self.state: UbiSOMState
        self.ordering_state()

        logger.info(
            f"Initialized UbiSOM {self.width}x{self.height}x{self.dimensionality} "
            f"(alpha {alpha_0}->{alpha_f}, sigma {sigma_0}->{sigma_f}, beta={beta}, T={T})"
        )

    @classmethod
    def from_config(cls, config: UbiSOMConfig) -> "UbiSOM":
        return cls(
            width=config.width,
            height=config.height,
            dimensionality=config.dimensionality,
            lattice=config.lattice,
            metric=config.metric,
            alpha_0=config.alpha_0,
            alpha_f=config.alpha_f,
            sigma_0=config.sigma_0,
            sigma_f=config.sigma_f,
            beta=config.beta,
            T=config.T,
            auto_transition=config.auto_transition,
            seed=config.seed,
        )

    @property
    def phase(self) -> UbiSOMPhase:
        return self.state.phase

    @property
    def step_count(self) -> int:
        return self._step_count

    def ordering_state(self) -> None:
        """Re-randomize prototypes, reset timestamps and (re)start ordering."""
        self.randomize()
        self._activity_timestamps.fill(0)
        self._bmu_timestamps.fill(0)
        self.state = OrderingState(self.alpha_0, self.alpha_f, self.sigma_0, self.sigma_f, self.T)
        logger.info(f"UbiSOM entered ordering state at step {self._step_count}")

    def converging_state(self) -> None:
        """Start converging, using the current drift as the reference level."""
        drift_threshold = self._drift_mean.last_output()
        self.state = ConvergingState(self.alpha_f, self.sigma_f, self.T, drift_threshold)
        logger.info(
            f"UbiSOM entered converging state at step {self._step_count} "
            f"(drift threshold={drift_threshold:.6f})"
        )

    def learn(self, input: np.ndarray) -> None:
        """
        Process one stream element.

        Raises:
            DimensionalityMismatchError: If the input has the wrong length
        """
        x = require_dimensionality(input, self.dimensionality)
        bmu = self.best_matching_index(x)

        alpha, sigma = self.state.compute_schedule(self._drift_mean.last_output())
        self._step_count += 1
        self.adjust_weights(bmu, x, alpha, sigma)

        if self.auto_transition and self.state.finished:
            if self.state.phase is UbiSOMPhase.ORDERING:
                self.converging_state()
            else:
                logger.info("Sigma saturated at its final value; restarting ordering")
                self.ordering_state()

    def adjust_weights(self, bmu: int, x: np.ndarray, alpha: float, sigma: float) -> None:
        """
        Move prototypes towards ``x`` and update the self-monitoring signals.

        Args:
            bmu: Row-major index of the best-matching unit
            x: Input vector
            alpha: Learning rate
            sigma: Neighborhood radius as a fraction of the lattice diagonal
        """
        # BMU recency: 0 for the winner, every other neuron ages by one step
        self._bmu_timestamps -= 1
        self._bmu_timestamps[bmu] = 0

        neigh = gaussian(self._lattice_distances[bmu], sigma * self.lattice_diagonal)
        affected = valid_neighborhood_mask(neigh)

        self._activity_timestamps[~affected] -= 1
        self._activity_timestamps[affected] = 0

        scale = (alpha * neigh[affected])[:, np.newaxis]
        self.weights[affected] += scale * (x - self.weights[affected])

        # Measured on the adjusted BMU prototype
        quantization_error = float(self.metric.distance(self.weights[bmu], x))

        active = np.count_nonzero(self._activity_timestamps > -self.T)
        current_activity = active / self.size

        normalized_qe = quantization_error / self._dimensionality_ratio
        qe = self._quantization_error_mean.filter(normalized_qe)
        activity = self._activity_mean.filter(current_activity)

        # Running means lag behind the cold-start transient; during ordering the
        # drift uses the raw error and assumes a fully active map.
        if self.state.phase is UbiSOMPhase.ORDERING:
            qe = normalized_qe
            activity = 1.0

        drift = self.beta * qe + (1.0 - self.beta) * (1.0 - activity)
        self._drift_mean.filter(drift)

        self.prototypes_updated()

    @property
    def current_drift(self) -> float:
        return self._drift_mean.last_output()

    @property
    def current_activity(self) -> float:
        return self._activity_mean.last_output()

    @property
    def current_quantization_error(self) -> float:
        return self._quantization_error_mean.last_output()

    def activity_timestamps(self) -> np.ndarray:
        """Copy of the activity timestamps, shape (height, width)."""
        return self._activity_timestamps.reshape(self.height, self.width).copy()

    def bmu_timestamps(self) -> np.ndarray:
        """Copy of the BMU timestamps, shape (height, width)."""
        return self._bmu_timestamps.reshape(self.height, self.width).copy()

    def timestamp_activity(self, x: int, y: int) -> int:
        return int(self._activity_timestamps[self.get(x, y).index])

    def timestamp_bmu(self, x: int, y: int) -> int:
        return int(self._bmu_timestamps[self.get(x, y).index])
