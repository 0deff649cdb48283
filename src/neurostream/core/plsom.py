"""
Parameter-less SOM (PLSOM).

PLSOM replaces learning-rate and radius schedules with values derived from
each input's quantization error, scaled by a running estimate ``S`` of the
input manifold diameter. ``S`` is tracked with a reservoir of at most
``1 + dimensionality`` widely dispersed inputs: whenever a new input would
widen the reservoir's diameter, ``S`` grows and the input replaces the
closest reservoir members.
"""

import logging
import math
from typing import List, Union

import numpy as np

from ..configs.schema import PLSOMConfig
from ..utils.registry import register_model
from ..utils.validation import require_dimensionality, require_positive
from .distance import MetricDistance
from .functions import gaussian, valid_neighborhood_mask
from .lattice import Lattice
from .som import StreamingSOM

logger = logging.getLogger(__name__)

MAX_EPSILON = 0.5


@register_model("plsom")
class PLSOM(StreamingSOM):
    """
    Args:
        width: Number of lattice columns
        height: Number of lattice rows
        dimensionality: Input dimensionality
        neighborhood_range: Largest neighborhood radius, in lattice units
        lattice: Lattice instance or registry name
        metric: Metric distance instance or registry name
        seed: Seed or generator for prototype initialization
    """

    def __init__(
        self,
        width: int,
        height: int,
        dimensionality: int,
        neighborhood_range: float,
        lattice: Union[str, Lattice, None] = None,
        metric: Union[str, MetricDistance, None] = None,
        seed: Union[int, np.random.Generator, None] = None,
    ):
        require_positive(neighborhood_range, "neighborhood_range")
        super().__init__(width, height, dimensionality, lattice=lattice, metric=metric, seed=seed)
        self.neighborhood_range = float(neighborhood_range)
        self.reservoir_capacity = 1 + self.dimensionality
        self._reservoir: List[np.ndarray] = []
        self._diameter = -1.0

    @classmethod
    def from_config(cls, config: PLSOMConfig) -> "PLSOM":
        return cls(
            width=config.width,
            height=config.height,
            dimensionality=config.dimensionality,
            neighborhood_range=config.neighborhood_range,
            lattice=config.lattice,
            metric=config.metric,
            seed=config.seed,
        )

    @property
    def diameter(self) -> float:
        """Current estimate ``S`` of the input manifold diameter (-1 before any input)."""
        return self._diameter

    def learn(self, input: np.ndarray) -> None:
        x = require_dimensionality(input, self.dimensionality)
        bmu = self.best_matching_index(x)
        quantization_error = self.metric.distance(self.weights[bmu], x)

        epsilon = self._epsilon(x, quantization_error)
        radius = self.neighborhood_range * math.log(1.0 + epsilon * (math.e - 1.0))

        neigh = gaussian(self._lattice_distances[bmu], radius)
        affected = valid_neighborhood_mask(neigh)
        scale = (epsilon * neigh[affected])[:, np.newaxis]
        self.weights[affected] += scale * (x - self.weights[affected])

        self.prototypes_updated()

    def _epsilon(self, x: np.ndarray, quantization_error: float) -> float:
        diameter = self._diameter_with(x)
        if diameter > self._diameter:
            self._diameter = diameter
            self._contract_reservoir(x)
            self._reservoir.append(x.copy())

        if self._diameter <= 0:
            # Single point seen so far: any error is maximal relative to it
            return MAX_EPSILON if quantization_error > 0 else 0.0
        return min(quantization_error / self._diameter, MAX_EPSILON)

    def _diameter_with(self, x: np.ndarray) -> float:
        """Largest pairwise distance within the reservoir plus ``x``."""
        if not self._reservoir:
            return 0.0
        members = np.vstack(self._reservoir + [x])
        return float(np.max(self.metric.pairwise(members, members)))

    def _contract_reservoir(self, x: np.ndarray) -> None:
        """Drop the members closest to ``x`` until there is room for it."""
        while len(self._reservoir) >= self.reservoir_capacity:
            distances = self.metric.distances(np.vstack(self._reservoir), x)
            del self._reservoir[int(np.argmin(distances))]
