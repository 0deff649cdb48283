"""
Self-Organizing Map Module for Neurostream.

This module implements the SOM lattice shared by every map implementation:
a width x height grid of prototype neurons, a lattice topology giving the
distance between grid positions, and a metric distance in feature space.

Prototypes are stored as rows of a single ``(width * height, dimensionality)``
array in row-major order (``index = y * width + x``); each ``PrototypeNeuron``
exposes its row as a view, so in-place updates through a neuron and
vectorized updates of the whole array are equivalent.
"""

import logging
import math
from typing import Iterator, List, Optional, Sequence, Union

import numpy as np

from ..configs.schema import SOMConfig
from ..utils.observable import Observable
from ..utils.registry import create_distance, create_lattice, register_model
from ..utils.validation import (
    require_dimensionality,
    require_greater_equal,
    require_in_range,
    require_matrix,
)
from .distance import MetricDistance
from .lattice import Lattice

logger = logging.getLogger(__name__)


class PrototypeNeuron:
    """
    A neuron of the map: lattice coordinates plus a prototype vector.

    Attributes:
        x: Column index in the lattice
        y: Row index in the lattice
        index: Row-major position in the map
    """

    __slots__ = ("x", "y", "index", "_weights")

    def __init__(self, x: int, y: int, index: int, weights: np.ndarray):
        self.x = x
        self.y = y
        self.index = index
        self._weights = weights

    @property
    def prototype(self) -> np.ndarray:
        """View of this neuron's prototype; in-place changes update the map."""
        return self._weights[self.index]

    @prototype.setter
    def prototype(self, value: np.ndarray) -> None:
        value = require_dimensionality(value, self._weights.shape[1], "prototype")
        # Copy so the same array is never shared between two neurons
        self._weights[self.index] = value

    @property
    def coordinates(self) -> tuple:
        return self.x, self.y

    def __repr__(self) -> str:
        return f"(x = {self.x:2d}, y = {self.y:2d}) - {np.array2string(self.prototype, precision=4)}"


class SelfOrganizingMap(Observable):
    """
    Grid of prototype neurons with a lattice topology and a feature metric.

    Args:
        width: Number of lattice columns
        height: Number of lattice rows
        dimensionality: Prototype dimensionality
        lattice: Lattice instance or registry name (default "hexagonal")
        metric: Metric distance instance or registry name (default "euclidean")
        seed: Seed or generator for the random prototype initialization
    """

    def __init__(
        self,
        width: int,
        height: int,
        dimensionality: int,
        lattice: Union[str, Lattice, None] = None,
        metric: Union[str, MetricDistance, None] = None,
        seed: Union[int, np.random.Generator, None] = None,
    ):
        super().__init__()
        require_greater_equal(width, "width", 1)
        require_greater_equal(height, "height", 1)
        require_greater_equal(dimensionality, "dimensionality", 1)

        self.width = int(width)
        self.height = int(height)
        self.dimensionality = int(dimensionality)

        if lattice is None or isinstance(lattice, str):
            lattice = create_lattice(lattice or "hexagonal")
        if metric is None or isinstance(metric, str):
            metric = create_distance(metric or "euclidean")
        self.lattice = lattice
        self.lattice.set_size(self.width, self.height)
        self.metric = metric

        self.rng = np.random.default_rng(seed)
        self.weights = self.rng.random((self.width * self.height, self.dimensionality))

        self._neurons: List[PrototypeNeuron] = [
            PrototypeNeuron(index % self.width, index // self.width, index, self.weights)
            for index in range(self.width * self.height)
        ]
        self._lattice_distances = self.lattice.distance_matrix()
        logger.debug(f"Created {self!r}")

    @classmethod
    def from_config(cls, config: SOMConfig, **kwargs) -> "SelfOrganizingMap":
        return cls(
            width=config.width,
            height=config.height,
            dimensionality=config.dimensionality,
            lattice=config.lattice,
            metric=config.metric,
            seed=config.seed,
            **kwargs,
        )

    @property
    def implementation_name(self) -> str:
        return type(self).__name__

    @property
    def size(self) -> int:
        return self.width * self.height

    @property
    def lattice_diagonal(self) -> float:
        return math.sqrt((self.width - 1) ** 2 + (self.height - 1) ** 2)

    def get(self, x: int, y: int) -> PrototypeNeuron:
        """Neuron at lattice coordinates ``(x, y)``."""
        require_in_range(x, "x", 0, self.width - 1)
        require_in_range(y, "y", 0, self.height - 1)
        return self._neurons[y * self.width + x]

    def neuron_at(self, index: int) -> PrototypeNeuron:
        """Neuron at row-major position ``index``."""
        require_in_range(index, "index", 0, self.size - 1)
        return self._neurons[int(index)]

    def best_matching_index(self, input: np.ndarray) -> int:
        """Row-major index of the neuron closest to ``input``; first wins ties."""
        x = require_dimensionality(input, self.dimensionality)
        return int(np.argmin(self.metric.distances(self.weights, x)))

    def best_matching_unit(self, input: np.ndarray) -> PrototypeNeuron:
        """Neuron whose prototype is closest to ``input``."""
        return self._neurons[self.best_matching_index(input)]

    def best_matching_indices(self, data: np.ndarray) -> np.ndarray:
        """Best-matching unit index for every row of ``data``."""
        data = require_matrix(data, self.dimensionality)
        return np.argmin(self.metric.pairwise(data, self.weights), axis=1)

    def lattice_distance(self, a: PrototypeNeuron, b: PrototypeNeuron) -> float:
        return float(self._lattice_distances[a.index, b.index])

    def lattice_distances_from(self, index: int) -> np.ndarray:
        """Lattice distances from neuron ``index`` (or an array of indices) to every neuron."""
        return self._lattice_distances[index]

    def are_neighbors(self, a: PrototypeNeuron, b: PrototypeNeuron) -> bool:
        return self.lattice.are_neighbors(a, b)

    def distance_between_prototypes(self, a: PrototypeNeuron, b: PrototypeNeuron) -> float:
        return self.metric.distance(a.prototype, b.prototype)

    def prototypes(self) -> np.ndarray:
        """Snapshot of all prototypes, shape (height, width, dimensionality)."""
        return self.weights.reshape(self.height, self.width, self.dimensionality).copy()

    def randomize(self, rng: Optional[np.random.Generator] = None) -> None:
        """Draw every prototype uniformly from [0, 1)."""
        rng = rng or self.rng
        self.weights[:] = rng.random(self.weights.shape)

    def initialize_from(
        self,
        vectors: Sequence[np.ndarray],
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        """Set each prototype to a vector sampled (with replacement) from ``vectors``."""
        data = require_matrix(vectors, self.dimensionality, "vectors")
        rng = rng or self.rng
        self.weights[:] = data[rng.integers(0, data.shape[0], size=self.size)]

    def prototypes_updated(self) -> None:
        """Notify observers that a batch of prototype changes is complete."""
        self.notify_observers()

    def __iter__(self) -> Iterator[PrototypeNeuron]:
        return iter(self._neurons)

    def __len__(self) -> int:
        return self.size

    def __repr__(self) -> str:
        return (
            f"{self.implementation_name} ({self.width} x {self.height} x {self.dimensionality}) | "
            f"{type(self.lattice).__name__} | {type(self.metric).__name__}"
        )


@register_model("basic")
class BasicSOM(SelfOrganizingMap):
    """Map without an intrinsic learning rule, trained by offline algorithms."""


class StreamingSOM(SelfOrganizingMap):
    """Map that learns incrementally from one input at a time."""

    def learn(self, input: np.ndarray) -> None:
        """Adapt the map to a single stream element - to be implemented by subclasses."""
        raise NotImplementedError
