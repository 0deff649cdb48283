"""
Dynamic SOM (DSOM).

DSOM uses a constant learning rate and elasticity instead of decaying
schedules: the neighborhood shrinks as the best-matching unit gets closer to
the input, and each neuron's step is scaled by the distance between its
prototype and the best-matching unit's, so the map keeps tracking a changing
distribution indefinitely. The best-matching unit itself never moves.
"""

from typing import Union

import numpy as np

from ..configs.schema import DSOMConfig
from ..utils.registry import register_model
from ..utils.validation import require_dimensionality, require_positive
from .distance import MetricDistance
from .functions import valid_neighborhood_mask
from .lattice import Lattice
from .som import StreamingSOM


@register_model("dsom")
class DSOM(StreamingSOM):
    """
    Args:
        width: Number of lattice columns
        height: Number of lattice rows
        dimensionality: Input dimensionality
        plasticity: Elasticity; larger values widen the neighborhood
        epsilon: Constant learning rate
    """

    def __init__(
        self,
        width: int,
        height: int,
        dimensionality: int,
        plasticity: float,
        epsilon: float,
        lattice: Union[str, Lattice, None] = None,
        metric: Union[str, MetricDistance, None] = None,
        seed: Union[int, np.random.Generator, None] = None,
    ):
        require_positive(plasticity, "plasticity")
        require_positive(epsilon, "epsilon")
        super().__init__(width, height, dimensionality, lattice=lattice, metric=metric, seed=seed)
        self.plasticity = float(plasticity)
        self.epsilon = float(epsilon)

    @classmethod
    def from_config(cls, config: DSOMConfig) -> "DSOM":
        return cls(
            width=config.width,
            height=config.height,
            dimensionality=config.dimensionality,
            plasticity=config.plasticity,
            epsilon=config.epsilon,
            lattice=config.lattice,
            metric=config.metric,
            seed=config.seed,
        )

    def learn(self, input: np.ndarray) -> None:
        x = require_dimensionality(input, self.dimensionality)
        distances = self.metric.distances(self.weights, x)
        bmu = int(np.argmin(distances))
        quantization_error = distances[bmu]

        if quantization_error > 0:
            grid = self._lattice_distances[bmu]
            neigh = np.exp(-(grid * grid) / (quantization_error ** 2 * self.plasticity ** 2))
            affected = valid_neighborhood_mask(neigh)
            spread = self.metric.distances(self.weights, self.weights[bmu])
            scale = (self.epsilon * spread[affected] * neigh[affected])[:, np.newaxis]
            self.weights[affected] += scale * (x - self.weights[affected])

        self.prototypes_updated()
