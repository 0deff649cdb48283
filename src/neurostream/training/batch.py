"""
Batch Training for Self-Organizing Maps.

Batch learning runs in epochs over a fixed dataset. Within an epoch the
prototypes are frozen: every input is assigned to its best-matching unit and
contributes ``neigh(bmu, neuron) * input`` to each neuron's numerator and
``neigh(bmu, neuron)`` to its denominator. At the end of the epoch each neuron
with a positive denominator is replaced by the ratio; neurons nobody reached
keep their prototype.

Epochs ``e = -order_epochs + 1 .. convergence_epochs`` are numbered so that
the ordering phase (``e <= 0``) keeps sigma at its initial value and the
convergence phase decays it exponentially towards its final value.
"""

import logging
from typing import Iterable, Optional, Sequence

import numpy as np

from ..configs.schema import BatchLearningConfig
from ..core.functions import exponential, gaussian, valid_neighborhood_mask
from ..core.micro_category import MicroCategory, maximum_weight_among
from ..core.som import SelfOrganizingMap
from ..utils.validation import (
    InvalidArgumentError,
    require_matrix,
    require_non_negative,
    require_positive,
)

logger = logging.getLogger(__name__)

# Inputs accumulated per vectorized block, bounding the (block, neurons) buffer
ACCUMULATION_BLOCK_SIZE = 1024


class BatchLearning:
    """
    Offline batch training with an ordering and a convergence phase.

    Args:
        sigma_i: Initial neighborhood radius, in lattice units
        sigma_f: Final neighborhood radius, in lattice units
        order_epochs: Epochs with sigma held at ``sigma_i``
        convergence_epochs: Epochs over which sigma decays to ``sigma_f``
    """

    def __init__(
        self,
        sigma_i: float,
        sigma_f: float,
        order_epochs: int,
        convergence_epochs: int,
    ):
        require_positive(sigma_i, "sigma_i")
        require_positive(sigma_f, "sigma_f")
        require_non_negative(order_epochs, "order_epochs")
        require_non_negative(convergence_epochs, "convergence_epochs")

        self.sigma_i = float(sigma_i)
        self.sigma_f = float(sigma_f)
        self.order_epochs = int(order_epochs)
        self.convergence_epochs = int(convergence_epochs)

    @classmethod
    def from_config(cls, config: BatchLearningConfig) -> "BatchLearning":
        return cls(
            sigma_i=config.sigma_i,
            sigma_f=config.sigma_f,
            order_epochs=config.order_epochs,
            convergence_epochs=config.convergence_epochs,
        )

    @property
    def total_epochs(self) -> int:
        return self.order_epochs + self.convergence_epochs

    def sigma_at(self, epoch: int) -> float:
        """Neighborhood radius for an epoch numbered as described in the module docstring."""
        if epoch <= 0:
            return self.sigma_i
        return exponential(self.sigma_i, self.sigma_f, epoch, self.convergence_epochs)

    def train(self, som: SelfOrganizingMap, data: Sequence[np.ndarray]) -> None:
        """
        Train ``som`` on ``data``.

        Args:
            som: Map to train; its prototypes are the starting point
            data: Training vectors, shape (n, som.dimensionality)

        Raises:
            DimensionalityMismatchError: If the data does not match the map
        """
        data = require_matrix(data, som.dimensionality)
        self._train(som, data, np.ones(data.shape[0]))

    def _train(self, som: SelfOrganizingMap, data: np.ndarray, sample_weights: np.ndarray) -> None:
        logger.info(
            f"Batch training {som!r} on {data.shape[0]} samples for {self.total_epochs} epochs"
        )

        for epoch_count, e in enumerate(range(-self.order_epochs + 1, self.convergence_epochs + 1), 1):
            sigma = self.sigma_at(e)
            numerator, denominator = accumulate(som, data, sample_weights, sigma)

            reached = denominator > 0
            som.weights[reached] = numerator[reached] / denominator[reached, np.newaxis]
            som.prototypes_updated()

            logger.debug(
                f"Epoch {epoch_count}/{self.total_epochs} | sigma={sigma:.4f} | "
                f"updated {np.count_nonzero(reached)}/{som.size} neurons"
            )

        logger.info("Batch training finished")


class MicroCategoryBatchLearning(BatchLearning):
    """
    Batch training from micro-categories.

    Each category's prototype acts as an input whose contribution is scaled by
    its weight relative to the heaviest category in the collection.
    """

    def train(self, som: SelfOrganizingMap, categories: Iterable[MicroCategory]) -> None:
        """
        Train ``som`` on a collection of micro-categories.

        Raises:
            InvalidArgumentError: If ``categories`` is empty
            DimensionalityMismatchError: If the prototypes do not match the map
        """
        categories = list(categories)
        if not categories:
            raise InvalidArgumentError("at least one micro-category is required")

        data = require_matrix([c.prototype for c in categories], som.dimensionality, "categories")
        max_weight = maximum_weight_among(categories)
        sample_weights = np.array([c.weight for c in categories], dtype=np.float64) / max_weight

        self._train(som, data, sample_weights)


def accumulate(
    som: SelfOrganizingMap,
    data: np.ndarray,
    sample_weights: Optional[np.ndarray],
    sigma: float,
):
    """
    Neighborhood-weighted sums of ``data`` per neuron for one epoch.

    Returns:
        ``(numerator, denominator)`` of shapes (som.size, dim) and (som.size,)
    """
    numerator = np.zeros_like(som.weights)
    denominator = np.zeros(som.size)
    if sample_weights is None:
        sample_weights = np.ones(data.shape[0])

    for start in range(0, data.shape[0], ACCUMULATION_BLOCK_SIZE):
        block = data[start:start + ACCUMULATION_BLOCK_SIZE]
        weights = sample_weights[start:start + ACCUMULATION_BLOCK_SIZE]

        bmus = som.best_matching_indices(block)
        neigh = gaussian(som.lattice_distances_from(bmus), sigma)
        neigh = np.where(valid_neighborhood_mask(neigh), neigh, 0.0) * weights[:, np.newaxis]

        numerator += neigh.T @ block
        denominator += neigh.sum(axis=0)

    return numerator, denominator
