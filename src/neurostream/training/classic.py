"""
Classic (online Kohonen) Training for Self-Organizing Maps.

Inputs are presented one at a time, epoch after epoch. Alpha and sigma decay
exponentially over the iterations of the ordering epochs and then stay at
their final values while the fine-tuning epochs run.
"""

import logging
from typing import Sequence

import numpy as np

from ..configs.schema import ClassicLearningConfig
from ..core.functions import exponential, gaussian, valid_neighborhood_mask
from ..core.som import SelfOrganizingMap
from ..utils.validation import require_matrix, require_non_negative, require_positive

logger = logging.getLogger(__name__)


class ClassicLearning:
    """
    Args:
        alpha_i: Initial learning rate
        alpha_f: Final learning rate
        sigma_i: Initial neighborhood radius, in lattice units
        sigma_f: Final neighborhood radius, in lattice units
        order_epochs: Epochs over which alpha and sigma decay
        fine_tune_epochs: Epochs run at the final values
    """

    def __init__(
        self,
        alpha_i: float,
        alpha_f: float,
        sigma_i: float,
        sigma_f: float,
        order_epochs: int,
        fine_tune_epochs: int,
    ):
        require_positive(alpha_i, "alpha_i")
        require_positive(alpha_f, "alpha_f")
        require_positive(sigma_i, "sigma_i")
        require_positive(sigma_f, "sigma_f")
        require_non_negative(order_epochs, "order_epochs")
        require_non_negative(fine_tune_epochs, "fine_tune_epochs")

        self.alpha_i = float(alpha_i)
        self.alpha_f = float(alpha_f)
        self.sigma_i = float(sigma_i)
        self.sigma_f = float(sigma_f)
        self.order_epochs = int(order_epochs)
        self.fine_tune_epochs = int(fine_tune_epochs)

    @classmethod
    def from_config(cls, config: ClassicLearningConfig) -> "ClassicLearning":
        return cls(
            alpha_i=config.alpha_i,
            alpha_f=config.alpha_f,
            sigma_i=config.sigma_i,
            sigma_f=config.sigma_f,
            order_epochs=config.order_epochs,
            fine_tune_epochs=config.fine_tune_epochs,
        )

    @property
    def total_epochs(self) -> int:
        return self.order_epochs + self.fine_tune_epochs

    def train(self, som: SelfOrganizingMap, data: Sequence[np.ndarray]) -> None:
        """
        Train ``som`` on ``data`` in presentation order.

        Raises:
            DimensionalityMismatchError: If the data does not match the map
        """
        data = require_matrix(data, som.dimensionality)
        order_iterations = data.shape[0] * self.order_epochs

        logger.info(
            f"Classic training {som!r} on {data.shape[0]} samples for {self.total_epochs} epochs"
        )

        iteration = 0
        for epoch in range(1, self.total_epochs + 1):
            for x in data:
                alpha = exponential(self.alpha_i, self.alpha_f, iteration, order_iterations)
                sigma = exponential(self.sigma_i, self.sigma_f, iteration, order_iterations)

                bmu = som.best_matching_index(x)
                neigh = gaussian(som.lattice_distances_from(bmu), sigma)
                affected = valid_neighborhood_mask(neigh)

                # Kohonen rule: w += alpha * neigh * (x - w)
                scale = (alpha * neigh[affected])[:, np.newaxis]
                som.weights[affected] += scale * (x - som.weights[affected])
                som.prototypes_updated()

                iteration += 1

            logger.debug(f"Epoch {epoch}/{self.total_epochs} | alpha={alpha:.4f} | sigma={sigma:.4f}")

        logger.info("Classic training finished")
