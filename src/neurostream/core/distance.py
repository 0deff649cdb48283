"""
Metric distances between prototype vectors in feature space.
"""

from abc import ABC, abstractmethod

import numpy as np

from ..utils.registry import register_distance
from ..utils.validation import DimensionalityMismatchError


class MetricDistance(ABC):
    """Distance in feature space, with a vectorized pairwise form."""

    name = "metric"

    def distance(self, a: np.ndarray, b: np.ndarray) -> float:
        """Distance between two vectors of equal dimensionality."""
        a = np.asarray(a, dtype=np.float64)
        b = np.asarray(b, dtype=np.float64)
        if a.shape[-1] != b.shape[-1]:
            raise DimensionalityMismatchError(a.shape[-1], b.shape[-1])
        return float(self.pairwise(a.reshape(1, -1), b.reshape(1, -1))[0, 0])

    def distances(self, matrix: np.ndarray, v: np.ndarray) -> np.ndarray:
        """Distance from each row of ``matrix`` to ``v``."""
        return self.pairwise(np.asarray(v, dtype=np.float64).reshape(1, -1), matrix)[0]

    @abstractmethod
    def pairwise(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        """Distances between every row of ``x`` and every row of ``y``, shape (n, m)."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


@register_distance("euclidean")
class EuclideanDistance(MetricDistance):

    name = "euclidean"

    def pairwise(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        if x.shape[1] != y.shape[1]:
            raise DimensionalityMismatchError(y.shape[1], x.shape[1])
        diff = x[:, np.newaxis, :] - y[np.newaxis, :, :]
        return np.sqrt(np.einsum("ijk,ijk->ij", diff, diff))


@register_distance("cosine")
class CosineDistance(MetricDistance):
    """``1 - cos(angle)``; zero vectors are at distance 1 from everything."""

    name = "cosine"

    def pairwise(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        if x.shape[1] != y.shape[1]:
            raise DimensionalityMismatchError(y.shape[1], x.shape[1])
        norms = np.outer(np.linalg.norm(x, axis=1), np.linalg.norm(y, axis=1))
        dots = x @ y.T
        with np.errstate(divide="ignore", invalid="ignore"):
            similarity = np.where(norms > 0, dots / norms, 0.0)
        return 1.0 - similarity
