"""
Lattice topologies for self-organizing maps.

A lattice defines the topological distance between two neurons from their
grid coordinates, independently of their prototypes. Coordinates are
``(x, y)`` with ``0 <= x < width`` and ``0 <= y < height``.
"""

import math
from abc import ABC, abstractmethod
from typing import Tuple

import numpy as np

from ..utils.registry import register_lattice
from ..utils.validation import require_greater_equal

SQRT3_2 = math.sqrt(3.0) / 2.0
NEIGHBOR_TOLERANCE = 1e-9


class Lattice(ABC):
    """Grid topology; the owning map injects its size through ``set_size``."""

    name = "lattice"

    def __init__(self):
        self.width = 0
        self.height = 0

    def set_size(self, width: int, height: int) -> None:
        require_greater_equal(width, "width", 1)
        require_greater_equal(height, "height", 1)
        self.width = int(width)
        self.height = int(height)

    @abstractmethod
    def _pairwise(self, ax, ay, bx, by) -> np.ndarray:
        """Vectorized distance between coordinate arrays (broadcasting)."""

    @abstractmethod
    def are_neighbors(self, a, b) -> bool:
        """Whether neurons ``a`` and ``b`` are adjacent cells."""

    def distance(self, a, b) -> float:
        """Lattice distance between neurons (anything with ``x`` and ``y``)."""
        return float(self._pairwise(np.float64(a.x), np.float64(a.y), np.float64(b.x), np.float64(b.y)))

    def distance_matrix(self) -> np.ndarray:
        """
        Distances between every pair of cells in row-major order.

        Returns:
            Array of shape (width * height, width * height)
        """
        ys, xs = np.divmod(np.arange(self.width * self.height), self.width)
        xs = xs.astype(np.float64)
        ys = ys.astype(np.float64)
        return self._pairwise(xs[:, None], ys[:, None], xs[None, :], ys[None, :])

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.width}x{self.height})"


@register_lattice("rectangular")
class RectangularLattice(Lattice):
    """Square grid; Euclidean grid distance, 8-neighborhood."""

    name = "rectangular"

    def _pairwise(self, ax, ay, bx, by) -> np.ndarray:
        return np.sqrt((bx - ax) ** 2 + (by - ay) ** 2)

    def are_neighbors(self, a, b) -> bool:
        return 0 < max(abs(b.x - a.x), abs(b.y - a.y)) <= 1


@register_lattice("hexagonal")
class HexagonalLattice(Lattice):
    """
    Hexagonal grid in offset-row layout (odd rows shifted right by half a
    cell); distance is Euclidean between cell centers, so each inner cell has
    six neighbors at distance 1.
    """

    name = "hexagonal"

    @staticmethod
    def cell_center(x, y) -> Tuple:
        return x + 0.5 * np.mod(y, 2), y * SQRT3_2

    def _pairwise(self, ax, ay, bx, by) -> np.ndarray:
        acx, acy = self.cell_center(ax, ay)
        bcx, bcy = self.cell_center(bx, by)
        return np.sqrt((bcx - acx) ** 2 + (bcy - acy) ** 2)

    def are_neighbors(self, a, b) -> bool:
        return 0 < self.distance(a, b) <= 1.0 + NEIGHBOR_TOLERANCE


@register_lattice("torus-rectangular")
class TorusRectangularLattice(Lattice):
    """Square grid whose opposite borders are joined."""

    name = "torus-rectangular"

    def _wrapped(self, ax, ay, bx, by):
        dx = np.abs(bx - ax)
        dy = np.abs(by - ay)
        return np.minimum(dx, self.width - dx), np.minimum(dy, self.height - dy)

    def _pairwise(self, ax, ay, bx, by) -> np.ndarray:
        dx, dy = self._wrapped(ax, ay, bx, by)
        return np.sqrt(dx ** 2 + dy ** 2)

    def are_neighbors(self, a, b) -> bool:
        dx, dy = self._wrapped(a.x, a.y, b.x, b.y)
        return 0 < max(dx, dy) <= 1


@register_lattice("torus-hexagonal")
class TorusHexagonalLattice(Lattice):
    """Hexagonal grid with wrap-around; distance is the wrapped ring index."""

    name = "torus-hexagonal"

    def _pairwise(self, ax, ay, bx, by) -> np.ndarray:
        dx = np.abs(bx - ax)
        dy = np.abs(by - ay)
        return np.maximum(np.minimum(dx, self.width - dx), np.minimum(dy, self.height - dy))

    def are_neighbors(self, a, b) -> bool:
        return 0 < self.distance(a, b) <= 1
