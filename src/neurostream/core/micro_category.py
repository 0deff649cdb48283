"""
Micro-categories: weighted, timestamped prototypes summarizing a stream.
"""

from typing import Dict, Iterable

import numpy as np

from ..utils.validation import require_not_none


class MicroCategory:
    """
    A prototype summarizing a local cluster of recent inputs.

    Attributes:
        prototype: Category center; exclusively owned by this category
        timestamp: Learning step of the last update
        weight: Number of inputs absorbed
        vigilance_radius: Vigilance in force when the category was archived
    """

    def __init__(
        self,
        prototype: np.ndarray,
        timestamp: int = 0,
        weight: int = 1,
        vigilance_radius: float = 1.0,
    ):
        require_not_none(prototype, "prototype")
        self.prototype = np.array(prototype, dtype=np.float64)
        self.timestamp = int(timestamp)
        self.weight = int(weight)
        self.vigilance_radius = float(vigilance_radius)

    def copy(self) -> "MicroCategory":
        """Deep copy, prototype included."""
        return MicroCategory(
            self.prototype.copy(),
            self.timestamp,
            self.weight,
            self.vigilance_radius,
        )

    def increment_weight(self) -> None:
        self.weight += 1

    def set_timestamp(self, timestamp: int) -> None:
        self.timestamp = int(timestamp)

    def set_vigilance_radius(self, radius: float) -> None:
        self.vigilance_radius = float(radius)

    @property
    def dimensionality(self) -> int:
        return self.prototype.shape[0]

    def to_dict(self) -> Dict:
        """Convert category to dictionary for serialization."""
        return {
            "prototype": self.prototype.tolist(),
            "timestamp": self.timestamp,
            "weight": self.weight,
            "vigilance_radius": self.vigilance_radius,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "MicroCategory":
        """Create category from dictionary."""
        return cls(
            prototype=np.array(data["prototype"]),
            timestamp=data["timestamp"],
            weight=data["weight"],
            vigilance_radius=data.get("vigilance_radius", 1.0),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MicroCategory):
            return NotImplemented
        return (
            self.timestamp == other.timestamp
            and self.weight == other.weight
            and self.vigilance_radius == other.vigilance_radius
            and np.array_equal(self.prototype, other.prototype)
        )

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"MicroCategory(prototype={np.array2string(self.prototype, precision=4)}, "
            f"timestamp={self.timestamp}, weight={self.weight}, "
            f"vigilance_radius={self.vigilance_radius:.4f})"
        )


def merge_categories(
    first: MicroCategory,
    second: MicroCategory,
    timestamp: int,
) -> MicroCategory:
    """
    Merge two categories into a new one weighted by their sample counts.

    The merged prototype is ``w1/(w1+w2) * p1 + w2/(w1+w2) * p2`` and the
    merged weight is ``w1 + w2``. Neither input is modified.
    """
    total = first.weight + second.weight
    prototype = (first.weight / total) * first.prototype + (second.weight / total) * second.prototype
    return MicroCategory(prototype, timestamp=timestamp, weight=total)


def maximum_weight_among(categories: Iterable[MicroCategory]) -> int:
    """Largest weight among ``categories``, or -1 when there are none."""
    return max((category.weight for category in categories), default=-1)
