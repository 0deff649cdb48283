"""
Argument Validation for Neurostream.

Precondition checks shared by every model. All checks raise a ``ValueError``
subclass and are meant to run before any model state is touched, so a failed
call leaves the model exactly as it was.
"""

from typing import Any, Optional

import numpy as np


class InvalidArgumentError(ValueError):
    """Raised when an argument violates a documented range or ordering."""


class DimensionalityMismatchError(InvalidArgumentError):
    """Raised when a vector does not have the dimensionality a model expects."""

    def __init__(self, expected: int, actual: int, name: Optional[str] = None):
        self.expected = expected
        self.actual = actual
        prefix = f"{name}: " if name else ""
        super().__init__(
            f"{prefix}dimensionality mismatch: expected {expected} got {actual}"
        )


def require_not_none(value: Any, name: str) -> Any:
    """Reject ``None`` arguments."""
    if value is None:
        raise InvalidArgumentError(f"'{name}' must not be None")
    return value


def require_non_negative(value: float, name: str) -> float:
    """Require ``value >= 0``."""
    if value < 0:
        raise InvalidArgumentError(f"'{name}' must be non-negative, got {value}")
    return value


def require_positive(value: float, name: str) -> float:
    """Require ``value > 0``."""
    if value <= 0:
        raise InvalidArgumentError(f"'{name}' must be positive, got {value}")
    return value


def require_greater_equal(value: float, name: str, minimum: float) -> float:
    """Require ``value >= minimum``."""
    if value < minimum:
        raise InvalidArgumentError(
            f"'{name}' must be greater or equal than {minimum}, got {value}"
        )
    return value


def require_in_range(value: float, name: str, low: float, high: float) -> float:
    """Require ``low <= value <= high``."""
    if value < low or value > high:
        raise InvalidArgumentError(
            f"'{name}' must be in range [{low}, {high}], got {value}"
        )
    return value


def require_dimensionality(vector: Any, expected: int, name: str = "input") -> np.ndarray:
    """
    Coerce ``vector`` to a 1-D float array and check its dimensionality.

    Args:
        vector: Array-like input
        expected: Required number of components
        name: Argument name used in the error message

    Returns:
        The input as a float64 ndarray (not copied when already one)

    Raises:
        InvalidArgumentError: If ``vector`` is None or not one-dimensional
        DimensionalityMismatchError: If the length differs from ``expected``
    """
    require_not_none(vector, name)
    array = np.asarray(vector, dtype=np.float64)
    if array.ndim != 1:
        raise InvalidArgumentError(
            f"'{name}' must be a one-dimensional vector, got shape {array.shape}"
        )
    if array.shape[0] != expected:
        raise DimensionalityMismatchError(expected, array.shape[0], name)
    return array


def require_matrix(data: Any, expected: int, name: str = "data") -> np.ndarray:
    """Coerce ``data`` to an (n, expected) float array, rejecting empty input."""
    require_not_none(data, name)
    array = np.asarray(data, dtype=np.float64)
    if array.ndim == 1:
        array = array.reshape(1, -1)
    if array.ndim != 2 or array.shape[0] == 0:
        raise InvalidArgumentError(
            f"'{name}' must be a non-empty 2-D array, got shape {array.shape}"
        )
    if array.shape[1] != expected:
        raise DimensionalityMismatchError(expected, array.shape[1], name)
    return array
