"""
Neighborhood and decay functions used by the SOM learning rules.

Neighborhood functions accept scalar or array distances and return values of
the same shape. Contributions outside ``[NEIGHBORHOOD_CUTOFF, 1]`` or not
finite are discarded by the learning rules; this has a negligible effect on
the result and avoids touching the whole lattice at every step.
"""

import numpy as np

from ..utils.registry import register_neighborhood
from ..utils.validation import InvalidArgumentError, require_non_negative

NEIGHBORHOOD_CUTOFF = 0.01


@register_neighborhood("gaussian")
def gaussian(dist, sigma: float):
    """``exp(-dist^2 / (2 sigma^2))``; ``sigma <= 0`` keeps the BMU only."""
    dist = np.asarray(dist, dtype=np.float64)
    if sigma <= 0:
        return np.where(dist == 0, 1.0, 0.0)
    return np.exp(-(dist * dist) / (2.0 * sigma * sigma))


@register_neighborhood("bubble")
def bubble(dist, sigma: float):
    """1 inside radius ``sigma``, 0 outside."""
    dist = np.asarray(dist, dtype=np.float64)
    return np.where(dist <= sigma, 1.0, 0.0)


@register_neighborhood("pyramid")
def pyramid(dist, sigma: float):
    """Linear fall-off from 1 at the BMU to 0 past radius ``sigma``."""
    dist = np.asarray(dist, dtype=np.float64)
    return np.where(dist <= sigma, 1.0 - dist / (sigma + 1.0), 0.0)


def valid_neighborhood_mask(values) -> np.ndarray:
    """Boolean mask of the contributions the learning rules apply."""
    values = np.asarray(values, dtype=np.float64)
    return np.isfinite(values) & (values >= NEIGHBORHOOD_CUTOFF) & (values <= 1.0)


def exponential(initial: float, final: float, t: int, horizon: int) -> float:
    """
    Exponential interpolation ``initial * (final / initial) ** (t / horizon)``.

    Returns ``final`` once ``t >= horizon``.

    Raises:
        InvalidArgumentError: On negative ``t``/``horizon`` or non-positive endpoints
    """
    require_non_negative(t, "t")
    require_non_negative(horizon, "horizon")
    if t >= horizon:
        return final
    if initial <= 0 or final <= 0:
        raise InvalidArgumentError(
            f"exponential decay requires positive endpoints, got {initial} and {final}"
        )
    return initial * (final / initial) ** (t / horizon)


def linear(initial: float, final: float, t: int, horizon: int) -> float:
    """Linear interpolation; returns ``final`` once ``t >= horizon``."""
    require_non_negative(t, "t")
    require_non_negative(horizon, "horizon")
    if t >= horizon:
        return final
    return initial + (final - initial) * t / horizon


def inverse_time(initial: float, final: float, c: float, t: int, horizon: int) -> float:
    """``(initial - final) / (1 + (horizon / c) * t) + final``."""
    require_non_negative(t, "t")
    require_non_negative(horizon, "horizon")
    if c <= 0:
        raise InvalidArgumentError(f"'c' must be positive, got {c}")
    return (initial - final) / (1.0 + (horizon / c) * t) + final
