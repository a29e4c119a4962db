"""Least-squares line fits and base-2 rational slope approximation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np

from .errors import FitError, QuantizationError
from .fixed_point import INT32_MAX, INT32_MIN, MAX_SHIFT, round_half_away

__all__ = [
    "LineFit",
    "RationalSlope",
    "fit_line",
    "quantize_slope",
]


@dataclass(frozen=True)
class LineFit:
    offset: float
    slope: float


@dataclass(frozen=True)
class RationalSlope:
    """Slope expressed as ``multiplier / 2**shift``."""

    multiplier: int
    shift: int

    @property
    def value(self) -> float:
        return self.multiplier / float(1 << self.shift)


def fit_line(values: Iterable[float]) -> LineFit:
    """
    Fit ``offset + slope * i`` to ``values`` sampled at ``i = 0..n-1``.

    The index is centred before solving with an SVD-based least-squares solve,
    which keeps the problem well conditioned for long windows. ``offset`` is the
    fitted value at ``i = 0``.
    """
    y = np.asarray(values, dtype=float)
    n = y.size
    if n < 2:
        raise ValueError(f"At least two points are required to fit a line, got {n}.")
    if not np.all(np.isfinite(y)):
        raise FitError("Cannot fit a line through non-finite values.")

    i = np.arange(n, dtype=float)
    i_mean = (n - 1) / 2.0
    A = np.vstack([np.ones(n), i - i_mean]).T
    level, slope = np.linalg.lstsq(A, y, rcond=None)[0]
    offset = level - slope * i_mean

    if not (np.isfinite(offset) and np.isfinite(slope)):
        raise FitError(f"Least-squares fit over {n} points produced non-finite parameters.")
    return LineFit(float(offset), float(slope))


def quantize_slope(slope: float, n_points: int) -> RationalSlope:
    """
    Approximate ``slope`` by ``multiplier / 2**shift`` for a segment of ``n_points``.

    The smallest shift is chosen such that the accumulated difference over the
    segment, ``n_points * (multiplier / 2**shift - slope)``, stays below half a
    fixed-point unit. ``n_points * multiplier`` must fit an int32, since the
    firmware forms that product before shifting.
    """
    if not np.isfinite(slope):
        raise FitError(f"Cannot quantize non-finite slope {slope!r}.")
    if n_points < 1:
        raise ValueError(f"n_points must be positive, got {n_points}.")

    actual_max = n_points * slope
    for shift in range(MAX_SHIFT):
        scale = float(1 << shift)
        multiplier = round_half_away(slope * scale)
        max_product = n_points * multiplier
        if max_product > INT32_MAX or max_product < INT32_MIN:
            # Larger shifts only grow the product.
            break
        if abs(max_product / scale - actual_max) < 0.5:
            return RationalSlope(multiplier, shift)
    raise QuantizationError(slope, n_points)
