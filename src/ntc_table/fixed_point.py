"""Fixed-point helpers shared by the table generator and its lookup."""

from __future__ import annotations

from typing import Union

import numpy as np

IntLike = Union[int, np.ndarray]

FIXED_SCALE = 128
INT16_MIN, INT16_MAX = -(2**15), 2**15 - 1
INT32_MIN, INT32_MAX = -(2**31), 2**31 - 1
UINT16_MAX = 2**16 - 1
MAX_SHIFT = 30

MIN_FIXED_VALUE = INT16_MIN / FIXED_SCALE
MAX_FIXED_VALUE = INT16_MAX / FIXED_SCALE
HALF_LSB = 0.5 / FIXED_SCALE


def round_half_away(x):
    """Round to the nearest integer, ties away from zero (C ``round``)."""
    if isinstance(x, np.ndarray):
        return (np.sign(x) * np.floor(np.abs(x) + 0.5)).astype(np.int64)
    return int(np.sign(x) * np.floor(abs(x) + 0.5))


def to_fixed(value: float) -> int:
    """Convert a real value into signed 1/128 fixed point."""
    if not np.isfinite(value):
        raise ValueError(f"Cannot convert non-finite value {value!r} to fixed point.")
    if value < MIN_FIXED_VALUE or value > MAX_FIXED_VALUE:
        raise ValueError(
            f"{value:.8f} is outside the int16 fixed-point range "
            f"[{MIN_FIXED_VALUE:.8f}, {MAX_FIXED_VALUE:.8f}]."
        )
    return round_half_away(FIXED_SCALE * float(value))


def from_fixed(value):
    """Convert 1/128 fixed point back to real units."""
    if isinstance(value, np.ndarray):
        return value.astype(float) / FIXED_SCALE
    return float(value) / FIXED_SCALE


def shiftround(value: IntLike, shift: int) -> IntLike:
    """
    Return ``ROUND(value / 2**shift)`` using only shifts.

    Ties round away from zero, matching the firmware routine, so ``-5 >> 1``
    yields ``-3`` and ``5 >> 1`` yields ``3``.
    """
    if shift < 0:
        raise ValueError(f"shift must be non-negative, got {shift}")
    if shift == 0:
        return value
    half = 1 << (shift - 1)
    if isinstance(value, np.ndarray):
        v = value.astype(np.int64)
        magnitude = (np.abs(v) + half) >> shift
        return np.where(v < 0, -magnitude, magnitude)
    magnitude = (abs(int(value)) + half) >> shift
    return -magnitude if value < 0 else magnitude


def multshiftround(num: IntLike, mul: int, shift: int) -> IntLike:
    """Return ``ROUND(num * mul / 2**shift)`` without division."""
    if isinstance(num, np.ndarray):
        return shiftround(num.astype(np.int64) * np.int64(mul), shift)
    return shiftround(int(num) * int(mul), shift)
