"""Segment evaluation and the adaptive segment-length search."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from .fit import fit_line, quantize_slope
from .fixed_point import (
    FIXED_SCALE,
    INT16_MAX,
    INT16_MIN,
    from_fixed,
    multshiftround,
    round_half_away,
    to_fixed,
)

__all__ = [
    "ADDITIVE_STEPS",
    "Segment",
    "SegmentStats",
    "SegmentCheck",
    "evaluate_segment",
    "fit_segment",
    "next_trial_length",
    "search_segment",
]

log = logging.getLogger(__name__)

ADDITIVE_STEPS: Tuple[int, ...] = (500, 200, 100, 50, 20, 10, 5, 2, 1)

# (error ratio threshold, length multiplier), tried in order.
GROWTH_FACTORS: Tuple[Tuple[float, int], ...] = ((0.1, 5), (0.5, 2))


@dataclass(frozen=True)
class Segment:
    """
    One linear interpolation segment.

    ``start_value`` is the value at ``start_index`` in 1/128 units; the slope is
    ``slope_multiplier / 2**slope_shift`` in 1/128 units per index. A segment
    ends one index before the next segment starts.
    """

    start_index: int
    start_value: int
    slope_multiplier: int
    slope_shift: int

    def predict(self, offsets):
        """Fixed-point value at local ``offsets`` from ``start_index``."""
        if isinstance(offsets, np.ndarray):
            return self.start_value + multshiftround(offsets, self.slope_multiplier, self.slope_shift)
        return self.start_value + multshiftround(int(offsets), self.slope_multiplier, self.slope_shift)


@dataclass(frozen=True)
class SegmentStats:
    n_points: int
    mean_error: float
    max_error: float


@dataclass(frozen=True)
class SegmentCheck:
    keep: bool
    mean_error: float
    max_error: float


def evaluate_segment(segment: Segment, reference: Sequence[float], max_error: float) -> SegmentCheck:
    """
    Replay ``segment`` over its window with integer arithmetic and measure the error.

    ``reference`` holds the real-valued targets for local offsets ``0..n-1``.
    """
    ref = np.asarray(reference, dtype=float)
    offsets = np.arange(ref.size, dtype=np.int64)
    predicted = from_fixed(segment.predict(offsets))
    abs_err = np.abs(predicted - ref)
    worst = float(abs_err.max())
    return SegmentCheck(worst <= max_error, float(abs_err.mean()), worst)


def fit_segment(start_index: int, reference: Sequence[float]) -> Segment:
    """
    Least-squares fit and quantize a segment over ``reference`` (real units).

    The offset is saturated to int16; a fit whose line leaves the fixed-point
    range at ``i = 0`` then fails the error check instead of raising.
    """
    ref = np.asarray(reference, dtype=float)
    line = fit_line(FIXED_SCALE * ref)
    rational = quantize_slope(line.slope, ref.size)
    offset = min(max(round_half_away(line.offset), INT16_MIN), INT16_MAX)
    return Segment(
        start_index=int(start_index),
        start_value=offset,
        slope_multiplier=rational.multiplier,
        slope_shift=rational.shift,
    )


def next_trial_length(
    kept_length: int,
    error_ratio: float,
    last_increment: int,
    upper: int,
    remaining: int,
) -> Optional[int]:
    """
    Choose the next segment length to try, or ``None`` when the search is done.

    ``upper`` is the shortest length rejected so far (``remaining + 1`` when
    nothing was rejected). Multiplicative growth is used while the kept segment
    has plenty of error margin; otherwise the length grows by the largest
    additive step that does not exceed ``last_increment``.
    """
    for threshold, factor in GROWTH_FACTORS:
        if error_ratio < threshold:
            candidate = min(kept_length * factor, remaining)
            if kept_length < candidate < upper:
                return candidate
    for step in ADDITIVE_STEPS:
        candidate = kept_length + step
        if step <= last_increment and candidate < upper and candidate <= remaining:
            return candidate
    return None


def search_segment(
    reference: Sequence[float],
    start_index: int,
    end_index: int,
    max_error: float,
) -> Tuple[Segment, SegmentStats]:
    """
    Find the longest segment starting at ``start_index`` within ``max_error``.

    ``reference`` is the full curve indexed by domain index; the segment never
    extends past ``end_index``.
    """
    curve = np.asarray(reference, dtype=float)
    remaining = end_index - start_index + 1
    if remaining < 1:
        raise ValueError(f"Empty search range [{start_index}, {end_index}].")

    # Seed: single point, flat.
    first = float(curve[start_index])
    kept = Segment(start_index, to_fixed(first), 0, 0)
    seed_error = abs(from_fixed(kept.start_value) - first)
    kept_stats = SegmentStats(1, seed_error, seed_error)
    if remaining == 1:
        return kept, kept_stats

    def trial(length: int) -> Tuple[Segment, SegmentCheck]:
        window = curve[start_index : start_index + length]
        candidate = fit_segment(start_index, window)
        return candidate, evaluate_segment(candidate, window, max_error)

    # Probe: two points.
    candidate, check = trial(2)
    if not check.keep:
        log.debug("two-point probe at %d rejected (max error %.6f)", start_index, check.max_error)
        return kept, kept_stats
    kept, kept_length = candidate, 2
    kept_stats = SegmentStats(2, check.mean_error, check.max_error)
    last_increment = 1
    upper = remaining + 1

    while kept_length < remaining:
        length = next_trial_length(
            kept_length, kept_stats.max_error / max_error, last_increment, upper, remaining
        )
        if length is None:
            break
        candidate, check = trial(length)
        if check.keep:
            last_increment = length - kept_length
            kept, kept_length = candidate, length
            kept_stats = SegmentStats(length, check.mean_error, check.max_error)
        else:
            upper = length

    return kept, kept_stats
