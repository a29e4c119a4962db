"""Assemble adaptive segments into a binary-searchable interpolation table."""

from __future__ import annotations

import logging
from bisect import bisect_right
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

import numpy as np
import pandas as pd

from .errors import TableInputError
from .fixed_point import FIXED_SCALE, HALF_LSB, MAX_FIXED_VALUE, MIN_FIXED_VALUE, UINT16_MAX
from .segments import Segment, SegmentStats, search_segment

__all__ = [
    "SEGMENT_DTYPE",
    "InterpTable",
    "build_table",
    "validate_reference",
]

log = logging.getLogger(__name__)

# Firmware layout: uint16 start, int16 offset, int32 multiplier, uint8 shift.
SEGMENT_DTYPE = np.dtype(
    [
        ("start_index", "<u2"),
        ("start_value", "<i2"),
        ("slope_multiplier", "<i4"),
        ("slope_shift", "u1"),
    ]
)


@dataclass(frozen=True)
class InterpTable:
    """Ordered, contiguous segments covering ``[start_index, end_index]``."""

    segments: Tuple[Segment, ...]
    stats: Tuple[SegmentStats, ...]
    start_index: int
    end_index: int
    max_error: float

    @property
    def n_segments(self) -> int:
        return len(self.segments)

    @property
    def max_error_realized(self) -> float:
        return max(s.max_error for s in self.stats)

    def segment_index(self, index: int) -> int:
        """Position of the segment covering ``index`` (clamped to the table)."""
        starts = [s.start_index for s in self.segments]
        return max(bisect_right(starts, index) - 1, 0)

    def lookup(self, index: int) -> int:
        """
        Fixed-point value the firmware returns for ``index``.

        Indices before the first segment return its start value; indices at or
        past ``end_index`` evaluate the last segment at ``end_index``.
        """
        first = self.segments[0]
        if index <= first.start_index:
            return first.start_value
        if index >= self.end_index:
            last = self.segments[-1]
            return int(last.predict(self.end_index - last.start_index))
        seg = self.segments[self.segment_index(index)]
        return int(seg.predict(index - seg.start_index))

    def evaluate(self, indices: Iterable[int]) -> np.ndarray:
        """Vectorised :meth:`lookup` over ``indices``."""
        idx = np.asarray(list(indices), dtype=np.int64)
        clamped = np.clip(idx, self.start_index, self.end_index)
        starts = np.array([s.start_index for s in self.segments], dtype=np.int64)
        which = np.searchsorted(starts, clamped, side="right") - 1
        out = np.empty(idx.shape, dtype=np.int64)
        for k, seg in enumerate(self.segments):
            mask = which == k
            if mask.any():
                out[mask] = seg.predict(clamped[mask] - seg.start_index)
        return out

    def to_frame(self) -> pd.DataFrame:
        """One row per segment with its fields, coverage and error statistics."""
        rows = []
        for k, (seg, st) in enumerate(zip(self.segments, self.stats)):
            rows.append(
                {
                    "segment": k,
                    "start_index": seg.start_index,
                    "end_index": seg.start_index + st.n_points - 1,
                    "start_value": seg.start_value,
                    "start_value_real": seg.start_value / FIXED_SCALE,
                    "slope_multiplier": seg.slope_multiplier,
                    "slope_shift": seg.slope_shift,
                    "slope_per_index": seg.slope_multiplier / float(1 << seg.slope_shift),
                    "n_points": st.n_points,
                    "mean_error": st.mean_error,
                    "max_error": st.max_error,
                }
            )
        return pd.DataFrame(rows)

    def to_records(self) -> np.ndarray:
        return np.array(
            [(s.start_index, s.start_value, s.slope_multiplier, s.slope_shift) for s in self.segments],
            dtype=SEGMENT_DTYPE,
        )

    def pack(self) -> bytes:
        """Little-endian packed segment records, 9 bytes each."""
        return self.to_records().tobytes()


def validate_reference(reference: np.ndarray, start_index: int, end_index: int, max_error: float) -> None:
    """Raise :class:`TableInputError` when a table cannot be built from the inputs."""
    n = reference.size
    if not (0 <= start_index <= end_index < n):
        raise TableInputError(
            f"Table range [{start_index}, {end_index}] must lie within [0, {n - 1}] with start <= end."
        )
    if end_index > UINT16_MAX:
        raise TableInputError(f"End index {end_index} does not fit a uint16 start field.")
    if not np.isfinite(max_error) or max_error <= HALF_LSB:
        raise TableInputError(
            f"Maximum error {max_error!r} must exceed {HALF_LSB:.10f}, half of one "
            "fixed-point least significant bit."
        )
    window = reference[start_index : end_index + 1]
    bad = ~np.isfinite(window)
    if bad.any():
        first_bad = start_index + int(np.argmax(bad))
        raise TableInputError(f"Reference value at index {first_bad} is not finite.")
    out_of_range = (window < MIN_FIXED_VALUE) | (window > MAX_FIXED_VALUE)
    if out_of_range.any():
        first_bad = start_index + int(np.argmax(out_of_range))
        raise TableInputError(
            f"Reference value {window[first_bad - start_index]:.8f} at index {first_bad} is outside "
            f"the fixed-point range [{MIN_FIXED_VALUE:.8f}, {MAX_FIXED_VALUE:.8f}]."
        )


def build_table(
    reference: Sequence[float],
    start_index: int,
    end_index: int,
    max_error: float,
) -> InterpTable:
    """
    Cover ``[start_index, end_index]`` of ``reference`` with as few segments as
    the adaptive search can find, each within ``max_error`` of the reference.
    """
    curve = np.asarray(reference, dtype=float)
    validate_reference(curve, start_index, end_index, max_error)

    segments: List[Segment] = []
    stats: List[SegmentStats] = []
    next_start = start_index
    while True:
        seg, st = search_segment(curve, next_start, end_index, max_error)
        segments.append(seg)
        stats.append(st)
        log.debug(
            "segment %3d: start %5d, %4d points, max error %.6f",
            len(segments) - 1,
            seg.start_index,
            st.n_points,
            st.max_error,
        )
        last_covered = seg.start_index + st.n_points - 1
        if last_covered == end_index:
            break
        next_start = last_covered + 1

    table = InterpTable(tuple(segments), tuple(stats), start_index, end_index, float(max_error))
    log.info(
        "Built %d segments over [%d, %d], worst error %.6f (bound %.6f)",
        table.n_segments,
        start_index,
        end_index,
        table.max_error_realized,
        max_error,
    )
    return table
