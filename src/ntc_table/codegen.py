"""Render interpolation tables as C source and as a text report."""

from __future__ import annotations

from typing import Iterable, List

from .fixed_point import FIXED_SCALE
from .table import InterpTable

__all__ = ["render_c_source", "render_segment_report"]

SEGMENT_TYPEDEF = """\
/**
 * interp_segment_t defines a single linear interpolation
 *                  segment.
 *
 * start_count: the ADC count value corresponding to
 *              start_temp
 *
 * start_temp: the temperature corresponding to start_count
 *             in 1/128ths of a degree Celsius.
 *             This is signed Q9.7 format fixed point.
 *
 * slope_multiplier: these two define the slope of the
 * slope_shift:      line segment as the rational number
 *                   (slope_multiplier / 2^slope_shift).
 *                   Units are 1/128ths of a degree Celsius
 *                   per ADC count.
 *
 * Each segment ends one count before the start of the
 * next segment. last_segment_end_count gives the last
 * valid ADC count for the final segment.
 */
typedef struct
{
  uint16_t start_count;
  int16_t start_temp;
  int32_t slope_multiplier;
  uint8_t slope_shift;
} interp_segment_t;
"""

LOOKUP_BODY = """\
  /**
   * Check input ADCcount against table min & max ADC counts.
   */
  if (ADCcount <= interp_segments[0].start_count)
  {
    return interp_segments[0].start_temp;
  }

  uint16_t seg_index = 0u;

  if (ADCcount >= last_segment_end_count)
  {
    seg_index = num_segments - 1u;
    return interp_segments[seg_index].start_temp +
           multshiftround<int32_t>(last_segment_end_count - interp_segments[seg_index].start_count,
                                   interp_segments[seg_index].slope_multiplier,
                                   interp_segments[seg_index].slope_shift);
  }

  /**
   * Find the interpolation segment that contains ADCcount
   * via binary search.
   */
  uint16_t lower_bound = 0u;
  uint16_t upper_bound = num_segments - 1u;
  seg_index = (lower_bound + upper_bound) >> 1;

  while (true)
  {
    if (ADCcount < interp_segments[seg_index].start_count)
    {
      upper_bound = seg_index - 1u;
      seg_index = (lower_bound + upper_bound) >> 1;
    }
    else if (seg_index + 1u < num_segments &&
             ADCcount >= interp_segments[seg_index + 1u].start_count)
    {
      lower_bound = seg_index + 1u;
      seg_index = (lower_bound + upper_bound) >> 1;
    }
    else
    {
      return interp_segments[seg_index].start_temp +
             multshiftround<int32_t>(ADCcount - interp_segments[seg_index].start_count,
                                     interp_segments[seg_index].slope_multiplier,
                                     interp_segments[seg_index].slope_shift);
    }
  }
}
"""


def render_c_source(
    table: InterpTable,
    *,
    header_lines: Iterable[str] = (),
    function_name: str = "read_thermistor",
) -> str:
    """
    Return C source with the segment typedef and a lookup function.

    ``header_lines`` are added to the function's doc comment, typically the
    circuit parameters the table was generated for.
    """
    first = table.segments[0]
    out: List[str] = [SEGMENT_TYPEDEF]
    out.append("/**")
    out.append(" * Converts a raw ADC reading of the thermistor circuit")
    out.append(" * into a temperature in 1/128ths of a degree Celsius.")
    out.append(" *")
    notes = list(header_lines)
    if notes:
        out.append(" * This code was autogenerated with the following parameters:")
        out.extend(f" * {line}" if line else " *" for line in notes)
    out.append(f" * Max interpolation error: {table.max_error:.8f} deg. C")
    out.append(f" * ADCcount inputs >= {table.end_index} result in the minimum table temperature.")
    out.append(f" * ADCcount inputs <= {first.start_index} result in the maximum table temperature.")
    out.append(" */")
    out.append(f"int16_t {function_name}(const uint16_t ADCcount)")
    out.append("{")
    out.append(f"  static const uint16_t num_segments = {table.n_segments}u;")
    out.append("  static const interp_segment_t interp_segments[num_segments] = {")
    rows = [
        f"    {{{s.start_index:5d}, {s.start_value: 6d}, {s.slope_multiplier: 6d}, {s.slope_shift:2d}}}"
        for s in table.segments
    ]
    out.append(",\n".join(rows))
    out.append("  };")
    out.append(f"  static const uint16_t last_segment_end_count = {table.end_index}u;")
    out.append("")
    out.append(LOOKUP_BODY)
    return "\n".join(out)


def render_segment_report(table: InterpTable) -> str:
    """Per-segment parameters in real units followed by the fit statistics."""
    lines: List[str] = []
    for k, seg in enumerate(table.segments):
        slope = seg.slope_multiplier / float(1 << seg.slope_shift)
        lines.append(
            f"segment {k:3d}:  start ADC count = {seg.start_index:5d},  "
            f"offset = {seg.start_value: 7d} = {seg.start_value / FIXED_SCALE: 12.6f} C,  "
            f"slope = {seg.slope_multiplier: 6d} / 2^({seg.slope_shift: 3d}) = {slope: 12.6f} (1/128)C / ADC count"
        )
    lines.append("")
    for k, st in enumerate(table.stats):
        lines.append(
            f"segment {k:3d} stats:  # points = {st.n_points:4d},  "
            f"mean error = {st.mean_error: 9.6f} C,  max error = {st.max_error: 9.6f} C"
        )
    return "\n".join(lines) + "\n"
