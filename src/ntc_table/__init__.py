"""Fixed-point piecewise-linear interpolation tables for NTC thermistors."""

from .calibration import CalibrationCurve
from .codegen import render_c_source, render_segment_report
from .config import GeneratorConfig, load_config, validate_config
from .errors import FitError, QuantizationError, TableInputError
from .fit import LineFit, RationalSlope, fit_line, quantize_slope
from .fixed_point import from_fixed, multshiftround, shiftround, to_fixed
from .io import load_calibration_csv, parse_resistance
from .ntc import BetaThermistor, Divider, NtcCircuit, TableBounds, table_bounds
from .segments import (
    Segment,
    SegmentCheck,
    SegmentStats,
    evaluate_segment,
    fit_segment,
    next_trial_length,
    search_segment,
)
from .table import InterpTable, build_table
from .viz import plot_table_error, table_error

__all__ = [
    "BetaThermistor",
    "CalibrationCurve",
    "Divider",
    "FitError",
    "GeneratorConfig",
    "InterpTable",
    "LineFit",
    "NtcCircuit",
    "QuantizationError",
    "RationalSlope",
    "Segment",
    "SegmentCheck",
    "SegmentStats",
    "TableBounds",
    "TableInputError",
    "build_table",
    "evaluate_segment",
    "fit_line",
    "fit_segment",
    "from_fixed",
    "load_calibration_csv",
    "load_config",
    "multshiftround",
    "next_trial_length",
    "parse_resistance",
    "plot_table_error",
    "quantize_slope",
    "render_c_source",
    "render_segment_report",
    "search_segment",
    "shiftround",
    "table_bounds",
    "table_error",
    "to_fixed",
    "validate_config",
]
