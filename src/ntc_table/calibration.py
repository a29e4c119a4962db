"""Thermistors described by a measured temperature / resistance table."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

import numpy as np
import pandas as pd
from scipy.interpolate import CubicSpline
from scipy.optimize import brentq

from .errors import TableInputError
from .fixed_point import MAX_FIXED_VALUE, MIN_FIXED_VALUE
from .io import load_calibration_csv
from .ntc import KELVIN_OFFSET

__all__ = ["MIN_CALIBRATION_ROWS", "CalibrationCurve"]

MIN_CALIBRATION_ROWS = 4

ArrayLike = Union[float, np.ndarray]


@dataclass(frozen=True, eq=False)
class CalibrationCurve:
    """
    Natural cubic spline through (temperature, resistance) calibration points.

    Outside the calibrated range the curve is held flat at the end points, the
    same way the generated firmware table saturates.
    """

    temp_C: np.ndarray
    res_ohm: np.ndarray
    spline: CubicSpline = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        t = np.asarray(self.temp_C, dtype=float)
        r = np.asarray(self.res_ohm, dtype=float)
        if t.shape != r.shape or t.ndim != 1:
            raise TableInputError("Calibration temperatures and resistances must be 1-D and equally long.")
        if t.size < MIN_CALIBRATION_ROWS:
            raise TableInputError(
                f"At least {MIN_CALIBRATION_ROWS} calibration rows are required, got {t.size}."
            )
        if not (np.all(np.isfinite(t)) and np.all(np.isfinite(r))):
            raise TableInputError("Calibration data contains non-finite values.")
        if t.min() < -KELVIN_OFFSET:
            raise TableInputError("Calibration temperatures must not be below -273.15 C.")
        if t.min() < MIN_FIXED_VALUE or t.max() > MAX_FIXED_VALUE:
            raise TableInputError(
                f"Calibration temperatures must lie within [{MIN_FIXED_VALUE:.8f}, {MAX_FIXED_VALUE:.8f}] C."
            )
        if np.any(np.diff(t) <= 0.0):
            raise TableInputError("Calibration temperatures must be strictly increasing.")
        if np.any(np.diff(r) >= 0.0) or r.min() <= 0.0:
            raise TableInputError("Calibration resistances must be positive and strictly decreasing.")
        object.__setattr__(self, "temp_C", t)
        object.__setattr__(self, "res_ohm", r)
        object.__setattr__(self, "spline", CubicSpline(t, r, bc_type="natural"))

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> "CalibrationCurve":
        d = df.sort_values("temp_C")
        return cls(d["temp_C"].to_numpy(), d["res_ohm"].to_numpy())

    @classmethod
    def from_csv(cls, path: Union[Path, str]) -> "CalibrationCurve":
        return cls.from_frame(load_calibration_csv(path))

    def resistance_from_temperature(self, temp_C: ArrayLike) -> ArrayLike:
        t = np.clip(np.asarray(temp_C, dtype=float), self.temp_C[0], self.temp_C[-1])
        r = self.spline(t)
        return r if np.ndim(r) else float(r)

    def temperature_from_resistance(self, res_ohm: ArrayLike) -> ArrayLike:
        """Invert the spline inside the calibration interval bracketing each resistance."""
        r = np.asarray(res_ohm, dtype=float)
        flat = np.atleast_1d(r).ravel()
        out = np.full(flat.shape, np.nan)
        # Resistances fall with temperature; search on the ascending reversal.
        r_asc = self.res_ohm[::-1]
        for k, value in enumerate(flat):
            if not np.isfinite(value) or value <= 0.0:
                continue
            if value >= self.res_ohm[0]:
                out[k] = self.temp_C[0]
                continue
            if value <= self.res_ohm[-1]:
                out[k] = self.temp_C[-1]
                continue
            hi = self.res_ohm.size - np.searchsorted(r_asc, value, side="left")
            lo = hi - 1
            out[k] = brentq(
                lambda t: float(self.spline(t)) - value,
                self.temp_C[lo],
                self.temp_C[hi],
                xtol=1e-9,
            )
        return out.reshape(r.shape) if r.ndim else float(out[0])
