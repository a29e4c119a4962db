"""NTC thermistor and ADC divider models that produce the reference curve."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, Union

import numpy as np

from .errors import TableInputError
from .fixed_point import FIXED_SCALE, MAX_FIXED_VALUE, MIN_FIXED_VALUE

__all__ = [
    "KELVIN_OFFSET",
    "BetaThermistor",
    "Divider",
    "NtcCircuit",
    "TableBounds",
    "Thermistor",
    "table_bounds",
]

log = logging.getLogger(__name__)

KELVIN_OFFSET = 273.15

ArrayLike = Union[float, np.ndarray]


class Thermistor(Protocol):
    def resistance_from_temperature(self, temp_C: ArrayLike) -> ArrayLike: ...

    def temperature_from_resistance(self, res_ohm: ArrayLike) -> ArrayLike: ...


@dataclass(frozen=True)
class BetaThermistor:
    """NTC described by its nominal resistance at ``t_nominal_C`` and β."""

    r_nominal_ohm: float
    t_nominal_C: float
    beta_K: float

    def resistance_from_temperature(self, temp_C: ArrayLike) -> ArrayLike:
        t = np.asarray(temp_C, dtype=float)
        r = self.r_nominal_ohm * np.exp(
            self.beta_K * (1.0 / (t + KELVIN_OFFSET) - 1.0 / (self.t_nominal_C + KELVIN_OFFSET))
        )
        return r if r.ndim else float(r)

    def temperature_from_resistance(self, res_ohm: ArrayLike) -> ArrayLike:
        """Inverse β equation; NaN for non-positive resistances."""
        r = np.asarray(res_ohm, dtype=float)
        with np.errstate(invalid="ignore", divide="ignore"):
            inv_t = np.log(r / self.r_nominal_ohm) / self.beta_K + 1.0 / (self.t_nominal_C + KELVIN_OFFSET)
            t = np.where(r > 0.0, 1.0 / inv_t - KELVIN_OFFSET, np.nan)
        return t if t.ndim else float(t)


@dataclass(frozen=True)
class Divider:
    """
    ADC reading of a pullup / NTC / isolation-resistor divider.

    The pullup connects the NTC to the positive supply and the isolation
    resistor connects the NTC to ground. Codes span ``0..adc_counts-1``.
    """

    r_pullup_ohm: float
    r_iso_ohm: float
    adc_counts: int

    @property
    def full_scale(self) -> float:
        return float(self.adc_counts - 1)

    def ratio_from_adc(self, code: ArrayLike) -> np.ndarray:
        # The end codes cover half a count each; use their centres.
        c = np.asarray(code, dtype=float)
        ratio = c / self.full_scale
        ratio = np.where(c <= 0, 0.5 / self.full_scale, ratio)
        ratio = np.where(c >= self.full_scale, (self.adc_counts - 1.5) / self.full_scale, ratio)
        return ratio

    def resistance_from_adc(self, code: ArrayLike) -> ArrayLike:
        ratio = self.ratio_from_adc(code)
        r = (self.r_pullup_ohm * ratio - self.r_iso_ohm * (1.0 - ratio)) / (1.0 - ratio)
        return r if r.ndim else float(r)

    def adc_from_resistance(self, res_ohm: ArrayLike) -> ArrayLike:
        r = np.asarray(res_ohm, dtype=float)
        ratio = (r + self.r_iso_ohm) / (r + self.r_iso_ohm + self.r_pullup_ohm)
        code = np.floor(ratio * self.full_scale + 0.5).astype(np.int64)
        return code if code.ndim else int(code)


@dataclass(frozen=True)
class NtcCircuit:
    thermistor: Thermistor
    divider: Divider

    @property
    def adc_counts(self) -> int:
        return self.divider.adc_counts

    def temperature_from_adc(self, code: ArrayLike) -> ArrayLike:
        """Temperature (°C) for ADC codes; NaN where the divider is infeasible."""
        return self.thermistor.temperature_from_resistance(self.divider.resistance_from_adc(code))

    def adc_from_temperature(self, temp_C: ArrayLike) -> ArrayLike:
        return self.divider.adc_from_resistance(self.thermistor.resistance_from_temperature(temp_C))

    def reference_curve(self) -> np.ndarray:
        """Temperature for every ADC code, indexed by code."""
        codes = np.arange(self.adc_counts)
        return np.asarray(self.temperature_from_adc(codes), dtype=float)


@dataclass(frozen=True)
class TableBounds:
    start_index: int
    end_index: int
    realized_min_C: float
    realized_max_C: float


def table_bounds(circuit: NtcCircuit, min_temp_C: float, max_temp_C: float) -> TableBounds:
    """
    Locate the ADC codes that bracket ``[min_temp_C, max_temp_C]``.

    The NTC temperature falls as the code rises, so the table starts at the code
    of the highest temperature and ends at the code of the lowest. Each boundary
    is moved by one code when needed so that the table covers the request,
    unless the ADC range is exhausted, in which case a warning is logged.
    """
    if max_temp_C < min_temp_C:
        raise TableInputError("The highest table temperature must not be below the lowest.")
    last_code = circuit.adc_counts - 1

    start = int(np.clip(circuit.adc_from_temperature(max_temp_C), 0, last_code))
    real_max = circuit.temperature_from_adc(start)
    if np.isfinite(real_max) and real_max < max_temp_C and start > 0:
        start -= 1
        real_max = circuit.temperature_from_adc(start)
    if not np.isfinite(real_max):
        raise TableInputError(
            "The highest table temperature and the circuit parameters result in an "
            "NTC resistance that is <= 0 Ohm."
        )
    if real_max > MAX_FIXED_VALUE:
        raise TableInputError(
            f"The ADC code nearest the highest table temperature gives {real_max:.8f} C, "
            f"above {MAX_FIXED_VALUE:.8f} C, the highest 1/128 C value in an int16."
        )

    end = int(np.clip(circuit.adc_from_temperature(min_temp_C), 0, last_code))
    real_min = circuit.temperature_from_adc(end)
    if end < last_code and real_min > min_temp_C:
        end += 1
        real_min = circuit.temperature_from_adc(end)
    if not np.isfinite(real_min) or real_min < MIN_FIXED_VALUE:
        raise TableInputError(
            f"The ADC code nearest the lowest table temperature gives {real_min:.8f} C, "
            f"below {MIN_FIXED_VALUE:.8f} C, the lowest 1/128 C value in an int16."
        )
    if end < start:
        raise TableInputError(
            f"Temperature range [{min_temp_C}, {max_temp_C}] C maps to an empty ADC range."
        )

    if real_min - min_temp_C > 1.0 / FIXED_SCALE:
        log.warning(
            "Table minimum temperature is %.10f C, above the requested %.10f C, because the "
            "divider output has reached the limit of the ADC.",
            real_min,
            min_temp_C,
        )
    if max_temp_C - real_max > 1.0 / FIXED_SCALE:
        log.warning(
            "Table maximum temperature is %.10f C, below the requested %.10f C, because the "
            "divider output has reached the limit of the ADC.",
            real_max,
            max_temp_C,
        )
    return TableBounds(start, end, float(real_min), float(real_max))
