"""Generator parameters, their YAML file form and range validation."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .errors import TableInputError
from .fixed_point import HALF_LSB, MAX_FIXED_VALUE, MIN_FIXED_VALUE, UINT16_MAX
from .io import parse_resistance
from .ntc import KELVIN_OFFSET

__all__ = ["GeneratorConfig", "load_config", "validate_config"]

MIN_RESISTANCE_OHM = 1.0
MAX_RESISTANCE_OHM = 100.0e6
MIN_BETA_K = 100.0
MAX_BETA_K = 100000.0
MIN_ADC_COUNTS = 8
# Alumina, the usual resistor substrate, melts at 2054 C.
MAX_NOMINAL_TEMP_C = 2054.0

RESISTANCE_FIELDS = ("r_ntc_ohm", "r_pullup_ohm", "r_iso_ohm")


@dataclass(frozen=True)
class GeneratorConfig:
    min_temp_C: float = -30.0
    max_temp_C: float = 90.0
    r_ntc_ohm: float = 33.0e3
    t_nominal_C: float = 25.0
    beta_K: float = 3950.0
    r_pullup_ohm: float = 22.1e3
    r_iso_ohm: float = 1.3e3
    adc_counts: int = 4096
    max_error_C: float = 0.1
    calibration_csv: Optional[str] = None

    def updated(self, **overrides: Any) -> "GeneratorConfig":
        """Copy with the non-``None`` overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _coerce(data: Mapping[str, Any]) -> dict:
    known = {f.name for f in fields(GeneratorConfig)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown config key(s): {sorted(unknown)}")
    out = dict(data)
    for key in RESISTANCE_FIELDS:
        if key in out and isinstance(out[key], str):
            out[key] = parse_resistance(out[key])
    if "adc_counts" in out:
        out["adc_counts"] = int(out["adc_counts"])
    return out


def load_config(path: Path | str) -> GeneratorConfig:
    """Read a YAML mapping of :class:`GeneratorConfig` fields; absent keys keep defaults."""
    cfg_path = Path(path)
    if not cfg_path.exists():
        raise FileNotFoundError(f"Missing config file: {cfg_path}")
    with cfg_path.open("r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, Mapping):
        raise ValueError(f"{cfg_path} must contain a mapping of generator settings.")
    return GeneratorConfig(**_coerce(data))


def _check_temperature(name: str, value: float) -> None:
    if value != value:
        raise TableInputError(f"The {name} is not a number.")
    if value < -KELVIN_OFFSET:
        raise TableInputError(f"The {name} {value} C should not be below -273.15 C.")
    if value < MIN_FIXED_VALUE or value > MAX_FIXED_VALUE:
        raise TableInputError(
            f"The {name} {value} C must lie within [{MIN_FIXED_VALUE:.8f}, {MAX_FIXED_VALUE:.8f}] C, "
            "the range of 1/128 C values in an int16."
        )


def _check_resistance(name: str, value: float) -> None:
    if not (MIN_RESISTANCE_OHM <= value <= MAX_RESISTANCE_OHM):
        raise TableInputError(f"The {name} {value} Ohm must lie within [1 Ohm, 100 MOhm].")


def validate_config(cfg: GeneratorConfig) -> GeneratorConfig:
    """Raise :class:`TableInputError` for out-of-range settings; return ``cfg`` otherwise."""
    _check_temperature("lowest table temperature", cfg.min_temp_C)
    _check_temperature("highest table temperature", cfg.max_temp_C)
    if cfg.max_temp_C < cfg.min_temp_C:
        raise TableInputError("The highest table temperature must be greater than the lowest.")

    if cfg.calibration_csv is None:
        _check_resistance("NTC nominal resistance", cfg.r_ntc_ohm)
        if not (-KELVIN_OFFSET <= cfg.t_nominal_C < MAX_NOMINAL_TEMP_C):
            raise TableInputError(
                f"The NTC nominal temperature {cfg.t_nominal_C} C must lie within [-273.15, 2054) C."
            )
        if not (MIN_BETA_K <= cfg.beta_K <= MAX_BETA_K):
            raise TableInputError(f"The NTC beta {cfg.beta_K} K must lie within [100, 100000] K.")
    _check_resistance("pullup resistance", cfg.r_pullup_ohm)
    _check_resistance("isolation resistance", cfg.r_iso_ohm)

    if not (MIN_ADC_COUNTS <= cfg.adc_counts <= UINT16_MAX):
        raise TableInputError(f"The ADC number of counts {cfg.adc_counts} must lie within [8, 65535].")

    if not (cfg.max_error_C > HALF_LSB):
        raise TableInputError(
            f"The maximum interpolation error {cfg.max_error_C} C must exceed {HALF_LSB:.10f} C, "
            "half of one fixed-point least significant bit."
        )
    if cfg.max_error_C >= max(abs(cfg.min_temp_C), abs(cfg.max_temp_C)):
        raise TableInputError(
            "The maximum interpolation error should be smaller than the absolute value of the "
            "lowest or highest table temperature."
        )
    return cfg
