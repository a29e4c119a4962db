"""Input helpers for resistance values and thermistor calibration tables."""

from __future__ import annotations

import math
from pathlib import Path
from typing import Mapping

import pandas as pd

__all__ = [
    "RESISTANCE_SUFFIXES",
    "load_calibration_csv",
    "parse_resistance",
]

RESISTANCE_SUFFIXES: Mapping[str, float] = {"k": 1.0e3, "M": 1.0e6}


def parse_resistance(text: str) -> float:
    """
    Parse resistances such as ``33.2k``, ``10M`` or ``100.2`` into Ohms.

    Only the ``k`` and ``M`` suffixes are recognised. Zero and negative values
    parse; range checks belong to the caller.
    """
    s = str(text).strip()
    if not s:
        raise ValueError("Empty resistance value.")
    scale = 1.0
    if len(s) > 1 and s[-1] in RESISTANCE_SUFFIXES:
        scale = RESISTANCE_SUFFIXES[s[-1]]
        s = s[:-1]
    try:
        value = float(s)
    except ValueError:
        raise ValueError(f"Could not parse resistance {text!r}.") from None
    if math.isnan(value):
        raise ValueError(f"Could not parse resistance {text!r}.")
    return value * scale


def _is_number(text: str) -> bool:
    try:
        float(text)
    except (TypeError, ValueError):
        return False
    return True


def load_calibration_csv(path: Path | str) -> pd.DataFrame:
    """
    Load a (temperature °C, resistance Ω) calibration table.

    Columns may be separated by commas or whitespace; an optional header row and
    a UTF-8 byte order mark are skipped. Returns a DataFrame with ``temp_C`` and
    ``res_ohm`` columns in file order.
    """
    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(csv_path)

    raw = pd.read_csv(
        csv_path,
        sep=r"[,\s]+",
        engine="python",
        header=None,
        names=list(range(4)),
        dtype=str,
        encoding="utf-8-sig",
        skip_blank_lines=True,
    )
    # Indented rows start with an empty field.
    rows = [[v for v in row if isinstance(v, str) and v] for row in raw.itertuples(index=False, name=None)]
    rows = [row for row in rows if row]
    if not rows or max(len(row) for row in rows) < 2:
        raise ValueError(f"{csv_path} needs temperature and resistance columns.")
    if not _is_number(rows[0][0]):
        rows = rows[1:]

    temps = []
    resistances = []
    for line_no, row in enumerate(rows, start=1):
        if len(row) < 2:
            raise ValueError(f"Missing the resistance on data row {line_no} of {csv_path}.")
        temp_text, res_text = row[0], row[1]
        if not _is_number(temp_text):
            raise ValueError(f"Could not parse the temperature {temp_text!r} on data row {line_no} of {csv_path}.")
        try:
            res = parse_resistance(res_text)
        except ValueError:
            raise ValueError(
                f"Could not parse the resistance {res_text!r} on data row {line_no} of {csv_path}."
            ) from None
        temps.append(float(temp_text))
        resistances.append(res)

    return pd.DataFrame({"temp_C": temps, "res_ohm": resistances})
