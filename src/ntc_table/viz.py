"""Matplotlib views of table accuracy."""

from __future__ import annotations

from typing import Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np

from .fixed_point import from_fixed
from .table import InterpTable

__all__ = ["table_error", "plot_table_error"]


def table_error(table: InterpTable, reference: Sequence[float]) -> np.ndarray:
    """Signed table-minus-reference error for every index the table covers."""
    curve = np.asarray(reference, dtype=float)
    idx = np.arange(table.start_index, table.end_index + 1)
    return from_fixed(table.evaluate(idx)) - curve[idx]


def plot_table_error(table: InterpTable, reference: Sequence[float], ax: Optional[plt.Axes] = None) -> plt.Axes:
    """
    Plot the per-index interpolation error with the error bound and segment starts.
    """
    if ax is None:
        _, ax = plt.subplots()
    idx = np.arange(table.start_index, table.end_index + 1)
    ax.plot(idx, table_error(table, reference), lw=0.8, label="table - reference")
    ax.axhline(table.max_error, color="tab:red", ls="--", lw=0.8, label="error bound")
    ax.axhline(-table.max_error, color="tab:red", ls="--", lw=0.8)
    for seg in table.segments:
        ax.axvline(seg.start_index, color="0.8", lw=0.5, zorder=0)
    ax.set_xlabel("ADC count")
    ax.set_ylabel("Error [°C]")
    ax.set_title(f"{table.n_segments} segments")
    ax.legend(loc="upper right")
    ax.figure.tight_layout()
    return ax
