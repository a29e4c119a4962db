"""Exception types raised while building interpolation tables."""

from __future__ import annotations


class TableInputError(ValueError):
    """Input data or parameters that make a table impossible to build."""


class FitError(ArithmeticError):
    """A least-squares fit produced or received non-finite values."""


class QuantizationError(ArithmeticError):
    """No int32 base-2 rational approximates a slope closely enough."""

    def __init__(self, slope: float, n_points: int) -> None:
        super().__init__(
            f"Could not find an int32 base-2 rational approximation to slope {slope:g} "
            f"over {n_points} points; shorten the segment or relax the error bound."
        )
        self.slope = slope
        self.n_points = n_points
