"""Numerical helpers shared by the estimator.

Provides significant-digit rounding for convergence tests and a bracketed
root finder that refuses to return a value when the bracket is invalid.
"""

from __future__ import annotations

import math
from typing import Callable, Optional, Tuple

import numpy as np
from scipy.optimize import brentq

from .errors import RootBracketingFailure


def round_sig(value: float, digits: int) -> float:
    """Round a value to a number of significant digits.

    Standard "round to N significant figures" semantics, so that
    ``round_sig(123.456, 4) == 123.5`` and ``round_sig(0.0004567, 2) == 0.00046``.
    Zero and non-finite values are returned unchanged.

    Args:
        value: Value to round
        digits: Number of significant digits (>= 1)

    Returns:
        Rounded value
    """
    if digits < 1:
        raise ValueError(f"digits must be >= 1, got {digits}")
    value = float(value)
    if value == 0.0 or not math.isfinite(value):
        return value
    exponent = math.floor(math.log10(abs(value)))
    return round(value, digits - 1 - exponent)


def same_sig(a: float, b: float, digits: int) -> bool:
    """Check whether two values agree when rounded to ``digits`` significant digits."""
    return round_sig(a, digits) == round_sig(b, digits)


def find_root(
    func: Callable[[float], float],
    bracket: Tuple[float, float],
    *,
    parameter: str,
    iteration: Optional[int] = None,
    xtol: float = 2e-12,
    maxiter: int = 200,
) -> float:
    """Find a root of a scalar function inside a bracketing interval.

    Uses Brent's method (``scipy.optimize.brentq``). The function must change
    sign over the interval; otherwise RootBracketingFailure is raised rather
    than returning an endpoint.

    Args:
        func: Continuous scalar function
        bracket: (low, high) search interval
        parameter: Name of the parameter being solved for (for error context)
        iteration: Optional iteration counter (for error context)
        xtol: Absolute tolerance passed to brentq
        maxiter: Maximum Brent iterations

    Returns:
        Root of ``func`` in ``[low, high]``

    Raises:
        RootBracketingFailure: If the interval does not bracket a root
    """
    low, high = float(bracket[0]), float(bracket[1])
    f_low = float(func(low))
    f_high = float(func(high))

    if not (np.isfinite(f_low) and np.isfinite(f_high)):
        raise RootBracketingFailure(parameter, (low, high), (f_low, f_high), iteration)
    if f_low == 0.0:
        return low
    if f_high == 0.0:
        return high
    if np.sign(f_low) == np.sign(f_high):
        raise RootBracketingFailure(parameter, (low, high), (f_low, f_high), iteration)

    return float(brentq(func, low, high, xtol=xtol, maxiter=maxiter))
