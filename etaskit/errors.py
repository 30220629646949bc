"""Exceptions and warnings raised by the ETAS simulator and estimator.

Fatal conditions are exceptions that carry enough context (parameter,
iteration, offending values) to diagnose a bad configuration or bad data.
Numerical non-convergence of a bounded fixed-point loop is not fatal and is
reported as a warning.
"""

from __future__ import annotations

from typing import Optional, Tuple


class ETASError(Exception):
    """Base class for all etaskit errors."""


class ConfigurationError(ETASError, ValueError):
    """Parameters describe an explosive (supercritical) branching process.

    Attributes:
        expected_direct_offspring: E[G] of the rejected parametrization
    """

    def __init__(self, message: str, expected_direct_offspring: Optional[float] = None):
        super().__init__(message)
        self.expected_direct_offspring = expected_direct_offspring


class DataInconsistencyError(ETASError, ValueError):
    """Catalog is inconsistent with the model (cutoff, ordering, size)."""


class RootBracketingFailure(ETASError, RuntimeError):
    """A search interval does not bracket a root of a stationarity equation.

    Attributes:
        parameter: Name of the parameter being solved for
        bracket: The (low, high) interval searched
        iteration: Outer iteration (or other counter) at which the solve failed
        endpoint_values: Function values at the bracket endpoints
    """

    def __init__(
        self,
        parameter: str,
        bracket: Tuple[float, float],
        endpoint_values: Tuple[float, float],
        iteration: Optional[int] = None,
    ):
        self.parameter = parameter
        self.bracket = tuple(bracket)
        self.endpoint_values = tuple(endpoint_values)
        self.iteration = iteration
        where = f" at iteration {iteration}" if iteration is not None else ""
        super().__init__(
            f"Search range [{bracket[0]:.6g}, {bracket[1]:.6g}] for '{parameter}' "
            f"does not bracket a root{where}: f(low)={endpoint_values[0]:.6g}, "
            f"f(high)={endpoint_values[1]:.6g}. Widen or move the search range."
        )


class NonConvergenceWarning(RuntimeWarning):
    """A bounded fixed-point loop stopped at its iteration cap."""
