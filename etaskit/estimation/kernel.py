"""Iterative maximum-likelihood estimation of the temporal ETAS model.

Each outer iteration is an EM-style pass: ``decluster`` computes, for every
pair of events, the probability that the earlier one triggered the later
one, and the M-step updates mu, alpha, K and then (c, p) from those
probabilities by closed forms and bracketed root finding. The outer loop is
repeated with successively narrowed search ranges for alpha and p.

All arithmetic is float64 numpy: the O(n^2) sums are accumulated row by row
and the pairwise probability matrix is never stored.
"""

from __future__ import annotations

from typing import Optional, Tuple, List, Dict, Any
import dataclasses
import warnings

import numpy as np

from ..catalog import Catalog, validate_catalog
from ..errors import DataInconsistencyError, NonConvergenceWarning
from ..etas.runtime import ETASParameters
from ..numerics import find_root, same_sig
from .runtime import EstimatorRuntime, Declustering, OmoriFit, ConvergenceResult, FitResult


def decluster(
    parameters: ETASParameters,
    times: np.ndarray,
    magnitudes: np.ndarray,
    m0: float
) -> Declustering:
    """Compute branching probabilities for the current parameters (E-step).

    For every ordered pair ``j < i`` the triggering density is
        g(i, j) = K exp(alpha (m_j - m0)) (t_i - t_j + c)^(-p)
    and P(j -> i) = g(i, j) / (mu + Σ_j g(i, j)). The first event has no
    candidate trigger and is a background event with probability 1.

    Args:
        parameters: Current (mu, K, alpha, c, p)
        times: Sorted event times (days)
        magnitudes: Event magnitudes (>= m0)
        m0: Magnitude cutoff

    Returns:
        Declustering with per-event background probabilities and
        triggering weights and the sums needed by the M-step
    """
    mu, c, p = parameters.mu, parameters.c, parameters.p
    n = times.shape[0]
    productivity = parameters.K * np.exp(parameters.alpha * (magnitudes - m0))

    background = np.ones(n, dtype=np.float64)
    weight = np.zeros(n, dtype=np.float64)
    triggered_mass = 0.0
    inverse_distance_sum = 0.0
    log_distance_sum = 0.0

    for i in range(1, n):
        distance = times[i] - times[:i] + c
        g = productivity[:i] * distance ** (-p)
        probabilities = g / (mu + g.sum())
        total = probabilities.sum()

        background[i] = 1.0 - total
        weight[:i] += probabilities
        triggered_mass += total
        inverse_distance_sum += np.sum(probabilities / distance)
        log_distance_sum += np.sum(probabilities * np.log(distance))

    return Declustering(
        background_probability=background,
        triggering_weight=weight,
        triggered_mass=float(triggered_mass),
        background_count=float(background.sum()),
        inverse_distance_sum=float(inverse_distance_sum),
        log_distance_sum=float(log_distance_sum),
    )


def alpha_score(
    alpha: float,
    magnitude_excess: np.ndarray,
    zeta: float,
    eta: float,
    omori_mass: float
) -> float:
    """Stationarity equation of the likelihood in alpha."""
    return float(np.sum((eta * magnitude_excess - zeta) * omori_mass * np.exp(alpha * magnitude_excess)))


def p_score(p: float, alpha1: float, beta1: float) -> float:
    """Stationarity equation of the likelihood in p (with c eliminated)."""
    return float(np.log((p - 1.0) / p) + 1.0 / (p - 1.0) - np.log(alpha1) - beta1)


def update_alpha(
    parameters: ETASParameters,
    declustering: Declustering,
    magnitude_excess: np.ndarray,
    alpha_range: Tuple[float, float],
    iteration: Optional[int] = None
) -> float:
    """Solve the alpha equation over the current search range.

    Raises:
        DataInconsistencyError: If no triggering event lies above the cutoff
        RootBracketingFailure: If the range does not bracket a root
    """
    weighted_excess = float(np.sum(magnitude_excess * declustering.triggering_weight))
    if not (weighted_excess > 0 and declustering.triggered_mass > 0):
        raise DataInconsistencyError(
            "alpha is not identifiable: the expected triggering events all have "
            f"magnitude m0 (weighted excess {weighted_excess:.6g}, "
            f"triggered mass {declustering.triggered_mass:.6g})"
        )
    zeta = 1.0 / declustering.triggered_mass
    eta = 1.0 / weighted_excess
    omori_mass = parameters.c ** (1.0 - parameters.p) / (parameters.p - 1.0)

    return find_root(
        lambda a: alpha_score(a, magnitude_excess, zeta, eta, omori_mass),
        alpha_range,
        parameter="alpha",
        iteration=iteration,
    )


def update_productivity(
    alpha: float,
    c: float,
    p: float,
    declustering: Declustering,
    magnitude_excess: np.ndarray
) -> float:
    """Closed-form K given alpha and the (not yet updated) c and p."""
    omori_mass = c ** (1.0 - p) / (p - 1.0)
    return declustering.triggered_mass / (omori_mass * float(np.sum(np.exp(alpha * magnitude_excess))))


def update_omori(
    parameters: ETASParameters,
    declustering: Declustering,
    p_range: Tuple[float, float],
    sig_digits: int,
    max_iterations: int = 200,
    iteration: Optional[int] = None
) -> OmoriFit:
    """Alternate the p root and the closed-form c until both settle.

    With Alpha1 = Σ P/(dt + c) / L_hat and Beta1 = Σ P log(dt + c) / L_hat,
    p solves ``log((p-1)/p) + 1/(p-1) = log(Alpha1) + Beta1`` and
    ``c = (p-1) / (p Alpha1)``.

    Args:
        parameters: Parameters the declustering was computed with
        declustering: Result of the E-step
        p_range: Search range for p
        sig_digits: Significant digits at which c and p - 1 must agree
        max_iterations: Iteration cap; a NonConvergenceWarning is emitted
            and the last values kept when it is reached
        iteration: Outer iteration (for error context)

    Returns:
        OmoriFit with the new c and p
    """
    alpha1 = declustering.inverse_distance_sum / declustering.triggered_mass
    beta1 = declustering.log_distance_sum / declustering.triggered_mass

    c, p = parameters.c, parameters.p
    for count in range(1, max_iterations + 1):
        last_c, last_p = c, p
        p = find_root(
            lambda x: p_score(x, alpha1, beta1),
            p_range,
            parameter="p",
            iteration=iteration,
        )
        c = (p - 1.0) / (p * alpha1)
        if same_sig(last_p - 1.0, p - 1.0, sig_digits) and same_sig(last_c, c, sig_digits):
            return OmoriFit(c=c, p=p, iterations=count, converged=True)

    warnings.warn(
        f"c/p iteration did not settle at {sig_digits} significant digits within "
        f"{max_iterations} iterations (outer iteration {iteration}); "
        f"keeping c={c:.6g}, p={p:.6g}",
        NonConvergenceWarning,
        stacklevel=2,
    )
    return OmoriFit(c=c, p=p, iterations=max_iterations, converged=False)


def _parameters_settled(last: ETASParameters, current: ETASParameters, digits: int) -> bool:
    return (
        same_sig(last.mu, current.mu, digits)
        and same_sig(last.c, current.c, digits)
        and same_sig(last.p - 1.0, current.p - 1.0, digits)
        and same_sig(last.K, current.K, digits)
        and same_sig(last.alpha, current.alpha, digits)
    )


def estimation_step(
    parameters: ETASParameters,
    times: np.ndarray,
    magnitudes: np.ndarray,
    m0: float,
    window_length: float,
    runtime: EstimatorRuntime,
    alpha_range: Tuple[float, float],
    p_range: Tuple[float, float],
    iteration: Optional[int] = None
) -> Tuple[ETASParameters, Declustering, OmoriFit]:
    """One E-step followed by the M-step updates of mu, alpha, K, c and p.

    Returns:
        Tuple of (new parameters, declustering, inner c/p fit)
    """
    magnitude_excess = magnitudes - m0
    declustering = decluster(parameters, times, magnitudes, m0)

    mu = declustering.background_count / window_length
    alpha = update_alpha(parameters, declustering, magnitude_excess, alpha_range, iteration)
    K = update_productivity(alpha, parameters.c, parameters.p, declustering, magnitude_excess)
    omori = update_omori(
        parameters,
        declustering,
        p_range,
        runtime.sig_digits + runtime.extra_sig_digits,
        runtime.max_inner_iterations,
        iteration,
    )

    updated = dataclasses.replace(
        parameters, mu=float(mu), K=float(K), alpha=float(alpha), c=float(omori.c), p=float(omori.p)
    )
    return updated, declustering, omori


def converge(
    parameters: ETASParameters,
    times: np.ndarray,
    magnitudes: np.ndarray,
    m0: float,
    window_length: float,
    runtime: EstimatorRuntime,
    alpha_range: Tuple[float, float],
    p_range: Tuple[float, float],
    round_index: int = 0
) -> ConvergenceResult:
    """Iterate E/M steps over fixed search ranges until the parameters settle.

    Stops when mu, K, alpha, c and p - 1 all agree with the previous
    iteration at ``runtime.sig_digits`` significant digits, or when the
    optional ``runtime.max_outer_iterations`` cap is reached (with a
    NonConvergenceWarning).

    Returns:
        ConvergenceResult with the final parameters and the iteration trail
    """
    history: List[Dict[str, Any]] = []
    capped = 0
    iteration = 0

    while True:
        iteration += 1
        last = parameters
        parameters, declustering, omori = estimation_step(
            parameters, times, magnitudes, m0, window_length, runtime,
            alpha_range, p_range, iteration,
        )
        if not omori.converged:
            capped += 1

        entry: Dict[str, Any] = {'round': round_index, 'iteration': iteration}
        entry.update(parameters.as_dict())
        entry['background_count'] = declustering.background_count
        entry['triggered_mass'] = declustering.triggered_mass
        entry['inner_iterations'] = omori.iterations
        history.append(entry)

        if _parameters_settled(last, parameters, runtime.sig_digits):
            converged = True
            break
        if runtime.max_outer_iterations is not None and iteration >= runtime.max_outer_iterations:
            warnings.warn(
                f"Parameters did not settle at {runtime.sig_digits} significant digits "
                f"within {runtime.max_outer_iterations} outer iterations "
                f"(narrowing round {round_index})",
                NonConvergenceWarning,
                stacklevel=2,
            )
            converged = False
            break

    return ConvergenceResult(
        parameters=parameters,
        iterations=iteration,
        converged=converged,
        inner_iterations_capped=capped,
        history=tuple(history),
    )


def _narrowed(name: str, estimate: float, bracket: Tuple[float, float], floor: float) -> Tuple[float, float]:
    quarter = (bracket[1] - bracket[0]) / 4.0
    low, high = max(floor, estimate - quarter), estimate + quarter
    if not low < high:
        raise DataInconsistencyError(
            f"Cannot narrow the {name} range: the estimate {estimate:.6g} lies more than "
            f"a quarter range ({quarter:.6g}) below the floor {floor:.6g}"
        )
    return low, high


def narrow_ranges(
    parameters: ETASParameters,
    alpha_range: Tuple[float, float],
    p_range: Tuple[float, float],
    alpha_floor: float = 0.01,
    p_floor: float = 1.0 + 1e-12
) -> Tuple[Tuple[float, float], Tuple[float, float]]:
    """Halve both search ranges, recentred on the current estimates.

    The lower bounds never drop below ``alpha_floor`` and ``p_floor``.

    Returns:
        (alpha_range, p_range)

    Raises:
        DataInconsistencyError: If an estimate is so far below its floor that
            the narrowed range would be empty
    """
    return (
        _narrowed("alpha", parameters.alpha, alpha_range, alpha_floor),
        _narrowed("p", parameters.p, p_range, p_floor),
    )


def _estimation_inputs(
    runtime: EstimatorRuntime,
    catalog: Catalog
) -> Tuple[np.ndarray, np.ndarray, float, float]:
    m0 = catalog.m0 if runtime.m0 is None else float(runtime.m0)
    window = catalog.time_window if runtime.estimation_window is None else runtime.estimation_window
    times, magnitudes = validate_catalog(catalog.times, catalog.magnitudes, m0, min_events=2)

    window_length = float(window[1] - window[0])
    if not window_length > 0:
        raise ValueError(f"Estimation window must have positive length, got {tuple(window)}")
    return times, magnitudes, m0, window_length


def fit_etas(
    runtime: EstimatorRuntime,
    catalog: Catalog,
    start: ETASParameters
) -> FitResult:
    """Estimate (mu, K, alpha, c, p) of a catalog by iterative declustering.

    Runs the outer convergence loop ``runtime.narrowing_steps + 1`` times;
    between passes the alpha and p search ranges are narrowed around the
    current estimate.

    Args:
        runtime: Estimator settings
        catalog: Time-ordered catalog
        start: Starting parameters (mu and K must be positive)

    Returns:
        FitResult with the estimate and convergence information

    Raises:
        DataInconsistencyError: If magnitudes fall below the cutoff, times
            are unsorted, or fewer than two events are given
        RootBracketingFailure: If a search range does not bracket a root
        ValueError: If the starting values or the window are invalid

    Example:
        >>> runtime = EstimatorConfig().to_runtime()
        >>> result = fit_etas(runtime, catalog, ETASParameters(
        ...     mu=0.3, K=0.02, alpha=1.5, c=0.04, p=1.4))
        >>> result.parameters.as_dict()
    """
    times, magnitudes, m0, window_length = _estimation_inputs(runtime, catalog)

    if not (start.mu > 0 and start.K > 0 and start.c > 0 and start.p > 1):
        raise ValueError(
            f"Starting values need mu > 0, K > 0, c > 0 and p > 1, got {start.as_dict()}"
        )

    parameters = ETASParameters(
        mu=float(start.mu), K=float(start.K), alpha=float(start.alpha),
        c=float(start.c), p=float(start.p),
    )
    alpha_range = tuple(runtime.alpha_range)
    p_range = tuple(runtime.p_range)

    outer_iterations = []
    history: List[Dict[str, Any]] = []
    capped = 0

    for round_index in range(runtime.narrowing_steps + 1):
        result = converge(
            parameters, times, magnitudes, m0, window_length, runtime,
            alpha_range, p_range, round_index,
        )
        parameters = result.parameters
        outer_iterations.append(result.iterations)
        history.extend(result.history)
        capped += result.inner_iterations_capped

        if round_index < runtime.narrowing_steps:
            alpha_range, p_range = narrow_ranges(
                parameters, alpha_range, p_range, runtime.alpha_floor, runtime.p_floor
            )

    return FitResult(
        parameters=parameters,
        outer_iterations=tuple(outer_iterations),
        inner_iterations_capped=capped,
        alpha_range=alpha_range,
        p_range=p_range,
        history=tuple(history),
    )


def log_likelihood(
    parameters: ETASParameters,
    catalog: Catalog,
    window: Optional[Tuple[float, float]] = None
) -> float:
    """Temporal ETAS log-likelihood of a catalog.

        log L = Σ_i log λ(t_i) - ∫ λ(t) dt

    with the integral taken over the window and the triggered part
    including only offspring inside the window.

    Args:
        parameters: ETAS parameters
        catalog: Time-ordered catalog
        window: Observation window; defaults to the catalog window

    Returns:
        Log-likelihood value
    """
    start, end = catalog.time_window if window is None else window
    times, magnitudes = catalog.times, catalog.magnitudes
    mu, K, alpha, c, p = parameters.mu, parameters.K, parameters.alpha, parameters.c, parameters.p
    productivity = K * np.exp(alpha * (magnitudes - catalog.m0))

    log_sum = 0.0
    for i in range(times.shape[0]):
        g = productivity[:i] * (times[i] - times[:i] + c) ** (-p)
        log_sum += np.log(mu + g.sum())

    elapsed = np.maximum(end - times, 0.0)
    omori_integral = (c ** (1.0 - p) - (elapsed + c) ** (1.0 - p)) / (p - 1.0)
    compensator = mu * (end - start) + float(np.sum(productivity * omori_integral))
    return float(log_sum - compensator)
