"""Runtime structures for ETAS parameter estimation.

The estimator is a dense float64 numerical kernel rather than a JAX
transformation target, but its settings and intermediate results are
carried in Penzai structs like every other subsystem.
"""

from __future__ import annotations

from typing import Optional, Tuple, Dict, Any
import numpy as np
from penzai.core import struct

from ..etas.runtime import ETASParameters


@struct.pytree_dataclass
class EstimatorRuntime(struct.Struct):
    """Settings of the iterative maximum-likelihood estimator.

    Attributes:
        estimation_window: (start, end) in days, or None for the catalog window
        m0: Magnitude cutoff, or None for the catalog cutoff
        sig_digits: Significant digits of the outer convergence test
        extra_sig_digits: Additional digits required by the inner c/p loop
        p_range: Initial search interval for p
        alpha_range: Initial search interval for alpha
        narrowing_steps: Number of range-narrowing rounds
        max_inner_iterations: Cap of the inner c/p fixed-point loop
        max_outer_iterations: Optional cap of the outer loop (None: uncapped)
        p_floor: Lower bound kept by narrowed p ranges
        alpha_floor: Lower bound kept by narrowed alpha ranges
    """
    estimation_window: Optional[Tuple[float, float]]
    m0: Optional[float]
    sig_digits: int
    extra_sig_digits: int
    p_range: Tuple[float, float]
    alpha_range: Tuple[float, float]
    narrowing_steps: int
    max_inner_iterations: int
    max_outer_iterations: Optional[int]
    p_floor: float
    alpha_floor: float


@struct.pytree_dataclass
class Declustering(struct.Struct):
    """Result of one declustering (E-) step.

    Attributes:
        background_probability: P(event i is a background event)
        triggering_weight: l_j, expected number of events triggered by event j
        triggered_mass: L_hat, expected number of triggered events
        background_count: Expected number of background events
        inverse_distance_sum: Σ P(j→i) / (t_i - t_j + c)
        log_distance_sum: Σ P(j→i) log(t_i - t_j + c)
    """
    background_probability: np.ndarray
    triggering_weight: np.ndarray
    triggered_mass: float
    background_count: float
    inverse_distance_sum: float
    log_distance_sum: float


@struct.pytree_dataclass
class OmoriFit(struct.Struct):
    """Result of the inner c/p fixed-point loop."""
    c: float
    p: float
    iterations: int
    converged: bool


@struct.pytree_dataclass
class ConvergenceResult(struct.Struct):
    """Result of one outer convergence pass over fixed search ranges."""
    parameters: ETASParameters
    iterations: int
    converged: bool
    inner_iterations_capped: int
    history: Tuple[Dict[str, Any], ...]


@struct.pytree_dataclass
class FitResult(struct.Struct):
    """Final estimate of the ETAS parameters.

    Attributes:
        parameters: Estimated (mu, K, alpha, c, p)
        outer_iterations: Outer iterations used by each narrowing round
        inner_iterations_capped: Number of inner loops stopped by their cap
        alpha_range: Search range for alpha used in the last round
        p_range: Search range for p used in the last round
        history: Per-iteration parameter trail
    """
    parameters: ETASParameters
    outer_iterations: Tuple[int, ...]
    inner_iterations_capped: int
    alpha_range: Tuple[float, float]
    p_range: Tuple[float, float]
    history: Tuple[Dict[str, Any], ...]

    @property
    def total_outer_iterations(self) -> int:
        """Total number of E/M iterations over all rounds."""
        return int(sum(self.outer_iterations))
