"""Maximum-likelihood estimation of ETAS parameters by iterative declustering.

This module provides configuration, runtime structures and kernels for
fitting the temporal ETAS model to an event catalog.
"""

from .config import EstimatorConfig
from .runtime import EstimatorRuntime, Declustering, OmoriFit, ConvergenceResult, FitResult
from .kernel import (
    decluster,
    alpha_score,
    p_score,
    update_alpha,
    update_productivity,
    update_omori,
    estimation_step,
    converge,
    narrow_ranges,
    fit_etas,
    log_likelihood,
)

__all__ = [
    'EstimatorConfig',
    'EstimatorRuntime',
    'Declustering',
    'OmoriFit',
    'ConvergenceResult',
    'FitResult',
    'decluster',
    'alpha_score',
    'p_score',
    'update_alpha',
    'update_productivity',
    'update_omori',
    'estimation_step',
    'converge',
    'narrow_ranges',
    'fit_etas',
    'log_likelihood',
]
