"""Temporal ETAS model with unit-aware configuration.

This module provides configuration, runtime structures and kernels for the
Epidemic-Type Aftershock Sequence model of self-exciting event streams.
"""

from .config import ETASConfig, ETASConfigOutput
from .runtime import ETASRuntime, ETASParameters
from .kernel import (
    branching_integral,
    mean_direct_offspring,
    check_stability,
    expected_offspring,
    sample_offspring_counts,
    sample_omori_delays,
    conditional_intensity,
    intensity_at_events,
    omori_survival,
    stationary_rate,
)

__all__ = [
    'ETASConfig',
    'ETASConfigOutput',
    'ETASRuntime',
    'ETASParameters',
    'branching_integral',
    'mean_direct_offspring',
    'check_stability',
    'expected_offspring',
    'sample_offspring_counts',
    'sample_omori_delays',
    'conditional_intensity',
    'intensity_at_events',
    'omori_survival',
    'stationary_rate',
]
