"""Truncated Gutenberg-Richter magnitude model.

Configuration, runtime structure and sampling kernels for event magnitudes.
"""

from .config import MagnitudeConfig
from .runtime import MagnitudeRuntime
from .kernel import sample_magnitudes, magnitude_cdf, mean_magnitude

__all__ = [
    'MagnitudeConfig',
    'MagnitudeRuntime',
    'sample_magnitudes',
    'magnitude_cdf',
    'mean_magnitude',
]
