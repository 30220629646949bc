"""ETAS catalog simulation as a branching process.

This module provides configuration, runtime structures and kernels for
generating synthetic ETAS catalogs.
"""

from .config import SimulationConfig
from .runtime import SimulationRuntime
from .kernel import (
    simulate_background,
    simulate_generation,
    simulate_catalog,
    simulate_catalog_with_diagnostics,
)

__all__ = [
    'SimulationConfig',
    'SimulationRuntime',
    'simulate_background',
    'simulate_generation',
    'simulate_catalog',
    'simulate_catalog_with_diagnostics',
]
