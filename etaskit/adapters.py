"""High-level adapter classes for simulation and estimation workflows.

This module provides adapter classes that wrap the low-level runtime
structures and kernels with stateful, user-friendly APIs. Adapters hold the
validated configuration, the runtime structure built from it and, for the
simulator, the current PRNG key.
"""

from __future__ import annotations
from typing import Union, Tuple, Optional, Dict, Any

import jax

from .catalog import Catalog
from .etas.config import ETASConfig
from .etas.runtime import ETASParameters
from .etas.kernel import mean_direct_offspring, check_stability
from .magnitude.config import MagnitudeConfig
from .simulation.config import SimulationConfig
from .simulation.kernel import simulate_catalog, simulate_catalog_with_diagnostics
from .estimation.config import EstimatorConfig
from .estimation.kernel import fit_etas
from .estimation.runtime import FitResult


__all__ = [
    'ETASSimulatorAdapter',
    'ETASEstimatorAdapter',
]


class ETASSimulatorAdapter:
    """High-level adapter for simulating ETAS catalogs.

    Each call to ``simulate()`` consumes a fresh subkey, so successive
    catalogs are independent; ``reset(seed)`` restores a reproducible
    sequence.

    For JAX power users, direct access to .runtime and .key is provided.

    Example:
        >>> config = SimulationConfig(
        ...     model=ETASConfig(mu="0.33 / day", K=0.0225, alpha=1.58,
        ...                      c=0.0377, p=1.385,
        ...                      magnitude=MagnitudeConfig(m0=3, m_min=3, m_max=8)),
        ...     background_window=(0, 1000),
        ... )
        >>> adapter = ETASSimulatorAdapter(config, seed=42)
        >>> catalog = adapter.simulate()

        # JAX power users can access runtime directly:
        >>> catalog = simulate_catalog(adapter.runtime, jax.random.PRNGKey(0))

    Args:
        config: SimulationConfig instance
        seed: Random seed (defaults to config.seed, then 0)

    Attributes:
        config: The SimulationConfig used to build the runtime
        runtime: SimulationRuntime structure
        key: Current PRNG key
    """

    def __init__(
        self,
        config: SimulationConfig,
        *,
        seed: Optional[int] = None
    ):
        """Initialize simulator adapter.

        Raises:
            ConfigurationError: If the model is explosive (E[G] > 1)
        """
        self.config = config
        self.runtime = config.to_runtime()

        if seed is None:
            seed = config.seed if config.seed is not None else 0
        self.seed = seed
        self.key = jax.random.PRNGKey(seed)
        self.catalogs_simulated = 0

        check_stability(self.runtime.model)

    def simulate(self) -> Catalog:
        """Simulate one catalog, advancing the PRNG key.

        Returns:
            Catalog sorted by time
        """
        self.key, subkey = jax.random.split(self.key)
        catalog = simulate_catalog(self.runtime, subkey)
        self.catalogs_simulated += 1
        return catalog

    def simulate_with_diagnostics(self) -> Tuple[Catalog, Dict[str, Any]]:
        """Simulate one catalog and return generation diagnostics.

        Returns:
            Tuple of (catalog, diagnostics_dict)
        """
        self.key, subkey = jax.random.split(self.key)
        catalog, diagnostics = simulate_catalog_with_diagnostics(self.runtime, subkey)
        self.catalogs_simulated += 1
        return catalog, diagnostics

    def get_expected_direct_offspring(self) -> float:
        """Get E[G], the expected number of direct offspring of an event.

        Returns:
            E[G]. < 1 for a subcritical process
        """
        return mean_direct_offspring(self.runtime.model)

    def reset(self, seed: Optional[int] = None):
        """Reset the PRNG key.

        Args:
            seed: New random seed (optional, reuses the current seed if None)
        """
        if seed is not None:
            self.seed = seed
        self.key = jax.random.PRNGKey(self.seed)
        self.catalogs_simulated = 0

    def get_state(self) -> dict:
        """Get current state as dictionary of Python types.

        Returns:
            Dictionary with:
            - seed: Seed of the current key sequence
            - catalogs_simulated: Catalogs drawn since the last reset
            - expected_direct_offspring: E[G] of the model
        """
        return {
            'seed': int(self.seed),
            'catalogs_simulated': int(self.catalogs_simulated),
            'expected_direct_offspring': float(self.get_expected_direct_offspring()),
        }


class ETASEstimatorAdapter:
    """High-level adapter for fitting ETAS parameters to a catalog.

    Example:
        >>> adapter = ETASEstimatorAdapter(EstimatorConfig(sig_digits=4))
        >>> result = adapter.fit(catalog, start=model_config)
        >>> adapter.result.parameters.as_dict()
        >>> refit_model = adapter.fitted_config(model_config.magnitude)

    Args:
        config: EstimatorConfig instance (defaults to EstimatorConfig())

    Attributes:
        config: The EstimatorConfig used to build the runtime
        runtime: EstimatorRuntime structure
        result: FitResult of the last fit (None before fitting)
    """

    def __init__(self, config: Optional[EstimatorConfig] = None):
        if config is None:
            config = EstimatorConfig()
        self.config = config
        self.runtime = config.to_runtime()
        self.result: Optional[FitResult] = None

    def fit(
        self,
        catalog: Catalog,
        start: Union[ETASConfig, ETASParameters]
    ) -> FitResult:
        """Fit the ETAS parameters of a catalog.

        Args:
            catalog: Time-ordered catalog
            start: Starting values, as an ETASConfig or ETASParameters

        Returns:
            FitResult (also stored as ``self.result``)

        Raises:
            DataInconsistencyError: If the catalog violates the model
            RootBracketingFailure: If a search range does not bracket a root
        """
        if isinstance(start, ETASConfig):
            start = start.to_parameters()
        self.result = fit_etas(self.runtime, catalog, start)
        return self.result

    def fitted_config(self, magnitude: MagnitudeConfig) -> ETASConfig:
        """Build an ETASConfig from the last estimate.

        Args:
            magnitude: Magnitude model to attach

        Returns:
            ETASConfig ready for simulation

        Raises:
            RuntimeError: If no fit has been run yet
        """
        if self.result is None:
            raise RuntimeError("No estimate available; call fit() first")
        return ETASConfig.from_parameters(self.result.parameters, magnitude)

    def get_state(self) -> dict:
        """Get the last estimate as a dictionary of Python types.

        Returns:
            Dictionary with:
            - fitted: Whether a fit has been run
            - parameters: Estimated parameters (if fitted)
            - outer_iterations: Iterations per narrowing round (if fitted)
            - inner_iterations_capped: Capped inner loops (if fitted)
        """
        if self.result is None:
            return {'fitted': False}
        return {
            'fitted': True,
            'parameters': self.result.parameters.as_dict(),
            'outer_iterations': list(self.result.outer_iterations),
            'inner_iterations_capped': int(self.result.inner_iterations_capped),
        }
