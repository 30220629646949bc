"""etaskit: Unit-aware simulation and estimation of the temporal ETAS model."""

from .units import UnitManager, UnitSpec, QuantityInput
from .fields import quantity_field, tuple_quantity_field
from .runtime import QuantityNode
from .errors import (
    ETASError,
    ConfigurationError,
    DataInconsistencyError,
    RootBracketingFailure,
    NonConvergenceWarning,
)
from .numerics import round_sig, same_sig, find_root
from .catalog import Catalog, validate_catalog, read_catalog, write_catalog
from .magnitude import (
    MagnitudeConfig,
    MagnitudeRuntime,
    sample_magnitudes,
)
from .etas import (
    ETASConfig,
    ETASConfigOutput,
    ETASRuntime,
    ETASParameters,
    branching_integral,
    conditional_intensity,
)
from .simulation import (
    SimulationConfig,
    SimulationRuntime,
    simulate_catalog,
    simulate_catalog_with_diagnostics,
)
from .estimation import (
    EstimatorConfig,
    EstimatorRuntime,
    Declustering,
    FitResult,
    decluster,
    fit_etas,
)
from .adapters import (
    ETASSimulatorAdapter,
    ETASEstimatorAdapter,
)

__version__ = "0.1.0"

__all__ = [
    'UnitManager',
    'UnitSpec',
    'QuantityInput',
    'quantity_field',
    'tuple_quantity_field',
    'QuantityNode',
    'ETASError',
    'ConfigurationError',
    'DataInconsistencyError',
    'RootBracketingFailure',
    'NonConvergenceWarning',
    'round_sig',
    'same_sig',
    'find_root',
    'Catalog',
    'validate_catalog',
    'read_catalog',
    'write_catalog',
    'MagnitudeConfig',
    'MagnitudeRuntime',
    'sample_magnitudes',
    'ETASConfig',
    'ETASConfigOutput',
    'ETASRuntime',
    'ETASParameters',
    'branching_integral',
    'conditional_intensity',
    'SimulationConfig',
    'SimulationRuntime',
    'simulate_catalog',
    'simulate_catalog_with_diagnostics',
    'EstimatorConfig',
    'EstimatorRuntime',
    'Declustering',
    'FitResult',
    'decluster',
    'fit_etas',
    'ETASSimulatorAdapter',
    'ETASEstimatorAdapter',
]
