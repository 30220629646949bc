"""Runtime structures for the temporal ETAS model with Penzai/JAX.

ETASRuntime carries the unit-aware model parameters used by the JAX
kernels; ETASParameters is the plain-float parameter tuple the estimator
iterates on.
"""

from __future__ import annotations

from typing import Dict
import jax
from penzai.core import struct

from ..runtime import QuantityNode
from ..magnitude.runtime import MagnitudeRuntime


@struct.pytree_dataclass
class ETASRuntime(struct.Struct):
    """Runtime ETAS parameters for JAX computation.

    The conditional intensity is
        λ(t) = mu + Σ_{t_i < t} K exp(alpha (m_i - m0)) (t - t_i + c)^(-p)

    Penzai's @struct.pytree_dataclass automatically registers this as a JAX pytree.
    """

    mu: QuantityNode            # Background rate (1/time)
    K: jax.Array                # Productivity constant
    alpha: jax.Array            # Magnitude scaling exponent
    c: QuantityNode             # Omori offset (time)
    p: jax.Array                # Omori decay exponent
    magnitude: MagnitudeRuntime


@struct.pytree_dataclass
class ETASParameters(struct.Struct):
    """The five ETAS parameters as canonical Python floats (rates per day, days).

    Used as the iteration state of the estimator and as its output.
    """

    mu: float
    K: float
    alpha: float
    c: float
    p: float

    @classmethod
    def from_runtime(cls, runtime: ETASRuntime) -> ETASParameters:
        """Extract canonical floats from a runtime structure."""
        return cls(
            mu=runtime.mu.to_float(),
            K=float(runtime.K),
            alpha=float(runtime.alpha),
            c=runtime.c.to_float(),
            p=float(runtime.p),
        )

    def as_dict(self) -> Dict[str, float]:
        """Return the parameters as a dictionary of Python floats."""
        return {
            'mu': float(self.mu),
            'K': float(self.K),
            'alpha': float(self.alpha),
            'c': float(self.c),
            'p': float(self.p),
        }
