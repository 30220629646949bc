"""Runtime structure for the magnitude model with Penzai/JAX."""

from __future__ import annotations

import jax
from penzai.core import struct

from ..runtime import as_scalar


@struct.pytree_dataclass
class MagnitudeRuntime(struct.Struct):
    """Runtime truncated Gutenberg-Richter parameters for JAX computation.

    Magnitudes are dimensionless, so the fields are plain scalars, kept at
    double precision so that sampled magnitudes respect the configured bounds.
    """

    m0: jax.Array       # Intensity cutoff
    m_min: jax.Array    # Lower truncation
    m_max: jax.Array    # Upper truncation
    b: jax.Array        # Exponential rate

    @classmethod
    def from_floats(cls, m0: float, m_min: float, m_max: float, b: float) -> MagnitudeRuntime:
        """Create a runtime holding the floats at double precision."""
        return cls(
            m0=as_scalar(m0),
            m_min=as_scalar(m_min),
            m_max=as_scalar(m_max),
            b=as_scalar(b),
        )
