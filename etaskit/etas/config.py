"""ETAS model configuration with unit-aware Pydantic models.

This module provides configuration for the temporal Epidemic-Type
Aftershock Sequence model, a self-exciting point process in which every
event triggers offspring at a rate decaying by the Omori-Utsu law and
growing exponentially with its magnitude.
"""

from __future__ import annotations
from typing import Tuple, Optional, Union, Dict, Any
from pydantic import BaseModel, Field, ConfigDict, field_validator
import jax.numpy as jnp
import pint

from ..units import UnitManager, UnitSpec
from ..fields import quantity_field
from ..runtime import QuantityNode, as_scalar
from ..magnitude.config import MagnitudeConfig
from .runtime import ETASRuntime, ETASParameters


class ETASConfig(BaseModel):
    """Configuration for the temporal ETAS model.

    The conditional intensity is:
        λ(t) = μ + Σ_{tᵢ < t} K exp(α (mᵢ - m₀)) (t - tᵢ + c)^(-p)

    Where:
        - μ is the background rate (mu)
        - K is the productivity constant
        - α scales productivity with magnitude (alpha)
        - c, p are the Omori-Utsu offset and decay exponent
        - m₀ is the magnitude cutoff of the magnitude model

    K is expressed in canonical time units (days): K (t + c)^(-p) is a rate
    per day when t and c are in days.

    Example:
        >>> config = ETASConfig(
        ...     mu="0.33 / day",
        ...     K=0.0225,
        ...     alpha=1.58,
        ...     c="54 minutes",
        ...     p=1.385,
        ...     magnitude=MagnitudeConfig(m0=3.0, m_min=3.0, m_max=8.0),
        ... )
    """

    mu: Tuple[float, UnitSpec] = Field(
        description="Background rate (events/time)"
    )

    K: float = Field(
        description="Productivity constant (canonical day units)"
    )

    alpha: float = Field(
        description="Exponential magnitude scaling of productivity"
    )

    c: Tuple[float, UnitSpec] = Field(
        description="Omori-Utsu time offset"
    )

    p: float = Field(
        description="Omori-Utsu decay exponent (> 1)"
    )

    magnitude: MagnitudeConfig = Field(
        description="Truncated Gutenberg-Richter magnitude model"
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)

    _validate_mu = field_validator("mu", mode="before")(
        quantity_field("1/time", "1/day", min_value=0.0)
    )

    _validate_c = field_validator("c", mode="before")(
        quantity_field("time", "day")
    )

    @field_validator("c", mode="after")
    def _validate_c_positive(cls, value: Tuple[float, UnitSpec]) -> Tuple[float, UnitSpec]:
        """Ensure the Omori offset is positive."""
        if value[0] <= 0:
            raise ValueError(f"Omori offset c must be positive, got {value[0]}")
        return value

    @field_validator("K", mode="after")
    def _validate_K(cls, value: float) -> float:
        if value < 0:
            raise ValueError(f"Productivity K must be non-negative, got {value}")
        return value

    @field_validator("p", mode="after")
    def _validate_p(cls, value: float) -> float:
        """Ensure p > 1 so that the Omori law is a proper Pareto distribution."""
        if not value > 1.0:
            raise ValueError(
                f"Omori exponent p must be > 1, got {value}. "
                "For p <= 1 the number of offspring per event is infinite."
            )
        return value

    @classmethod
    def from_parameters(
        cls,
        parameters: ETASParameters,
        magnitude: MagnitudeConfig
    ) -> ETASConfig:
        """Build a configuration from canonical parameter floats.

        Args:
            parameters: ETASParameters in canonical units (1/day, day)
            magnitude: Magnitude model to attach

        Returns:
            ETASConfig
        """
        return cls(
            mu=float(parameters.mu),
            K=float(parameters.K),
            alpha=float(parameters.alpha),
            c=float(parameters.c),
            p=float(parameters.p),
            magnitude=magnitude,
        )

    def to_parameters(self) -> ETASParameters:
        """Return the five model parameters as canonical Python floats."""
        return ETASParameters(
            mu=self.mu[0],
            K=self.K,
            alpha=self.alpha,
            c=self.c[0],
            p=self.p,
        )

    def to_runtime(self, dtype: Optional[jnp.dtype] = None) -> ETASRuntime:
        """Convert to runtime structure for JAX.

        Args:
            dtype: Optional JAX dtype for parameter values; by default the
                validated float64 values are kept

        Returns:
            ETASRuntime structure with QuantityNodes
        """
        return ETASRuntime(
            mu=QuantityNode.from_float(self.mu[0], self.mu[1], dtype),
            K=as_scalar(self.K, dtype),
            alpha=as_scalar(self.alpha, dtype),
            c=QuantityNode.from_float(self.c[0], self.c[1], dtype),
            p=as_scalar(self.p, dtype),
            magnitude=self.magnitude.to_runtime(),
        )

    @staticmethod
    def from_runtime(runtime: ETASRuntime, manager: Optional[UnitManager] = None) -> ETASConfigOutput:
        """Create output config from runtime structure.

        Args:
            runtime: ETASRuntime to convert
            manager: Optional UnitManager instance

        Returns:
            ETASConfigOutput with pint quantities
        """
        if manager is None:
            manager = UnitManager.instance()

        return ETASConfigOutput(
            mu=runtime.mu.to_quantity(manager),
            K=float(runtime.K),
            alpha=float(runtime.alpha),
            c=runtime.c.to_quantity(manager),
            p=float(runtime.p),
            magnitude=MagnitudeConfig.from_runtime(runtime.magnitude),
        )

    def expected_direct_offspring(self) -> float:
        """Expected number of direct offspring E[G] of a randomly drawn event."""
        from .kernel import branching_integral

        mag = self.magnitude
        return branching_integral(
            self.K, self.alpha, self.c[0], self.p, mag.b, mag.m0, mag.m_min, mag.m_max
        )

    def summary(self, format: str = "markdown") -> Union[str, Dict[str, Any]]:
        """Generate summary of ETAS configuration.

        Args:
            format: Output format ('markdown', 'text', or 'dict')

        Returns:
            Formatted summary string, or a dict of values for 'dict'
        """
        manager = UnitManager.instance()
        values: Dict[str, Any] = {
            "mu": manager.from_canonical(self.mu[0], self.mu[1]),
            "K": self.K,
            "alpha": self.alpha,
            "c": manager.from_canonical(self.c[0], self.c[1]),
            "p": self.p,
            "m0": self.magnitude.m0,
            "m_min": self.magnitude.m_min,
            "m_max": self.magnitude.m_max,
            "b": self.magnitude.b,
        }

        if format == "dict":
            return values

        def split(value: Any) -> Tuple[float, str]:
            if isinstance(value, pint.Quantity):
                return float(value.magnitude), str(value.units)
            return float(value), "-"

        lines = []
        if format == "markdown":
            lines.append("# ETAS Model Configuration\n")
            lines.append("| Parameter | Value | Units |")
            lines.append("|-----------|--------|-------|")
            for name, value in values.items():
                magnitude, units = split(value)
                lines.append(f"| {name} | {magnitude:.4g} | {units} |")
        else:  # text format
            lines.append("ETAS Model Configuration")
            lines.append("-" * 40)
            for name, value in values.items():
                magnitude, units = split(value)
                suffix = "" if units == "-" else f" {units}"
                lines.append(f"  {name}: {magnitude:.4g}{suffix}")

        lines.append("")
        eg = self.expected_direct_offspring()
        stability = "SUBCRITICAL" if eg <= 1 else "EXPLOSIVE"
        lines.append(f"Stability: {stability} (E[G] = {eg:.3f})")

        return "\n".join(lines)


class ETASConfigOutput(BaseModel):
    """Output format for ETAS configuration with pint quantities."""

    mu: pint.Quantity
    K: float
    alpha: float
    c: pint.Quantity
    p: float
    magnitude: MagnitudeConfig

    model_config = ConfigDict(arbitrary_types_allowed=True)
