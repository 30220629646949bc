"""Configuration for the truncated Gutenberg-Richter magnitude model.

Magnitudes follow an exponential distribution with rate ``b`` truncated to
``[m_min, m_max]``. ``m0`` is the cutoff below which the ETAS intensity
ignores events.
"""

from __future__ import annotations

import math

from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator

from .runtime import MagnitudeRuntime


class MagnitudeConfig(BaseModel):
    """Configuration for the magnitude distribution of simulated events.

    Example:
        >>> config = MagnitudeConfig(m0=3.0, m_min=3.0, m_max=8.0)
        >>> config.b  # defaults to ln(10), i.e. a Gutenberg-Richter b-value of 1
        2.302585092994046

    Attributes:
        m0: Magnitude cutoff of the intensity function
        m_min: Smallest possible magnitude (usually equal to m0)
        m_max: Largest possible magnitude
        b: Rate of the exponential distribution (natural-log scale)
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    m0: float = Field(description="Magnitude cutoff below which events are ignored")
    m_min: float = Field(description="Lower truncation of the magnitude distribution")
    m_max: float = Field(description="Upper truncation of the magnitude distribution")
    b: float = Field(
        default=math.log(10),
        description="Exponential rate of the Gutenberg-Richter law (about ln(10))"
    )

    @field_validator("b", mode="after")
    def _validate_b(cls, value: float) -> float:
        """Ensure the exponential rate is positive."""
        if not value > 0:
            raise ValueError(f"Gutenberg-Richter rate b must be positive, got {value}")
        return value

    @field_validator("m0", "m_min", "m_max", mode="after")
    def _validate_finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError(f"Magnitude must be finite, got {value}")
        return value

    @model_validator(mode="after")
    def _validate_ordering(self):
        """Require m0 <= m_min < m_max."""
        if self.m_min >= self.m_max:
            raise ValueError(
                f"m_min ({self.m_min}) must be smaller than m_max ({self.m_max})"
            )
        if self.m0 > self.m_min:
            raise ValueError(
                f"Cutoff m0 ({self.m0}) must not exceed m_min ({self.m_min}); "
                "simulated events would fall below the cutoff"
            )
        return self

    def to_runtime(self) -> MagnitudeRuntime:
        """Convert to runtime structure for JAX.

        Returns:
            MagnitudeRuntime structure
        """
        return MagnitudeRuntime.from_floats(self.m0, self.m_min, self.m_max, self.b)

    @staticmethod
    def from_runtime(runtime: MagnitudeRuntime) -> MagnitudeConfig:
        """Rebuild a configuration from a runtime structure."""
        return MagnitudeConfig(
            m0=float(runtime.m0),
            m_min=float(runtime.m_min),
            m_max=float(runtime.m_max),
            b=float(runtime.b),
        )
