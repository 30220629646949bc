"""Configuration for ETAS catalog simulation.

This module provides the Pydantic configuration of the branching-process
simulator: the model to simulate, the background time window and an
optional window of returned events.
"""

from __future__ import annotations

from typing import Optional, Tuple
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator

from ..units import UnitSpec
from ..fields import tuple_quantity_field
from ..runtime import QuantityNode
from ..etas.config import ETASConfig
from .runtime import SimulationRuntime


class SimulationConfig(BaseModel):
    """Configuration for simulating an ETAS catalog.

    Background events are simulated on ``background_window``; their
    offspring may fall after its end. If ``return_window`` is given, only
    events inside it are returned, which allows for a burn-in period.

    Example:
        >>> config = SimulationConfig(
        ...     model=ETASConfig(mu="0.33 / day", K=0.0225, alpha=1.58,
        ...                      c=0.0377, p=1.385,
        ...                      magnitude=MagnitudeConfig(m0=3, m_min=3, m_max=8)),
        ...     background_window=(0, "50000 day"),
        ...     return_window=(40000, 50000),
        ...     seed=42,
        ... )
        >>> adapter = ETASSimulatorAdapter(config)

    Attributes:
        model: ETAS model configuration
        background_window: (start, end) support of background events
        return_window: Optional (start, end) window of returned events
        seed: Random seed for reproducibility
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    model: ETASConfig = Field(
        description="ETAS parameters and magnitude model"
    )

    background_window: Tuple[Tuple[float, UnitSpec], Tuple[float, UnitSpec]] = Field(
        description="Time window on which background events are simulated"
    )

    return_window: Optional[Tuple[Tuple[float, UnitSpec], Tuple[float, UnitSpec]]] = Field(
        default=None,
        description="Window of returned events (all events if None)"
    )

    seed: Optional[int] = Field(
        default=None,
        description="Random seed for catalog generation (optional)"
    )

    _validate_background = field_validator("background_window", mode="before")(
        tuple_quantity_field("time", "day", min_value=0.0)
    )

    @field_validator("return_window", mode="before")
    def _validate_return_window(cls, v):
        if v is None:
            return None
        return tuple_quantity_field("time", "day", min_value=0.0)(v, None)

    @model_validator(mode="after")
    def _check_return_window(self):
        """A return window must start inside or after the background window."""
        if self.return_window is not None:
            if self.return_window[0][0] < self.background_window[0][0]:
                raise ValueError(
                    f"return_window starts at {self.return_window[0][0]} days, "
                    f"before the background window ({self.background_window[0][0]} days)"
                )
        return self

    def to_runtime(self) -> SimulationRuntime:
        """Convert config to JAX-ready runtime structure."""
        def window_nodes(window):
            if window is None:
                return None
            return tuple(QuantityNode.from_float(value, spec) for value, spec in window)

        return SimulationRuntime(
            model=self.model.to_runtime(),
            background_window=window_nodes(self.background_window),
            return_window=window_nodes(self.return_window),
            seed=self.seed if self.seed is not None else 0,
        )

    def background_length(self) -> float:
        """Length of the background window in days."""
        return self.background_window[1][0] - self.background_window[0][0]

    def expected_background_count(self) -> float:
        """Expected number of background events, mu times the window length."""
        return self.model.mu[0] * self.background_length()
