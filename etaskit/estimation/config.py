"""Configuration for ETAS maximum-likelihood estimation.

This module provides the Pydantic configuration of the iterative
declustering estimator: the estimation window, the convergence tolerances
and the root-finding search ranges for alpha and p.
"""

from __future__ import annotations

from typing import Optional, Tuple, Union, Dict, Any
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator

from ..units import UnitSpec
from ..fields import tuple_quantity_field
from .runtime import EstimatorRuntime


def _ordered_pair(name: str, value: Tuple[float, float]) -> Tuple[float, float]:
    low, high = float(value[0]), float(value[1])
    if not low < high:
        raise ValueError(f"{name} must satisfy low < high, got ({low}, {high})")
    return low, high


class EstimatorConfig(BaseModel):
    """Configuration for fitting the temporal ETAS model to a catalog.

    Each outer iteration declusters the catalog with the current parameters
    and updates mu, alpha, K, then c and p. The outer loop stops once all
    parameters (p as p - 1) agree with the previous iteration at
    ``sig_digits`` significant digits. The whole loop is repeated
    ``narrowing_steps`` more times, each time with the alpha and p search
    ranges halved around the current estimate.

    Example:
        >>> config = EstimatorConfig(estimation_window=(0, "1000 day"))
        >>> adapter = ETASEstimatorAdapter(config)
        >>> result = adapter.fit(catalog, start)

    Attributes:
        estimation_window: (start, end) of the observation period; defaults
            to the catalog window
        m0: Magnitude cutoff; defaults to the catalog cutoff
        sig_digits: Significant digits of the outer convergence test
        extra_sig_digits: Additional digits required by the inner c/p loop
        p_range: Initial search range for p
        alpha_range: Initial search range for alpha
        narrowing_steps: Number of range-narrowing rounds
        max_inner_iterations: Cap of the inner c/p loop
        max_outer_iterations: Optional cap of each outer loop
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    estimation_window: Optional[Tuple[Tuple[float, UnitSpec], Tuple[float, UnitSpec]]] = Field(
        default=None,
        description="Observation period (defaults to the catalog time window)"
    )

    m0: Optional[float] = Field(
        default=None,
        description="Magnitude cutoff (defaults to the catalog cutoff)"
    )

    sig_digits: int = Field(
        default=4,
        ge=1,
        description="Significant digits for outer convergence"
    )

    extra_sig_digits: int = Field(
        default=2,
        ge=0,
        description="Extra significant digits required by the inner c/p loop"
    )

    p_range: Tuple[float, float] = Field(
        default=(1.000000000000001, 15.0),
        description="Initial search range for the Omori exponent p"
    )

    alpha_range: Tuple[float, float] = Field(
        default=(-10.0, 20.0),
        description="Initial search range for the magnitude exponent alpha"
    )

    narrowing_steps: int = Field(
        default=4,
        ge=0,
        description="Number of search range narrowing rounds"
    )

    max_inner_iterations: int = Field(
        default=200,
        ge=1,
        description="Iteration cap of the inner c/p loop"
    )

    max_outer_iterations: Optional[int] = Field(
        default=None,
        ge=1,
        description="Optional iteration cap of each outer loop (None: uncapped)"
    )

    p_floor: float = Field(
        default=1.0 + 1e-12,
        description="Lower bound kept when narrowing the p range"
    )

    alpha_floor: float = Field(
        default=0.01,
        description="Lower bound kept when narrowing the alpha range"
    )

    @field_validator("estimation_window", mode="before")
    def _validate_window(cls, v):
        if v is None:
            return None
        return tuple_quantity_field("time", "day")(v, None)

    @field_validator("p_range", mode="after")
    def _validate_p_range(cls, value: Tuple[float, float]) -> Tuple[float, float]:
        """Ensure the p range lies above 1."""
        low, high = _ordered_pair("p_range", value)
        if not low > 1.0:
            raise ValueError(f"p_range must lie above 1, got lower bound {low}")
        return low, high

    @field_validator("alpha_range", mode="after")
    def _validate_alpha_range(cls, value: Tuple[float, float]) -> Tuple[float, float]:
        return _ordered_pair("alpha_range", value)

    @field_validator("p_floor", mode="after")
    def _validate_p_floor(cls, value: float) -> float:
        if not value > 1.0:
            raise ValueError(f"p_floor must be > 1, got {value}")
        return value

    @model_validator(mode="after")
    def _check_window_length(self):
        """The estimation window must have positive length."""
        if self.estimation_window is not None:
            start, end = self.estimation_window[0][0], self.estimation_window[1][0]
            if not end > start:
                raise ValueError(
                    f"estimation_window must have positive length, got ({start}, {end}) days"
                )
        return self

    def to_runtime(self) -> EstimatorRuntime:
        """Convert config to runtime structure."""
        window = None
        if self.estimation_window is not None:
            window = (self.estimation_window[0][0], self.estimation_window[1][0])

        return EstimatorRuntime(
            estimation_window=window,
            m0=self.m0,
            sig_digits=self.sig_digits,
            extra_sig_digits=self.extra_sig_digits,
            p_range=tuple(self.p_range),
            alpha_range=tuple(self.alpha_range),
            narrowing_steps=self.narrowing_steps,
            max_inner_iterations=self.max_inner_iterations,
            max_outer_iterations=self.max_outer_iterations,
            p_floor=self.p_floor,
            alpha_floor=self.alpha_floor,
        )

    def summary(self, format: str = "text") -> Union[str, Dict[str, Any]]:
        """Generate summary of the estimator settings.

        Args:
            format: Output format ('text' or 'dict')

        Returns:
            Formatted summary string, or a dict of values for 'dict'
        """
        values = self.to_runtime()
        data = {
            "estimation_window": values.estimation_window,
            "m0": values.m0,
            "sig_digits": values.sig_digits,
            "extra_sig_digits": values.extra_sig_digits,
            "p_range": values.p_range,
            "alpha_range": values.alpha_range,
            "narrowing_steps": values.narrowing_steps,
            "max_inner_iterations": values.max_inner_iterations,
            "max_outer_iterations": values.max_outer_iterations,
        }
        if format == "dict":
            return data

        lines = ["ETAS Estimator Configuration", "-" * 40]
        for name, value in data.items():
            shown = "catalog" if value is None and name in ("estimation_window", "m0") else value
            lines.append(f"  {name}: {shown}")
        return "\n".join(lines)
