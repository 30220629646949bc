"""Pytest configuration and shared test utilities."""

import math

import pytest
import numpy as np
import jax.numpy as jnp
from typing import Optional, Tuple, Union

from etaskit import ETASConfig, ETASParameters, MagnitudeConfig, SimulationConfig


# JAX kernels compute in float32; host-side simulation and estimation in float64
TOLERANCES = {
    'float32': (1e-6, 1e-7),
    'float64': (1e-9, 1e-12),
}

Number = Union[float, jnp.ndarray, np.ndarray]


def _tolerance(*values) -> Tuple[float, float]:
    """(rtol, atol) for the least precise operand."""
    for value in values:
        dtype = getattr(value, 'dtype', None)
        if dtype is not None and np.dtype(dtype).itemsize < 8:
            return TOLERANCES['float32']
    return TOLERANCES['float64']


def assert_close(
    actual: Number,
    expected: Number,
    rtol: Optional[float] = None,
    atol: Optional[float] = None,
    msg: str = ""
):
    """Assert that two scalars agree to the precision they were computed in.

    Without explicit tolerances, a float32 operand (any JAX kernel output)
    is compared at 1e-6 relative, everything else at 1e-9.

    Example:
        >>> assert_close(config.expected_direct_offspring(), 0.82, rtol=1e-3)
    """
    default_rtol, default_atol = _tolerance(actual, expected)
    rtol = default_rtol if rtol is None else rtol
    atol = default_atol if atol is None else atol

    actual_val, expected_val = float(actual), float(expected)
    assert actual_val == pytest.approx(expected_val, rel=rtol, abs=atol), (
        f"{msg}\nExpected: {expected_val}\nActual: {actual_val}\n"
        f"Diff: {abs(actual_val - expected_val)}"
    )


def assert_array_close(
    actual: Number,
    expected: Number,
    rtol: Optional[float] = None,
    atol: Optional[float] = None,
    msg: str = ""
):
    """Element-wise version of assert_close, via numpy.testing."""
    default_rtol, default_atol = _tolerance(actual, expected)
    np.testing.assert_allclose(
        np.asarray(actual), np.asarray(expected),
        rtol=default_rtol if rtol is None else rtol,
        atol=default_atol if atol is None else atol,
        err_msg=msg
    )


def assert_parameters_close(
    actual: ETASParameters,
    expected: ETASParameters,
    rtol: float = 1e-9
):
    """Compare all five ETAS parameters, naming the first that differs."""
    for name, value in expected.as_dict().items():
        assert_close(actual.as_dict()[name], value, rtol=rtol, atol=0.0, msg=f"parameter {name}")


@pytest.fixture
def close():
    """Fixture providing assert_close."""
    return assert_close


@pytest.fixture
def array_close():
    """Fixture providing assert_array_close."""
    return assert_array_close


@pytest.fixture
def params_close():
    """Fixture providing assert_parameters_close."""
    return assert_parameters_close


@pytest.fixture
def magnitude_model():
    """Gutenberg-Richter model with b-value 1 on [3, 8]."""
    return MagnitudeConfig(m0=3.0, m_min=3.0, m_max=8.0, b=math.log(10))


@pytest.fixture
def reference_model(magnitude_model):
    """Parametrization used for the reference simulation scenario."""
    return ETASConfig(
        mu=0.329505837595229,
        K=0.0224702963795154,
        alpha=1.5839343640414,
        c=0.037651249192514,
        p=1.38508560377488,
        magnitude=magnitude_model,
    )


@pytest.fixture
def reference_simulation(reference_model):
    """Reference scenario: 1000 days of background events, seed 42."""
    return SimulationConfig(
        model=reference_model,
        background_window=(0.0, 1000.0),
        seed=42,
    )
