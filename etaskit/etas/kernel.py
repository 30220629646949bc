"""ETAS model kernel functions.

Closed-form branching quantities, offspring and Omori-delay sampling for
the simulator, and evaluation of the conditional intensity.
"""

import math

import jax
import jax.numpy as jnp
import numpy as np

from ..errors import ConfigurationError
from .runtime import ETASRuntime


def branching_integral(
    K: float,
    alpha: float,
    c: float,
    p: float,
    b: float,
    m0: float,
    m_min: float,
    m_max: float,
) -> float:
    """Expected number of direct offspring E[G] of a randomly drawn event.

    Integrates the expected offspring count
    ``K exp(alpha (m - m0)) c^(1-p) / (p-1)`` against the truncated
    exponential magnitude density on ``[m_min, m_max]``. The case
    ``alpha == b`` is the limit of the general formula and is evaluated
    separately.

    Args:
        K: Productivity constant
        alpha: Magnitude scaling exponent
        c: Omori offset (days)
        p: Omori exponent (> 1)
        b: Gutenberg-Richter rate
        m0: Intensity cutoff
        m_min: Lower magnitude truncation
        m_max: Upper magnitude truncation

    Returns:
        E[G] (dimensionless)
    """
    span = m_max - m_min
    omori_mass = c ** (1.0 - p) / (p - 1.0)
    normalization = -math.expm1(-b * span)
    shift = math.exp(alpha * (m_min - m0))

    if alpha == b:
        magnitude_part = b * span / normalization
    else:
        magnitude_part = b / (b - alpha) * (-math.expm1((alpha - b) * span)) / normalization

    return K * omori_mass * shift * magnitude_part


def mean_direct_offspring(runtime: ETASRuntime) -> float:
    """Expected number of direct offspring E[G] for a runtime parametrization.

    Args:
        runtime: ETAS configuration

    Returns:
        E[G]. The process is subcritical for E[G] < 1.
    """
    mag = runtime.magnitude
    return branching_integral(
        float(runtime.K),
        float(runtime.alpha),
        runtime.c.to_float(),
        float(runtime.p),
        float(mag.b),
        float(mag.m0),
        float(mag.m_min),
        float(mag.m_max),
    )


def check_stability(runtime: ETASRuntime) -> float:
    """Reject explosive parametrizations.

    Args:
        runtime: ETAS configuration

    Returns:
        E[G] when the process is not supercritical

    Raises:
        ConfigurationError: If E[G] > 1
    """
    expected = mean_direct_offspring(runtime)
    if expected > 1.0:
        raise ConfigurationError(
            f"Explosive parametrization: expected number of direct offspring "
            f"E[G] = {expected:.6g} > 1 (K={float(runtime.K):.6g}, "
            f"alpha={float(runtime.alpha):.6g}, c={runtime.c.to_float():.6g}, "
            f"p={float(runtime.p):.6g}). The branching process would not terminate.",
            expected_direct_offspring=expected,
        )
    return expected


def expected_offspring(runtime: ETASRuntime, magnitudes: jax.Array) -> jax.Array:
    """Expected number of direct offspring of events with the given magnitudes.

        E[n | m] = K exp(alpha (m - m0)) c^(1-p) / (p - 1)

    Args:
        runtime: ETAS configuration
        magnitudes: Parent magnitudes

    Returns:
        Array of expected offspring counts
    """
    c = runtime.c.value
    m0 = runtime.magnitude.m0
    omori_mass = c ** (1.0 - runtime.p) / (runtime.p - 1.0)
    return runtime.K * jnp.exp(runtime.alpha * (jnp.asarray(magnitudes) - m0)) * omori_mass


def sample_offspring_counts(
    runtime: ETASRuntime,
    key: jax.Array,
    magnitudes: jax.Array
) -> jax.Array:
    """Draw Poisson offspring counts for each parent.

    Args:
        runtime: ETAS configuration
        key: PRNG key
        magnitudes: Parent magnitudes

    Returns:
        Integer array of offspring counts, one per parent
    """
    rates = expected_offspring(runtime, magnitudes)
    return jax.random.poisson(key, rates, shape=rates.shape)


def sample_omori_delays(runtime: ETASRuntime, key: jax.Array, n: int) -> np.ndarray:
    """Draw offspring delays from the normalized Omori-Utsu (shifted Pareto) law.

    If ``u ~ Uniform(0, 1)``, the delay is ``c (1-u)^(-1/(p-1)) - c``.
    The transform is evaluated in double precision: for p close to 1 the
    heavy tail overflows single precision.

    Args:
        runtime: ETAS configuration
        key: PRNG key
        n: Number of delays

    Returns:
        Float64 array of non-negative delays (days)
    """
    c = runtime.c.to_float()
    p = float(runtime.p)
    u = np.asarray(jax.random.uniform(key, (int(n),)), dtype=np.float64)
    delays = c * (1.0 - u) ** (-1.0 / (p - 1.0)) - c
    return np.maximum(delays, 0.0)


def conditional_intensity(
    runtime: ETASRuntime,
    times: jax.Array,
    magnitudes: jax.Array,
    at: jax.Array,
) -> jax.Array:
    """Evaluate the conditional intensity λ(t | H_t) at the given times.

    Only events strictly before each evaluation time contribute.

    Args:
        runtime: ETAS configuration
        times: Event times of the history (days)
        magnitudes: Event magnitudes of the history
        at: Evaluation times (days)

    Returns:
        Array of intensities (events/day), same shape as ``at``

    Example:
        >>> lam = conditional_intensity(runtime, catalog.times, catalog.magnitudes,
        ...                             jnp.linspace(0.0, 100.0, 1001))
    """
    times = jnp.asarray(times)
    magnitudes = jnp.asarray(magnitudes)
    at = jnp.asarray(at)
    flat_at = jnp.atleast_1d(at)

    dt = flat_at[:, None] - times[None, :]
    past = dt > 0
    safe_dt = jnp.where(past, dt, 0.0)
    productivity = runtime.K * jnp.exp(runtime.alpha * (magnitudes - runtime.magnitude.m0))
    contributions = jnp.where(
        past,
        productivity[None, :] * (safe_dt + runtime.c.value) ** (-runtime.p),
        0.0
    )
    intensity = runtime.mu.value + contributions.sum(axis=1)
    return intensity.reshape(at.shape)


def intensity_at_events(
    runtime: ETASRuntime,
    times: jax.Array,
    magnitudes: jax.Array
) -> jax.Array:
    """Conditional intensity just before each event of a catalog.

    Args:
        runtime: ETAS configuration
        times: Event times (days)
        magnitudes: Event magnitudes

    Returns:
        Array with one intensity per event
    """
    return conditional_intensity(runtime, times, magnitudes, times)


def omori_survival(runtime: ETASRuntime, delay: jax.Array) -> jax.Array:
    """Fraction of an event's offspring expected later than ``delay``."""
    c = runtime.c.value
    return (1.0 + jnp.asarray(delay) / c) ** (1.0 - runtime.p)


def stationary_rate(runtime: ETASRuntime) -> float:
    """Long-term average event rate mu / (1 - E[G]).

    Args:
        runtime: ETAS configuration

    Returns:
        Stationary rate (events/day)

    Raises:
        ConfigurationError: If the process is not subcritical (E[G] >= 1)
    """
    expected = mean_direct_offspring(runtime)
    if expected >= 1.0:
        raise ConfigurationError(
            f"Process is not subcritical (E[G]={expected:.6g} >= 1). "
            "Stationary rate is undefined.",
            expected_direct_offspring=expected,
        )
    return runtime.mu.to_float() / (1.0 - expected)
