"""Tests for the truncated Gutenberg-Richter magnitude model."""

import math

import jax
import jax.numpy as jnp
import numpy as np
import pytest

from etaskit import MagnitudeConfig
from etaskit.magnitude import sample_magnitudes, magnitude_cdf, mean_magnitude


class TestMagnitudeSampling:
    """Tests for sample_magnitudes."""

    def test_shape_and_bounds(self, magnitude_model):
        runtime = magnitude_model.to_runtime()
        mags = sample_magnitudes(runtime, jax.random.PRNGKey(0), 5000)
        assert mags.shape == (5000,)
        assert float(jnp.min(mags)) >= 3.0
        assert float(jnp.max(mags)) <= 8.0

    def test_zero_samples(self, magnitude_model):
        mags = sample_magnitudes(magnitude_model.to_runtime(), jax.random.PRNGKey(0), 0)
        assert mags.shape == (0,)

    def test_negative_count_rejected(self, magnitude_model):
        with pytest.raises(ValueError, match="non-negative"):
            sample_magnitudes(magnitude_model.to_runtime(), jax.random.PRNGKey(0), -1)

    def test_same_key_same_sample(self, magnitude_model):
        runtime = magnitude_model.to_runtime()
        a = sample_magnitudes(runtime, jax.random.PRNGKey(3), 100)
        b = sample_magnitudes(runtime, jax.random.PRNGKey(3), 100)
        assert np.array_equal(np.asarray(a), np.asarray(b))

    def test_empirical_cdf_matches(self, magnitude_model):
        """Kolmogorov distance between sample and model CDF is small."""
        runtime = magnitude_model.to_runtime()
        n = 20000
        mags = np.sort(np.asarray(sample_magnitudes(runtime, jax.random.PRNGKey(11), n)))
        model = np.asarray(magnitude_cdf(runtime, mags))
        empirical = np.arange(1, n + 1) / n
        distance = np.max(np.abs(empirical - model))
        # 1.63 / sqrt(n) is the 1% critical value
        assert distance < 1.63 / math.sqrt(n)

    def test_sample_mean(self, magnitude_model):
        runtime = magnitude_model.to_runtime()
        mags = sample_magnitudes(runtime, jax.random.PRNGKey(5), 20000)
        # Standard deviation of the magnitude is about 1/b
        tolerance = 4.0 * (1.0 / math.log(10)) / math.sqrt(20000)
        assert abs(float(jnp.mean(mags)) - float(mean_magnitude(runtime))) < tolerance


class TestMagnitudeDistribution:
    """Tests for magnitude_cdf and mean_magnitude."""

    def test_cdf_endpoints(self, magnitude_model, close):
        runtime = magnitude_model.to_runtime()
        close(magnitude_cdf(runtime, 2.0), 0.0)
        close(magnitude_cdf(runtime, 3.0), 0.0)
        close(magnitude_cdf(runtime, 8.0), 1.0)
        close(magnitude_cdf(runtime, 9.0), 1.0)

    def test_cdf_one_unit_above_minimum(self, magnitude_model, close):
        """With b = ln 10, 90% of events are within one unit of m_min."""
        runtime = magnitude_model.to_runtime()
        expected = 0.9 / (1.0 - 1e-5)
        close(magnitude_cdf(runtime, 4.0), expected, rtol=1e-5)

    def test_mean_untruncated_limit(self, close):
        runtime = MagnitudeConfig(m0=2.0, m_min=2.0, m_max=40.0, b=2.0).to_runtime()
        close(mean_magnitude(runtime), 2.5, rtol=1e-5)

    def test_config_runtime_round_trip(self, magnitude_model, close):
        restored = MagnitudeConfig.from_runtime(magnitude_model.to_runtime())
        close(restored.m_max, 8.0)
        close(restored.b, math.log(10), rtol=1e-6)
