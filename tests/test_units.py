"""Tests for unit parsing, field validators and configuration validation."""

import math

import pint
import pytest
from pydantic import ValidationError

from etaskit import (
    UnitManager,
    UnitSpec,
    quantity_field,
    tuple_quantity_field,
    QuantityNode,
    ETASConfig,
    MagnitudeConfig,
    SimulationConfig,
    EstimatorConfig,
)


class TestUnitManager:
    """Tests for the UnitManager singleton and conversions."""

    def test_singleton(self):
        assert UnitManager.instance() is UnitManager.instance()

    def test_minutes_to_days(self, close):
        manager = UnitManager.instance()
        q = manager.ensure_quantity("54 minutes")
        value, spec = manager.to_canonical(q, "time")
        close(value, 0.0375)
        assert spec.dimension == "time"
        close(spec.to_canonical, 1.0 / 1440.0)

    def test_rate_per_day(self, close):
        manager = UnitManager.instance()
        value, _ = manager.to_canonical(manager.ensure_quantity("8 / day"), "1/time")
        close(value, 8.0)

    def test_rate_per_hour(self, close):
        manager = UnitManager.instance()
        value, _ = manager.to_canonical(manager.ensure_quantity("1 / hour"), "1/time")
        close(value, 24.0)

    def test_bare_number_uses_default_unit(self, close):
        manager = UnitManager.instance()
        q = manager.ensure_quantity(2.5, "day")
        value, _ = manager.to_canonical(q, "time")
        close(value, 2.5)

    def test_boolean_rejected(self):
        with pytest.raises(ValueError):
            UnitManager.instance().ensure_quantity(True, "day")

    def test_dimension_mismatch(self):
        manager = UnitManager.instance()
        with pytest.raises(ValueError, match="Cannot convert"):
            manager.to_canonical(manager.ensure_quantity("3 meter"), "time")

    def test_round_trip_to_original_units(self, close):
        manager = UnitManager.instance()
        value, spec = manager.to_canonical(manager.ensure_quantity("90 minutes"), "time")
        restored = manager.from_canonical(value, spec)
        assert isinstance(restored, pint.Quantity)
        close(restored.magnitude, 90.0)


class TestFieldValidators:
    """Tests for quantity_field and tuple_quantity_field."""

    def test_quantity_field_bounds(self):
        validator = quantity_field("time", "day", min_value=0.0)
        value, spec = validator("12 hours")
        assert value == pytest.approx(0.5)
        assert isinstance(spec, UnitSpec)
        with pytest.raises(ValueError, match="below minimum"):
            validator(-1.0)

    def test_quantity_field_max(self):
        validator = quantity_field("time", "day", max_value=10.0)
        with pytest.raises(ValueError, match="above maximum"):
            validator("2 weeks")

    def test_tuple_field_accepts_mixed_inputs(self):
        validator = tuple_quantity_field("time", "day")
        (start, _), (end, _) = validator((0, "48 hours"))
        assert start == 0.0
        assert end == pytest.approx(2.0)

    def test_tuple_field_equal_endpoints(self):
        validator = tuple_quantity_field("time", "day")
        (start, _), (end, _) = validator((5.0, 5.0))
        assert start == end == 5.0

    def test_tuple_field_rejects_reversed(self):
        validator = tuple_quantity_field("time", "day")
        with pytest.raises(ValueError, match="must not exceed"):
            validator((10.0, 1.0))

    def test_tuple_field_rejects_scalar(self):
        validator = tuple_quantity_field("time", "day")
        with pytest.raises(ValueError, match="tuple of two"):
            validator(3.0)


class TestQuantityNode:
    """Tests for the unit-carrying runtime node."""

    def test_to_quantity_restores_units(self, close):
        manager = UnitManager.instance()
        value, spec = manager.to_canonical(manager.ensure_quantity("30 minutes"), "time")
        node = QuantityNode.from_float(value, spec)
        close(node.to_float(), 30.0 / 1440.0)
        close(node.to_quantity().to("minute").magnitude, 30.0, rtol=1e-5)
        assert "minute" in repr(node)


class TestConfigValidation:
    """Field-level validation of the pydantic configurations."""

    def test_etas_config_units(self, magnitude_model, close):
        config = ETASConfig(
            mu="8 / day", K=0.02, alpha=1.5, c="54 minutes", p=1.3,
            magnitude=magnitude_model,
        )
        close(config.mu[0], 8.0)
        close(config.c[0], 0.0375)

    def test_p_must_exceed_one(self, magnitude_model):
        with pytest.raises(ValidationError, match="p must be > 1"):
            ETASConfig(mu=0.3, K=0.02, alpha=1.5, c=0.01, p=1.0, magnitude=magnitude_model)

    def test_c_must_be_positive(self, magnitude_model):
        with pytest.raises(ValidationError):
            ETASConfig(mu=0.3, K=0.02, alpha=1.5, c=0.0, p=1.2, magnitude=magnitude_model)

    def test_negative_rate_rejected(self, magnitude_model):
        with pytest.raises(ValidationError):
            ETASConfig(mu=-0.1, K=0.02, alpha=1.5, c=0.01, p=1.2, magnitude=magnitude_model)

    def test_negative_productivity_rejected(self, magnitude_model):
        with pytest.raises(ValidationError):
            ETASConfig(mu=0.1, K=-0.02, alpha=1.5, c=0.01, p=1.2, magnitude=magnitude_model)

    def test_rate_with_time_units_rejected(self, magnitude_model):
        with pytest.raises(ValidationError):
            ETASConfig(mu="3 day", K=0.02, alpha=1.5, c=0.01, p=1.2, magnitude=magnitude_model)

    def test_magnitude_ordering(self):
        with pytest.raises(ValidationError, match="smaller than m_max"):
            MagnitudeConfig(m0=3.0, m_min=5.0, m_max=5.0)
        with pytest.raises(ValidationError, match="must not exceed m_min"):
            MagnitudeConfig(m0=3.5, m_min=3.0, m_max=8.0)

    def test_magnitude_b_default(self):
        config = MagnitudeConfig(m0=3.0, m_min=3.0, m_max=8.0)
        assert config.b == pytest.approx(math.log(10))

    def test_magnitude_b_positive(self):
        with pytest.raises(ValidationError):
            MagnitudeConfig(m0=3.0, m_min=3.0, m_max=8.0, b=0.0)

    def test_reversed_background_window(self, reference_model):
        with pytest.raises(ValidationError):
            SimulationConfig(model=reference_model, background_window=(100.0, 0.0))

    def test_return_window_before_background(self, reference_model):
        with pytest.raises(ValidationError, match="before the background window"):
            SimulationConfig(
                model=reference_model,
                background_window=(10.0, 100.0),
                return_window=(5.0, 50.0),
            )

    def test_simulation_window_units(self, reference_model, close):
        config = SimulationConfig(model=reference_model, background_window=(0, "2 weeks"))
        close(config.background_length(), 14.0)
        close(config.expected_background_count(), 14.0 * 0.329505837595229)

    def test_estimator_defaults(self):
        config = EstimatorConfig()
        assert config.sig_digits == 4
        assert config.extra_sig_digits == 2
        assert config.p_range == (1.000000000000001, 15.0)
        assert config.alpha_range == (-10.0, 20.0)
        assert config.narrowing_steps == 4
        assert config.max_inner_iterations == 200
        assert config.max_outer_iterations is None

    def test_estimator_p_range_above_one(self):
        with pytest.raises(ValidationError, match="above 1"):
            EstimatorConfig(p_range=(0.5, 3.0))

    def test_estimator_reversed_range(self):
        with pytest.raises(ValidationError, match="low < high"):
            EstimatorConfig(alpha_range=(2.0, 1.0))

    def test_estimator_empty_window(self):
        with pytest.raises(ValidationError, match="positive length"):
            EstimatorConfig(estimation_window=(5.0, 5.0))

    def test_estimator_runtime_window(self):
        runtime = EstimatorConfig(estimation_window=(0, "10 day")).to_runtime()
        assert runtime.estimation_window == (0.0, 10.0)
        assert runtime.m0 is None
