"""Pydantic ``mode="before"`` validators for unit-aware ETAS fields.

A validated field holds ``(canonical_float, UnitSpec)``: the background
rate ``"0.33 / day"`` becomes ``(0.33, UnitSpec("1/time", ...))`` and the
Omori offset ``"54 minutes"`` becomes ``(0.0375, UnitSpec("time", ...))``.
Windows are pairs of such tuples.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from .units import UnitManager, UnitSpec

CanonicalValue = tuple[float, UnitSpec]


def _convert(value: Any, dimension: str, default_unit: Optional[str]) -> CanonicalValue:
    manager = UnitManager.instance()
    try:
        quantity = manager.ensure_quantity(value, default_unit)
    except Exception as e:
        raise ValueError(f"Cannot parse quantity: {e}")
    try:
        return manager.to_canonical(quantity, dimension)
    except ValueError as e:
        raise ValueError(f"Dimension mismatch: {e}")


def quantity_field(
    dimension: str,
    default_unit: Optional[str] = None,
    min_value: Optional[float] = None,
    max_value: Optional[float] = None,
) -> Callable:
    """Build a validator converting one quantity to canonical units.

    Bounds are checked after conversion, so ``min_value=0.0`` on a time
    field rejects ``"-3 hours"`` as well as ``-0.125``.

    Example:
        class OmoriConfig(BaseModel):
            c: Tuple[float, UnitSpec]

            _validate_c = field_validator("c", mode="before")(
                quantity_field("time", "day")
            )
    """
    def validator(value: Any, info: Optional[Any] = None) -> CanonicalValue:
        canonical_value, spec = _convert(value, dimension, default_unit)
        if min_value is not None and canonical_value < min_value:
            raise ValueError(
                f"Value {canonical_value} below minimum {min_value} ({dimension}, canonical units)"
            )
        if max_value is not None and canonical_value > max_value:
            raise ValueError(
                f"Value {canonical_value} above maximum {max_value} ({dimension}, canonical units)"
            )
        return canonical_value, spec

    return validator


def tuple_quantity_field(
    dimension: str,
    default_unit: Optional[str] = None,
    min_value: Optional[float] = None,
    max_value: Optional[float] = None,
) -> Callable:
    """Build a validator for a ``(start, end)`` window.

    Each endpoint goes through ``quantity_field`` with the same bounds.
    ``start == end`` is allowed; an empty window simply contains no events.
    """
    endpoint = quantity_field(dimension, default_unit, min_value, max_value)

    def validator(value: Any, info: Optional[Any] = None) -> tuple[CanonicalValue, CanonicalValue]:
        if not isinstance(value, (tuple, list)) or len(value) != 2:
            raise ValueError(f"Expected tuple of two values, got {value!r}")
        start, end = endpoint(value[0], info), endpoint(value[1], info)
        if start[0] > end[0]:
            raise ValueError(f"Window start {start[0]} must not exceed end {end[0]}")
        return start, end

    return validator
