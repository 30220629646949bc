"""Pint-backed units for ETAS configuration.

Catalog times are stored in days and rates in events per day, the usual
convention for temporal seismicity catalogs. Magnitudes, alpha, K and p
are plain numbers. Users may write ``"54 minutes"`` or ``"8 / year"``;
everything is converted once, at validation time, to the canonical float
that the kernels work with, and a ``UnitSpec`` remembers how to undo it.
"""

from __future__ import annotations

import pint
from dataclasses import dataclass
from typing import Union, Optional, ClassVar, Dict

QuantityInput = Union[str, float, int, pint.Quantity]

# dimension name -> canonical unit expression
CANONICAL_UNITS: Dict[str, str] = {
    "time": "day",
    "1/time": "1 / day",
    "magnitude": "dimensionless",
    "dimensionless": "dimensionless",
}


@dataclass(frozen=True)
class UnitSpec:
    """How a canonical float was obtained from the user's quantity.

    ``value_in_user_units * to_canonical == canonical_value``.
    """
    dimension: str
    symbol: str
    to_canonical: float = 1.0


class UnitManager:
    """Shared pint registry plus canonical conversions for catalog quantities."""

    _instance: ClassVar[Optional[UnitManager]] = None

    def __init__(self, registry: Optional[pint.UnitRegistry] = None):
        self.registry = registry or pint.UnitRegistry()
        for name, definition in (
            ("day", "day = 24 * hour"),
            ("week", "week = 7 * day"),
            ("year", "year = 365.25 * day"),
        ):
            if not hasattr(self.registry, name):
                self.registry.define(definition)

        self.canonical_units = {
            dimension: self.registry.parse_units(expression)
            for dimension, expression in CANONICAL_UNITS.items()
        }

    @classmethod
    def instance(cls) -> UnitManager:
        """Process-wide manager, created on first use."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def ensure_quantity(
        self,
        value: QuantityInput,
        default_unit: Optional[str] = None
    ) -> pint.Quantity:
        """Parse ``value`` into a pint Quantity.

        Bare numbers (and numeric strings such as ``"2.5"``) receive
        ``default_unit``, or no unit at all when none is given.

        Raises:
            ValueError: For unparseable strings and for booleans
        """
        if isinstance(value, pint.Quantity):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Cannot interpret boolean {value!r} as quantity")
        unit = default_unit or "dimensionless"
        if not isinstance(value, str):
            return self.registry.Quantity(float(value), unit)

        try:
            parsed = self.registry(value)
        except Exception as e:
            raise ValueError(f"Cannot parse '{value}' as quantity: {e}")
        if isinstance(parsed, pint.Quantity):
            return parsed
        return self.registry.Quantity(parsed, unit)

    def to_canonical(
        self,
        quantity: pint.Quantity,
        dimension: str
    ) -> tuple[float, UnitSpec]:
        """Express ``quantity`` in the canonical unit of ``dimension``.

        Unknown dimensions pass the magnitude through unchanged.

        Raises:
            ValueError: If the quantity has the wrong dimensionality, e.g. a
                rate given where a duration is expected
        """
        symbol = str(quantity.units)
        target = self.canonical_units.get(dimension)
        if target is None:
            return float(quantity.magnitude), UnitSpec(dimension, symbol)

        try:
            value = float(quantity.to(target).magnitude)
        except pint.DimensionalityError as e:
            raise ValueError(f"Cannot convert {quantity} to dimension '{dimension}': {e}")

        # factor from one unit so that a zero-valued window end still has one
        factor = float(self.registry.Quantity(1.0, quantity.units).to(target).magnitude)
        return value, UnitSpec(dimension, symbol, factor)

    def from_canonical(self, value: float, spec: UnitSpec) -> pint.Quantity:
        """Turn a canonical float back into a quantity in the user's units."""
        if spec.to_canonical == 0:
            return self.registry.Quantity(value, spec.symbol)
        return self.registry.Quantity(value / spec.to_canonical, spec.symbol)
