"""Unit-carrying leaves for the penzai runtime structs."""

from __future__ import annotations

from typing import Optional
import dataclasses
import jax
import jax.numpy as jnp
import numpy as np
from penzai.core import struct

from .units import UnitSpec, UnitManager


jax.tree_util.register_static(UnitSpec)


def as_scalar(value: float, dtype: Optional[jnp.dtype] = None) -> jax.Array:
    """A runtime scalar leaf.

    Without ``dtype`` the configured value is kept as a float64 numpy scalar,
    so host-side code (Omori delays, magnitude bounds, catalog cutoff) sees
    exactly the configured number; JAX kernels cast it on use.
    """
    if dtype is None:
        return np.asarray(value, dtype=np.float64)
    return jnp.asarray(value, dtype=dtype)


@struct.pytree_dataclass
class QuantityNode(struct.Struct):
    """A canonical value (days, events/day, or a pure number) with its units.

    Only ``value`` is a pytree leaf; ``units`` is static metadata, so a
    runtime such as ``ETASRuntime`` can be passed through ``jax.jit``
    without the unit information becoming traced.
    """
    value: jax.Array
    units: UnitSpec = dataclasses.field(metadata={'pytree_node': False})

    @classmethod
    def from_float(
        cls,
        value: float,
        units: UnitSpec,
        dtype: Optional[jnp.dtype] = None
    ) -> QuantityNode:
        return cls(value=as_scalar(value, dtype), units=units)

    def to_float(self) -> float:
        return float(self.value)

    def to_quantity(self, manager: Optional[UnitManager] = None):
        """The value as a pint Quantity in the units it was configured with."""
        return (manager or UnitManager.instance()).from_canonical(self.to_float(), self.units)

    def __repr__(self) -> str:
        return f"QuantityNode({self.value}, {self.units.symbol})"
