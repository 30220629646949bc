"""Runtime structures for ETAS catalog simulation.

This module provides Penzai structs for JAX-compatible branching-process
simulation.
"""

from __future__ import annotations

from typing import Optional, Tuple
from penzai.core import struct

from ..runtime import QuantityNode
from ..etas.runtime import ETASRuntime


@struct.pytree_dataclass
class SimulationRuntime(struct.Struct):
    """JAX-compatible runtime structure for catalog simulation.

    Attributes:
        model: ETAS parameters and magnitude model
        background_window: (start, end) support of background events
        return_window: Optional (start, end) window of returned events
        seed: Random seed (auxiliary data, not differentiated)
    """
    model: ETASRuntime
    background_window: Tuple[QuantityNode, QuantityNode]
    return_window: Optional[Tuple[QuantityNode, QuantityNode]] = None
    seed: int = 0

    def get_background_window(self) -> Tuple[float, float]:
        """Background window as canonical floats (days)."""
        start, end = self.background_window
        return start.to_float(), end.to_float()

    def get_return_window(self) -> Optional[Tuple[float, float]]:
        """Return window as canonical floats (days), or None."""
        if self.return_window is None:
            return None
        start, end = self.return_window
        return start.to_float(), end.to_float()
