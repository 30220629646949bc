"""Event catalogs: the data exchanged by the simulator and the estimator.

A catalog is a pair of parallel float64 arrays (occurrence times in days and
magnitudes) sorted by time, together with the magnitude cutoff and the time
window it covers.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np
import pandas as pd
from penzai.core import struct

from .errors import DataInconsistencyError


@struct.pytree_dataclass
class Catalog(struct.Struct):
    """Time-ordered event catalog.

    Attributes:
        times: Event times in days, non-decreasing
        magnitudes: Event magnitudes, parallel to ``times``
        m0: Magnitude cutoff of the catalog
        time_window: (start, end) window covered by the catalog (days)
        branching_ratio: Fraction of triggered events of the simulation the
            catalog was drawn from (None for observed data)
    """

    times: np.ndarray
    magnitudes: np.ndarray
    m0: float
    time_window: Tuple[float, float]
    branching_ratio: Optional[float] = None

    @classmethod
    def from_arrays(
        cls,
        times,
        magnitudes,
        m0: float,
        time_window: Optional[Tuple[float, float]] = None,
        branching_ratio: Optional[float] = None,
    ) -> Catalog:
        """Build a catalog from array-likes, validating it against the model.

        Args:
            times: Event times (days), sorted ascending
            magnitudes: Event magnitudes, all >= m0
            m0: Magnitude cutoff
            time_window: Covered window; defaults to (first time, last time)
            branching_ratio: Optional branching ratio of the source simulation

        Returns:
            Catalog with float64 arrays

        Raises:
            DataInconsistencyError: If the data violate the catalog invariants
        """
        times, magnitudes = validate_catalog(times, magnitudes, m0, min_events=0)
        if time_window is None:
            time_window = (float(times[0]), float(times[-1])) if len(times) else (0.0, 0.0)
        return cls(
            times=times,
            magnitudes=magnitudes,
            m0=float(m0),
            time_window=(float(time_window[0]), float(time_window[1])),
            branching_ratio=branching_ratio,
        )

    def __len__(self) -> int:
        return int(self.times.shape[0])

    @property
    def window_length(self) -> float:
        """Length of the covered time window (days)."""
        return float(self.time_window[1] - self.time_window[0])

    def within(self, start: float, end: float) -> Catalog:
        """Return the events with ``start <= t <= end`` and that window."""
        mask = (self.times >= start) & (self.times <= end)
        return Catalog(
            times=self.times[mask],
            magnitudes=self.magnitudes[mask],
            m0=self.m0,
            time_window=(float(start), float(end)),
            branching_ratio=self.branching_ratio,
        )

    def to_dataframe(self) -> pd.DataFrame:
        """Return the catalog as a DataFrame with columns ``t`` and ``mg``."""
        return pd.DataFrame({'t': self.times, 'mg': self.magnitudes})


def validate_catalog(
    times,
    magnitudes,
    m0: float,
    min_events: int = 2,
) -> Tuple[np.ndarray, np.ndarray]:
    """Check a catalog against the assumptions of the ETAS estimator.

    The arrays are never re-sorted: a stable sort order is computed only to
    verify that the times are already non-decreasing.

    Args:
        times: Event times
        magnitudes: Event magnitudes
        m0: Magnitude cutoff
        min_events: Minimum number of events required

    Returns:
        (times, magnitudes) as float64 numpy arrays

    Raises:
        DataInconsistencyError: On magnitudes below m0, unsorted times,
            mismatched lengths, non-finite values, or too few events
    """
    times = np.asarray(times, dtype=np.float64).ravel()
    magnitudes = np.asarray(magnitudes, dtype=np.float64).ravel()

    if times.shape != magnitudes.shape:
        raise DataInconsistencyError(
            f"times and magnitudes differ in length ({times.size} vs {magnitudes.size})"
        )
    if not (np.all(np.isfinite(times)) and np.all(np.isfinite(magnitudes))):
        raise DataInconsistencyError("Catalog contains non-finite times or magnitudes")

    below = np.flatnonzero(magnitudes < m0)
    if below.size > 0:
        raise DataInconsistencyError(
            f"{below.size} event(s) have magnitude below the cutoff m0={m0} "
            f"(first at index {below[0]}, magnitude {magnitudes[below[0]]})"
        )

    order = np.argsort(times, kind="stable")
    if np.any(times[order] != times):
        first = int(np.flatnonzero(np.diff(times) < 0)[0]) + 1
        raise DataInconsistencyError(
            f"Event times must be sorted ascending; time at index {first} "
            f"({times[first]}) precedes its predecessor ({times[first - 1]}). "
            "Sort the catalog before estimation."
        )

    if times.size < min_events:
        raise DataInconsistencyError(
            f"Catalog has {times.size} event(s); at least {min_events} are required"
        )

    return times, magnitudes


def read_catalog(
    path: Union[str, Path],
    m0: Optional[float] = None,
    time_window: Optional[Tuple[float, float]] = None,
) -> Catalog:
    """Read a whitespace-delimited catalog table with columns ``t`` and ``mg``.

    Rows are stably sorted by time.

    Args:
        path: Path of the table (header row required)
        m0: Magnitude cutoff; defaults to the smallest magnitude
        time_window: Covered window; defaults to (first time, last time)

    Returns:
        Catalog

    Raises:
        DataInconsistencyError: If a required column is missing or the
            table violates the catalog invariants
    """
    frame = pd.read_csv(path, sep=r"\s+")
    missing = [name for name in ('t', 'mg') if name not in frame.columns]
    if missing:
        raise DataInconsistencyError(
            f"Catalog file {path} lacks column(s) {missing}; found {list(frame.columns)}"
        )

    frame = frame.sort_values('t', kind='mergesort')
    times = frame['t'].to_numpy(dtype=np.float64)
    magnitudes = frame['mg'].to_numpy(dtype=np.float64)
    if m0 is None:
        m0 = float(magnitudes.min()) if magnitudes.size else 0.0

    return Catalog.from_arrays(times, magnitudes, m0, time_window=time_window)


def write_catalog(catalog: Catalog, path: Union[str, Path]) -> None:
    """Write a catalog in the whitespace-delimited ``t``/``mg`` format."""
    catalog.to_dataframe().to_csv(path, sep=' ', index=False, float_format='%.17g')
