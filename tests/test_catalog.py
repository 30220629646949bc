"""Tests for catalogs, the catalog loader and precondition checks."""

import numpy as np
import pandas as pd
import pytest

from etaskit import Catalog, DataInconsistencyError, read_catalog, write_catalog, validate_catalog


class TestValidateCatalog:
    """Tests for validate_catalog."""

    def test_returns_float64(self):
        times, mags = validate_catalog([0, 1, 2], [3, 3.5, 4], m0=3.0)
        assert times.dtype == np.float64
        assert mags.dtype == np.float64

    def test_magnitude_below_cutoff(self):
        with pytest.raises(DataInconsistencyError, match="below the cutoff"):
            validate_catalog([0.0, 1.0, 2.0], [3.0, 2.9, 4.0], m0=3.0)

    def test_unsorted_times(self):
        with pytest.raises(DataInconsistencyError, match="sorted ascending"):
            validate_catalog([0.0, 2.0, 1.0], [3.0, 3.0, 3.0], m0=3.0)

    def test_ties_are_sorted(self):
        times, _ = validate_catalog([0.0, 1.0, 1.0, 2.0], [3.0] * 4, m0=3.0)
        assert times.size == 4

    def test_arrays_not_reordered(self):
        raw = np.array([0.5, 1.5, 4.0])
        times, _ = validate_catalog(raw, [3.0, 3.1, 3.2], m0=3.0)
        assert np.array_equal(times, raw)

    def test_too_few_events(self):
        with pytest.raises(DataInconsistencyError, match="at least 2"):
            validate_catalog([1.0], [3.5], m0=3.0)

    def test_length_mismatch(self):
        with pytest.raises(DataInconsistencyError, match="differ in length"):
            validate_catalog([0.0, 1.0], [3.0], m0=3.0)

    def test_non_finite(self):
        with pytest.raises(DataInconsistencyError, match="non-finite"):
            validate_catalog([0.0, np.nan], [3.0, 3.0], m0=3.0)

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            validate_catalog([1.0, 0.0], [3.0, 3.0], m0=3.0)


class TestCatalog:
    """Tests for the Catalog struct."""

    def test_from_arrays_default_window(self):
        catalog = Catalog.from_arrays([1.0, 2.0, 5.0], [3.0, 4.0, 3.2], m0=3.0)
        assert len(catalog) == 3
        assert catalog.time_window == (1.0, 5.0)
        assert catalog.window_length == 4.0
        assert catalog.branching_ratio is None

    def test_from_arrays_empty(self):
        catalog = Catalog.from_arrays([], [], m0=3.0, time_window=(0.0, 10.0))
        assert len(catalog) == 0
        assert catalog.window_length == 10.0

    def test_within_is_inclusive(self):
        catalog = Catalog.from_arrays(
            [1.0, 2.0, 3.0, 4.0], [3.0, 3.1, 3.2, 3.3], m0=3.0,
            time_window=(0.0, 5.0), branching_ratio=0.4,
        )
        subset = catalog.within(2.0, 3.0)
        assert np.array_equal(subset.times, [2.0, 3.0])
        assert np.array_equal(subset.magnitudes, [3.1, 3.2])
        assert subset.time_window == (2.0, 3.0)
        assert subset.branching_ratio == 0.4

    def test_to_dataframe(self):
        catalog = Catalog.from_arrays([1.0, 2.0], [3.0, 3.5], m0=3.0)
        frame = catalog.to_dataframe()
        assert list(frame.columns) == ["t", "mg"]
        assert len(frame) == 2


class TestCatalogLoader:
    """Tests for read_catalog and write_catalog."""

    def test_round_trip(self, tmp_path):
        catalog = Catalog.from_arrays(
            [0.125, 2.75, 7.5], [3.0, 4.25, 3.5], m0=3.0, time_window=(0.0, 10.0)
        )
        path = tmp_path / "catalog.txt"
        write_catalog(catalog, path)
        loaded = read_catalog(path, m0=3.0, time_window=(0.0, 10.0))
        assert np.array_equal(loaded.times, catalog.times)
        assert np.array_equal(loaded.magnitudes, catalog.magnitudes)
        assert loaded.time_window == (0.0, 10.0)

    def test_sorts_unsorted_input(self, tmp_path):
        path = tmp_path / "unsorted.txt"
        path.write_text("t mg\n5.0 3.2\n1.0 3.9\n3.0 3.0\n")
        loaded = read_catalog(path)
        assert np.array_equal(loaded.times, [1.0, 3.0, 5.0])
        assert np.allclose(loaded.magnitudes, [3.9, 3.0, 3.2])

    def test_defaults(self, tmp_path):
        path = tmp_path / "defaults.txt"
        path.write_text("t   mg\n2.0 3.4\n8.0   3.1\n")
        loaded = read_catalog(path)
        assert loaded.m0 == pytest.approx(3.1)
        assert loaded.time_window == (2.0, 8.0)
        assert loaded.branching_ratio is None

    def test_extra_columns_ignored(self, tmp_path):
        path = tmp_path / "extra.txt"
        pd.DataFrame({"id": [1, 2], "t": [0.5, 0.7], "mg": [3.0, 3.3]}).to_csv(
            path, sep=" ", index=False
        )
        loaded = read_catalog(path, m0=3.0)
        assert len(loaded) == 2

    def test_missing_column(self, tmp_path):
        path = tmp_path / "missing.txt"
        path.write_text("t mag\n1.0 3.0\n")
        with pytest.raises(DataInconsistencyError, match="lacks column"):
            read_catalog(path)

    def test_cutoff_checked(self, tmp_path):
        path = tmp_path / "low.txt"
        path.write_text("t mg\n1.0 2.5\n2.0 3.5\n")
        with pytest.raises(DataInconsistencyError):
            read_catalog(path, m0=3.0)
