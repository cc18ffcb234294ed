"""Tests for the sample grid cache."""

import numpy as np

from slicing.grid import SampleGridCache, build_sample_grid


def test_grid_holds_one_based_coordinates():
    grid = build_sample_grid((3, 4, 5))
    assert grid.X.shape == grid.Y.shape == grid.Z.shape == (3, 4, 5)
    assert grid.X[2, 1, 0] == 3
    assert grid.Y[2, 1, 0] == 2
    assert grid.Z[2, 1, 4] == 5
    np.testing.assert_array_equal(grid.axes[0], [1, 2, 3])
    np.testing.assert_array_equal(grid.axes[2], [1, 2, 3, 4, 5])


def test_cache_reuses_grid_for_same_shape():
    cache = SampleGridCache()
    first = cache.get((3, 4, 5))
    second = cache.get((3, 4, 5, 2))
    assert second is first
    assert cache.shape == (3, 4, 5)


def test_cache_rebuilds_on_shape_change():
    cache = SampleGridCache()
    cache.get((3, 4, 5))
    grid = cache.get((2, 6, 3))
    assert cache.shape == (2, 6, 3)
    assert grid.X.shape == (2, 6, 3)
    np.testing.assert_array_equal(grid.X[:, 0, 0], [1, 2])
    np.testing.assert_array_equal(grid.Y[0, :, 0], np.arange(1, 7))
    np.testing.assert_array_equal(grid.Z[0, 0, :], [1, 2, 3])


def test_cache_can_be_cleared():
    cache = SampleGridCache()
    cache.get((3, 4, 5))
    cache.clear()
    assert cache.shape is None
    grid = cache.get((3, 4, 5))
    np.testing.assert_array_equal(grid.axes[1], [1, 2, 3, 4])
