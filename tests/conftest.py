"""Shared fixtures for the slicing tests."""

import numpy as np
import pytest

from slicing import PlaneSampler


@pytest.fixture
def ramp_volume():
    """(6, 7, 8) volume where every voxel holds a distinct value."""
    return np.arange(6 * 7 * 8, dtype=float).reshape(6, 7, 8)


@pytest.fixture
def sampler():
    return PlaneSampler()
