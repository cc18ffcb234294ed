"""
Resampling Backends

Provides the interpolating and the voxel-selecting resampling strategies.
"""

import logging
import numpy as np

from .base import ResampleBackend
from .interpolating import InterpolatingBackend, HAS_SCIPY
from .selecting import (
    AxisLine,
    IndexSelectBackend,
    SliceSelectBackend,
    find_axis_lines,
)


def is_sufficiently_integral(voxel_coords: np.ndarray) -> bool:
    """
    Whether all voxel coordinates are integral up to rounding noise.

    The tolerance is 1/100 of the mean spacing between distinct values
    along the first two voxel axes.
    """
    if voxel_coords[0].size == 0:
        return False
    steps = np.concatenate([
        np.diff(np.unique(voxel_coords[0])),
        np.diff(np.unique(voxel_coords[1])),
    ])
    tol = steps.mean() / 100 if steps.size > 0 else 1e-6
    return bool(np.all(np.abs(voxel_coords - np.round(voxel_coords)) < tol))


def get_backend(
    voxel_coords: np.ndarray,
    interpolate: bool,
    method: str = "nearest"
) -> ResampleBackend:
    """
    Get the resampling strategy for a set of sample positions.

    Args:
        voxel_coords: (3, n, m) voxel coordinates of the samples
        interpolate: Result of needs_interpolation for the plane
        method: Interpolation method for the interpolating backend

    Returns:
        InterpolatingBackend unless the method is nearest and every sample
        sits on a voxel center, in which case SliceSelectBackend for
        orthogonal slices and IndexSelectBackend otherwise. Spline methods
        always interpolate, since they do not reproduce voxel values exactly.
    """
    if interpolate or method != "nearest" or not is_sufficiently_integral(voxel_coords):
        backend = InterpolatingBackend(method)
    else:
        lines = find_axis_lines(voxel_coords)
        if lines is not None:
            backend = SliceSelectBackend(lines)
        else:
            backend = IndexSelectBackend()
    logging.debug(f"Resampling with {backend.name}")
    return backend


__all__ = [
    'ResampleBackend',
    'InterpolatingBackend',
    'SliceSelectBackend',
    'IndexSelectBackend',
    'AxisLine',
    'HAS_SCIPY',
    'find_axis_lines',
    'get_backend',
    'is_sufficiently_integral',
]
