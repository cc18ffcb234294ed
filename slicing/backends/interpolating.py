"""
Interpolating Backend

General resampling for arbitrary planes using scipy's regular grid
interpolator.
"""

from typing import Sequence
import logging
import numpy as np

try:
    from scipy.interpolate import RegularGridInterpolator
    HAS_SCIPY = True
except ImportError:
    HAS_SCIPY = False

from config import INTERP_METHODS
from .base import ResampleBackend
from ..grid import SampleGrid


# Fewest grid points per axis each spline method accepts
MIN_POINTS = {
    "nearest": 1,
    "linear": 2,
    "slinear": 2,
    "cubic": 4,
    "pchip": 4,
    "quintic": 6,
}


class InterpolatingBackend(ResampleBackend):
    """Resampling through N-dimensional interpolation on the voxel grid."""

    def __init__(self, method: str = "nearest"):
        if not HAS_SCIPY:
            raise ImportError(
                "scipy is required for interpolated slicing. "
                "Install with: pip install scipy"
            )
        if method not in INTERP_METHODS:
            raise ValueError(f"Unsupported interpolation method '{method}'")
        self.method = method

    @property
    def name(self) -> str:
        return f"interpolate ({self.method})"

    def _fit_method(self, shape: Sequence[int]) -> str:
        """Fall back to linear interpolation when an axis is too short for the method."""
        shortest = min(shape)
        if shortest < MIN_POINTS[self.method]:
            logging.warning(
                f"Interpolation method '{self.method}' needs at least "
                f"{MIN_POINTS[self.method]} voxels per axis, the volume has {shortest}; "
                f"using 'linear' instead"
            )
            self.method = "linear"
        return self.method

    def _sample(
        self,
        volume: np.ndarray,
        voxel_coords: np.ndarray,
        grid: SampleGrid
    ) -> np.ndarray:
        interpolator = RegularGridInterpolator(
            grid.axes,
            volume,
            method=self._fit_method(volume.shape[:3]),
            bounds_error=False,
            fill_value=np.nan,
        )
        points = voxel_coords.reshape(3, -1).T
        values = interpolator(points)
        return values.reshape(voxel_coords.shape[1:] + volume.shape[3:])
