"""
Base Resampling Backend

Abstract interface for sampling volume values at voxel positions.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple
import numpy as np

from ..grid import SampleGrid


class ResampleBackend(ABC):
    """Abstract base class for resampling strategies."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name for logging."""
        pass

    @abstractmethod
    def _sample(
        self,
        volume: np.ndarray,
        voxel_coords: np.ndarray,
        grid: SampleGrid
    ) -> np.ndarray:
        """
        Sample a non-empty set of positions.

        Args:
            volume: Float array (nx, ny, nz, ...)
            voxel_coords: (3, n, m) 1-based voxel coordinates
            grid: Coordinate grid of the volume

        Returns:
            (n, m, ...) values, NaN outside the volume
        """
        pass

    def resample(
        self,
        volume: np.ndarray,
        voxel_coords: np.ndarray,
        grid: SampleGrid
    ) -> np.ndarray:
        """
        Sample `volume` at `voxel_coords`.

        Positions outside [1, extent] on any axis yield NaN. Trailing axes
        beyond the third are carried through unchanged.

        Returns:
            Float array of shape voxel_coords.shape[1:] + volume.shape[3:]
        """
        volume = np.asarray(volume, dtype=float)
        out_shape = voxel_coords.shape[1:] + volume.shape[3:]
        if voxel_coords[0].size == 0:
            return np.full(out_shape, np.nan)
        return self._sample(volume, voxel_coords, grid).reshape(out_shape)

    def resample_planes(
        self,
        data: np.ndarray,
        voxel_coords: np.ndarray,
        grid: SampleGrid,
        mask: Optional[np.ndarray] = None,
        background: Optional[np.ndarray] = None
    ) -> Tuple[np.ndarray, Optional[np.ndarray], Optional[np.ndarray]]:
        """
        Sample data and the optional side volumes at the same positions.

        Returns:
            Tuple of (values, mask_values, background_values)
        """
        values = self.resample(data, voxel_coords, grid)
        mask_values = None
        if mask is not None:
            mask_values = self.resample(mask, voxel_coords, grid)
        background_values = None
        if background is not None:
            background_values = self.resample(background, voxel_coords, grid)
        return values, mask_values, background_values


def integral_indices(
    voxel_coords: np.ndarray,
    shape: Tuple[int, int, int]
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Round voxel coordinates to 0-based indices.

    Returns:
        Tuple of (indices clipped into the volume, validity mask)
    """
    indices = np.rint(voxel_coords).astype(np.intp)
    extent = np.asarray(shape, dtype=np.intp).reshape((3,) + (1,) * (indices.ndim - 1))
    valid = np.all((indices >= 1) & (indices <= extent), axis=0)
    clipped = np.clip(indices - 1, 0, extent - 1)
    return clipped, valid
