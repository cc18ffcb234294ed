"""
Sample Grid Cache

Per-voxel coordinate grids of a volume, memoized by volume shape.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple
import logging
import threading
import numpy as np


@dataclass
class SampleGrid:
    """
    1-based voxel coordinates of every voxel in a volume.

    Attributes:
        shape: First three volume extents
        X, Y, Z: Arrays of `shape` holding the coordinate along axis 1, 2, 3.
            These are read-only broadcast views, so they cost no memory
            beyond the axis vectors.
    """
    shape: Tuple[int, int, int]
    X: np.ndarray
    Y: np.ndarray
    Z: np.ndarray

    @property
    def axes(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """The coordinate vector along each axis."""
        return self.X[:, 0, 0], self.Y[0, :, 0], self.Z[0, 0, :]


def build_sample_grid(shape: Sequence[int]) -> SampleGrid:
    """Construct the coordinate grid for a volume shape."""
    shape = tuple(int(s) for s in shape[:3])
    axes = [np.arange(1, n + 1, dtype=float) for n in shape]
    X, Y, Z = np.meshgrid(*axes, indexing='ij', copy=False)
    return SampleGrid(shape=shape, X=X, Y=Y, Z=Z)


class SampleGridCache:
    """
    Holds the grid of the most recently sampled volume shape.

    A call with the same shape reuses the stored grid; a different shape
    replaces it. The cache can be cleared at any time since the grid is a
    pure function of the shape.
    """

    def __init__(self):
        self._grid: Optional[SampleGrid] = None
        self._lock = threading.Lock()

    def get(self, shape: Sequence[int]) -> SampleGrid:
        shape = tuple(int(s) for s in shape[:3])
        with self._lock:
            if self._grid is None or self._grid.shape != shape:
                logging.debug(f"Building sample grid for shape {shape}")
                self._grid = build_sample_grid(shape)
            return self._grid

    def clear(self) -> None:
        with self._lock:
            self._grid = None

    @property
    def shape(self) -> Optional[Tuple[int, int, int]]:
        """Shape of the cached grid, or None when empty."""
        grid = self._grid
        return grid.shape if grid is not None else None
