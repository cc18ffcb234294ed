"""
Selecting Backends

Fast resampling for planes whose samples fall exactly on voxel centers.
No interpolation is done; voxels are picked by index.
"""

from dataclasses import dataclass
from typing import List, Optional
import numpy as np

from .base import ResampleBackend, integral_indices
from ..grid import SampleGrid


@dataclass
class AxisLine:
    """
    How one voxel axis varies over the sample grid.

    Attributes:
        plane_axis: Grid axis (0 or 1) the voxel index varies along,
            or None when it is constant over the grid
        indices: 1-based voxel indices along the varying grid axis, or a
            single index when constant
    """
    plane_axis: Optional[int]
    indices: np.ndarray


def find_axis_lines(voxel_coords: np.ndarray) -> Optional[List[AxisLine]]:
    """
    Classify integral voxel coordinates as an axis-aligned slice.

    Each voxel axis must either be constant over the grid or vary along a
    single grid axis, and no two voxel axes may vary along the same grid
    axis.

    Args:
        voxel_coords: (3, n, m) integral voxel coordinates

    Returns:
        One AxisLine per voxel axis, or None if the grid is not a slice
    """
    if voxel_coords[0].size == 0:
        return None

    lines = []
    for coords in np.rint(voxel_coords).astype(np.intp):
        along_1 = bool(np.all(coords == coords[:1, :]))  # rows repeat
        along_0 = bool(np.all(coords == coords[:, :1]))  # columns repeat
        if along_0 and along_1:
            lines.append(AxisLine(plane_axis=None, indices=coords[:1, :1].ravel()))
        elif along_1:
            lines.append(AxisLine(plane_axis=1, indices=coords[0, :]))
        elif along_0:
            lines.append(AxisLine(plane_axis=0, indices=coords[:, 0]))
        else:
            return None

    varying = [line.plane_axis for line in lines if line.plane_axis is not None]
    if len(varying) != len(set(varying)):
        return None
    return lines


class SliceSelectBackend(ResampleBackend):
    """
    Select an orthogonal slice of the volume.

    Used when the plane is perpendicular to a voxel axis and every sample
    sits on a voxel center.
    """

    def __init__(self, lines: List[AxisLine]):
        self.lines = lines

    @property
    def name(self) -> str:
        return "slice selection"

    def _sample(
        self,
        volume: np.ndarray,
        voxel_coords: np.ndarray,
        grid: SampleGrid
    ) -> np.ndarray:
        grid_shape = voxel_coords.shape[1:]
        extra = volume.shape[3:]

        valid = np.ones(grid_shape, dtype=bool)
        subset = volume
        for axis in (2, 1, 0):
            line = self.lines[axis]
            n = volume.shape[axis]
            in_range = (line.indices >= 1) & (line.indices <= n)
            subset = np.take(subset, np.clip(line.indices - 1, 0, n - 1), axis=axis)
            if line.plane_axis is None:
                valid &= bool(in_range[0])
            elif line.plane_axis == 0:
                valid &= in_range[:, np.newaxis]
            else:
                valid &= in_range[np.newaxis, :]

        # put the varying voxel axes in grid order, constant ones after them
        order = sorted(
            range(3),
            key=lambda a: (self.lines[a].plane_axis is None, self.lines[a].plane_axis or 0)
        )
        order += list(range(3, volume.ndim))
        values = subset.transpose(order).reshape(grid_shape + extra).copy()
        values[~valid] = np.nan
        return values


class IndexSelectBackend(ResampleBackend):
    """
    Pick voxels by their integral coordinates.

    Covers integral sample positions that do not form an orthogonal slice.
    PlaneSampler never produces such positions, because a plane that needs
    no interpolation is always axis aligned. get_backend still returns it for
    voxel coordinates built by other means, e.g. diagonal sample lines.
    """

    @property
    def name(self) -> str:
        return "index selection"

    def _sample(
        self,
        volume: np.ndarray,
        voxel_coords: np.ndarray,
        grid: SampleGrid
    ) -> np.ndarray:
        indices, valid = integral_indices(voxel_coords, volume.shape[:3])
        values = volume[indices[0], indices[1], indices[2]]
        values[~valid] = np.nan
        return values
