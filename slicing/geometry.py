"""
Plane Geometry

Resolves a cutting plane (location + normal) against a volume and its
voxel-to-world transform, and builds the in-plane sample grid.

Voxel coordinates are 1-based: voxel (i, j, k) covers [i-0.5, i+0.5] along
each axis, so the bounding box of a volume of shape (nx, ny, nz) spans
[0.5, n+0.5] per axis.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple
import logging
import numpy as np

from config import Unit, UNIT_ROUNDING
from .errors import DegenerateOrientationError, SingularTransformError
from .units import estimate_units, scaling_factor


@dataclass
class PlaneGeometry:
    """
    A cutting plane resolved against a volume.

    Attributes:
        orientation: (3,) unit normal of the plane in world space
        location: (3,) point on the plane, parallel to the orientation
        basis_x: (3,) first in-plane unit vector
        basis_y: (3,) second in-plane unit vector
        plane_to_world: 4x4 matrix with columns [basis_x, basis_y, orientation, location]
        plane_to_voxel: 4x4 matrix transform^-1 @ plane_to_world
        transform: 4x4 voxel-to-world matrix
        shape: First three extents of the volume
        unit: Unit of the world coordinates
        resolution: Sample spacing in the plane, in unit
    """
    orientation: np.ndarray
    location: np.ndarray
    basis_x: np.ndarray
    basis_y: np.ndarray
    plane_to_world: np.ndarray
    plane_to_voxel: np.ndarray
    transform: np.ndarray
    shape: Tuple[int, int, int]
    unit: Unit
    resolution: float

    @property
    def voxel_to_plane(self) -> np.ndarray:
        return np.linalg.inv(self.plane_to_voxel)

    @property
    def corners_world(self) -> np.ndarray:
        """(8, 3) corners of the volume bounding box in world space."""
        return apply_transform(self.transform, bounding_box_corners(self.shape))


@dataclass
class InPlaneBounds:
    """Rectangle in plane coordinates covering the projected volume."""
    min_xy: np.ndarray  # (2,)
    max_xy: np.ndarray  # (2,)
    intersects: bool  # False when the plane misses the bounding box

    @property
    def is_empty(self) -> bool:
        return not self.intersects or bool(np.any(self.min_xy > self.max_xy))


def apply_transform(matrix: np.ndarray, points: np.ndarray) -> np.ndarray:
    """Apply a 4x4 homogeneous transform to (N, 3) points."""
    points = np.atleast_2d(np.asarray(points, dtype=float))
    return points @ matrix[:3, :3].T + matrix[:3, 3]


def is_identity(transform: np.ndarray) -> bool:
    return np.array_equal(np.asarray(transform, dtype=float), np.eye(4))


def bounding_box_corners(shape: Sequence[int]) -> np.ndarray:
    """
    Corners of the box enclosing all voxels, extended by half a voxel.

    Args:
        shape: First three volume extents

    Returns:
        (8, 3) array of corner points in 1-based voxel coordinates
    """
    nx, ny, nz = (float(s) for s in shape[:3])
    return np.array([
        [0.5,      0.5,      0.5],
        [0.5 + nx, 0.5,      0.5],
        [0.5 + nx, 0.5 + ny, 0.5],
        [0.5,      0.5 + ny, 0.5],
        [0.5,      0.5,      0.5 + nz],
        [0.5 + nx, 0.5,      0.5 + nz],
        [0.5 + nx, 0.5 + ny, 0.5 + nz],
        [0.5,      0.5 + ny, 0.5 + nz],
    ])


def projection_plane(orientation: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Two unit vectors completing `orientation` into an orthonormal basis.

    These are the 2nd and 3rd left singular vectors of [I3 | orientation].
    The choice is deterministic for a given normal, which keeps slice
    placement stable between calls.
    """
    u, _, _ = np.linalg.svd(np.hstack([np.eye(3), np.reshape(orientation, (3, 1))]))
    return u[:, 1].copy(), u[:, 2].copy()


def resolve_geometry(
    transform: np.ndarray,
    location: Optional[Sequence[float]],
    orientation: Sequence[float],
    shape: Sequence[int],
    unit: Optional[Unit] = None,
    resolution: Optional[float] = None
) -> PlaneGeometry:
    """
    Resolve the plane and coordinate transforms for one slice.

    Only the component of `location` along the orientation is retained, so
    the plane passes through the projection of the requested point onto the
    normal axis rather than through the point itself.

    Args:
        transform: 4x4 voxel-to-world transform
        location: Point on the plane in world space, or None for the default
        orientation: Plane normal in world space, need not be normalized
        shape: Volume extents (only the first three are used)
        unit: World unit, inferred from the transform when None
        resolution: Sample spacing in unit, 1 mm when None

    Returns:
        PlaneGeometry

    Raises:
        DegenerateOrientationError: If orientation has zero length
        SingularTransformError: If transform is not invertible
    """
    transform = np.asarray(transform, dtype=float)
    shape = tuple(int(s) for s in shape[:3])

    orientation = np.asarray(orientation, dtype=float).reshape(3)
    norm = np.sqrt(np.sum(orientation ** 2))
    if not np.isfinite(norm) or norm == 0:
        raise DegenerateOrientationError(f"Plane orientation {orientation.tolist()} has zero length")
    orientation = orientation / norm

    identity = is_identity(transform)
    if location is None and identity:
        location = (np.array(shape, dtype=float) + 1) / 2
    elif location is None:
        location = np.zeros(3)
    location = np.asarray(location, dtype=float).reshape(3)
    location = orientation * np.dot(location, orientation)

    basis_x, basis_y = projection_plane(orientation)

    plane_to_world = np.eye(4)
    plane_to_world[:3, 0] = basis_x
    plane_to_world[:3, 1] = basis_y
    plane_to_world[:3, 2] = orientation
    plane_to_world[:3, 3] = location

    try:
        if not np.all(np.isfinite(transform)) or np.linalg.matrix_rank(transform) < 4:
            raise np.linalg.LinAlgError("singular matrix")
        plane_to_voxel = np.linalg.solve(transform, plane_to_world)
    except np.linalg.LinAlgError as e:
        raise SingularTransformError(f"Transform is not invertible: {e}") from e

    if unit is None:
        if identity:
            # voxels are assumed to be close to millimeters
            unit = Unit.MM
        else:
            corners = apply_transform(transform, bounding_box_corners(shape))
            unit = estimate_units(float(np.linalg.norm(np.ptp(corners, axis=0))))
        logging.debug(f"Slice unit inferred as '{unit.value}'")
    else:
        unit = Unit(unit)

    if resolution is None:
        resolution = scaling_factor(Unit.MM, unit)

    return PlaneGeometry(
        orientation=orientation,
        location=location,
        basis_x=basis_x,
        basis_y=basis_y,
        plane_to_world=plane_to_world,
        plane_to_voxel=plane_to_voxel,
        transform=transform,
        shape=shape,
        unit=unit,
        resolution=float(resolution),
    )


def needs_interpolation(
    transform: np.ndarray,
    location: np.ndarray,
    orientation: np.ndarray,
    resolution: float
) -> bool:
    """
    Whether sampling requires general interpolation.

    Sampling can select voxels directly only for an identity transform, an
    integral location, a normal along one of the positive voxel axes and an
    integral resolution.
    """
    if not is_identity(transform):
        return True
    location = np.asarray(location, dtype=float)
    if not np.all(np.round(location) == location):
        return True
    orientation = np.asarray(orientation, dtype=float)
    if not any(np.array_equal(orientation, axis) for axis in np.eye(3)):
        return True
    if resolution != round(resolution):
        return True
    return False


def _round_inward(min_xy: np.ndarray, max_xy: np.ndarray, unit: Unit):
    factor = 1.0 / UNIT_ROUNDING[unit]
    # tolerate representation error, e.g. 0.07 * 100
    eps = 1e-9
    return (
        np.ceil(min_xy * factor - eps) / factor,
        np.floor(max_xy * factor + eps) / factor,
    )


def compute_in_plane_bounds(geometry: PlaneGeometry) -> InPlaneBounds:
    """
    Project the volume bounding box onto the plane.

    The rectangle is rounded inward to the natural grid of the unit so
    that samples land on round coordinates.

    Args:
        geometry: Resolved plane geometry

    Returns:
        InPlaneBounds; `intersects` is False when the plane does not cut
        the bounding box at all
    """
    relative = geometry.corners_world - geometry.location
    projected = np.column_stack([relative @ geometry.basis_x, relative @ geometry.basis_y])

    distance = relative @ geometry.orientation
    tol = 1e-9 * max(1.0, float(np.abs(distance).max()))
    intersects = bool(distance.min() <= tol and distance.max() >= -tol)
    if not intersects:
        logging.debug("Slice plane does not intersect the volume bounding box")

    min_xy, max_xy = _round_inward(projected.min(axis=0), projected.max(axis=0), geometry.unit)
    return InPlaneBounds(min_xy=min_xy, max_xy=max_xy, intersects=intersects)


def axis_range(start: float, stop: float, step: float) -> np.ndarray:
    """Values start, start+step, ... not exceeding stop (inclusive)."""
    if stop < start:
        return np.zeros(0)
    count = int(np.floor((stop - start) / step + 1e-10)) + 1
    return start + step * np.arange(count)


def plane_grid(bounds: InPlaneBounds, resolution: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Sample positions in plane coordinates.

    Returns:
        (Xi, Yi) arrays of shape (nx, ny), indexed as [x, y]
    """
    xplane = axis_range(bounds.min_xy[0], bounds.max_xy[0], resolution)
    yplane = axis_range(bounds.min_xy[1], bounds.max_xy[1], resolution)
    return np.meshgrid(xplane, yplane, indexing='ij')


def plane_to_voxel_coords(
    geometry: PlaneGeometry,
    Xi: np.ndarray,
    Yi: np.ndarray
) -> np.ndarray:
    """
    Map in-plane sample positions to voxel coordinates.

    Returns:
        (3, *Xi.shape) array of 1-based voxel coordinates
    """
    points = np.column_stack([Xi.ravel(), Yi.ravel(), np.zeros(Xi.size)])
    voxels = apply_transform(geometry.plane_to_voxel, points)
    return voxels.T.reshape((3,) + Xi.shape)


def plane_to_world_coords(
    geometry: PlaneGeometry,
    Xi: np.ndarray,
    Yi: np.ndarray
) -> np.ndarray:
    """
    Map in-plane positions to world coordinates.

    Returns:
        (*Xi.shape, 3) array
    """
    points = np.column_stack([Xi.ravel(), Yi.ravel(), np.zeros(Xi.size)])
    return apply_transform(geometry.plane_to_world, points).reshape(Xi.shape + (3,))


def project_markers(
    geometry: PlaneGeometry,
    points: np.ndarray,
    tolerance: float = np.finfo(float).eps * 1e8
) -> np.ndarray:
    """
    Select marker points that lie in the plane.

    Args:
        geometry: Resolved plane geometry
        points: (N, 3) marker positions in world space
        tolerance: Maximum distance from the plane

    Returns:
        (K, 3) projections of the markers within tolerance of the plane
    """
    points = np.atleast_2d(np.asarray(points, dtype=float))
    if points.size == 0:
        return np.zeros((0, 3))
    distance = (points - geometry.location) @ geometry.orientation
    projected = points - np.outer(distance, geometry.orientation)
    return projected[np.abs(distance) < tolerance]
