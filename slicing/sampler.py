"""
Plane Sampler

Extracts a single, arbitrarily oriented plane from a volume. The result
holds the resampled values together with the world-space grid of cell
edges that a renderer needs to draw one quadrilateral per sample.
"""

from dataclasses import dataclass, replace
from typing import Optional, Tuple
import logging
import numpy as np

from config import SliceConfig
from core.base import VolumeData, VolumeInput
from .backends import get_backend
from .errors import ShapeMismatchError, SingleSliceVolumeError
from .geometry import (
    InPlaneBounds,
    PlaneGeometry,
    compute_in_plane_bounds,
    needs_interpolation,
    plane_grid,
    plane_to_voxel_coords,
    plane_to_world_coords,
    resolve_geometry,
)
from .grid import SampleGridCache
from .trimming import reconstruct_edge_grid, trim_edges


@dataclass
class ResampledPlane:
    """
    Values of a volume sampled on a plane.

    Attributes:
        values: (n, m, ...) sampled data, NaN outside the volume
        mask: (n, m, ...) sampled mask, or None
        background: (n, m, ...) sampled background, or None
        plane_x, plane_y: (n, m) plane coordinates of the sample centers
        voxel_coords: (3, n, m) voxel coordinates of the sample centers
        edges: (n+1, m+1, 3) world coordinates of the sample cell corners
        geometry: Plane geometry the samples were taken on
        bounds: Projected volume bounds in plane coordinates
        backend: Name of the resampling strategy used
        data_range: (min, max) of the finite values of the whole data volume
        background_range: (min, max) of the whole background volume, or None
        coordsys: Coordinate system of the world space, or None
    """
    values: np.ndarray
    mask: Optional[np.ndarray]
    background: Optional[np.ndarray]
    plane_x: np.ndarray
    plane_y: np.ndarray
    voxel_coords: np.ndarray
    edges: np.ndarray
    geometry: PlaneGeometry
    bounds: InPlaneBounds
    backend: str
    data_range: Tuple[float, float]
    background_range: Optional[Tuple[float, float]] = None
    coordsys: Optional[str] = None

    @property
    def shape(self) -> Tuple[int, int]:
        return self.values.shape[:2]

    @property
    def is_empty(self) -> bool:
        """True if the plane lies completely outside the volume."""
        return self.values.size == 0 or not np.any(np.isfinite(self.values))

    @property
    def world_bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        """(min, max) world coordinates of the whole volume bounding box."""
        corners = self.geometry.corners_world
        return corners.min(axis=0), corners.max(axis=0)


def _finite_range(volume: np.ndarray) -> Tuple[float, float]:
    finite = volume[np.isfinite(volume)]
    if finite.size == 0:
        return np.nan, np.nan
    return float(finite.min()), float(finite.max())


class PlaneSampler:
    """
    Samples planes through volumes.

    The sampler owns the cache of voxel coordinate grids, so repeated calls
    on volumes of the same shape reuse it. Options given to `sample`
    override the sampler's SliceConfig for that call only.
    """

    def __init__(self, config: Optional[SliceConfig] = None):
        self.config = config if config is not None else SliceConfig()
        self._grid_cache = SampleGridCache()

    @property
    def grid_cache(self) -> SampleGridCache:
        return self._grid_cache

    def _resolve_input(
        self,
        volume: VolumeInput,
        config: SliceConfig
    ) -> Tuple[np.ndarray, SliceConfig]:
        """Unpack a VolumeData into its array and geometry options."""
        if isinstance(volume, VolumeData):
            config = replace(
                config,
                transform=volume.transform,
                unit=volume.unit if volume.unit is not None else config.unit,
                coordsys=volume.coordsys if volume.coordsys is not None else config.coordsys,
            )
            return volume.anatomy, config
        return np.asarray(volume), config

    @staticmethod
    def _check_shapes(
        data: np.ndarray,
        mask: Optional[np.ndarray],
        background: Optional[np.ndarray],
        rgb: bool
    ) -> None:
        if data.ndim < 3 or any(n == 1 for n in data.shape[:3]):
            raise SingleSliceVolumeError(
                f"Cannot plot a volume that consists of a single slice, shape {data.shape}"
            )
        if mask is not None and mask.shape != data.shape:
            # rgb data carries a color axis that the mask does not have
            if not (rgb and mask.shape[:3] == data.shape[:3]):
                raise ShapeMismatchError(
                    f"Mask shape {mask.shape} does not match data shape {data.shape}"
                )
        if background is not None and background.shape != data.shape:
            raise ShapeMismatchError(
                f"Background shape {background.shape} does not match data shape {data.shape}"
            )

    def sample(
        self,
        volume: VolumeInput,
        mask: Optional[np.ndarray] = None,
        background: Optional[np.ndarray] = None,
        datmask: Optional[np.ndarray] = None,
        rgb: bool = False,
        **options
    ) -> ResampledPlane:
        """
        Sample one plane through a volume.

        Args:
            volume: Array (nx, ny, nz, ...) or VolumeData
            mask: Optional array with the shape of the data, used as opacity
            background: Optional array with the shape of the data
            datmask: Mask given as an option; `mask` takes precedence
            rgb: Data carries a trailing color axis the mask does not have
            **options: Overrides for SliceConfig fields

        Returns:
            ResampledPlane; when the plane misses the volume all values are
            NaN and `is_empty` is True

        Raises:
            SingleSliceVolumeError: If a spatial axis has a single element
            ShapeMismatchError: If mask or background do not match the data
            DegenerateOrientationError: If the orientation has zero length
            SingularTransformError: If the transform is not invertible
        """
        config = replace(self.config, **options) if options else self.config
        data, config = self._resolve_input(volume, config)

        if mask is not None and datmask is not None:
            logging.warning("Using the mask argument rather than the datmask option")
        elif mask is None:
            mask = datmask
        if mask is not None:
            mask = np.asarray(mask)
        if background is not None:
            background = np.asarray(background)
        self._check_shapes(data, mask, background, rgb)

        geometry = resolve_geometry(
            config.transform,
            config.location,
            config.orientation,
            data.shape,
            unit=config.unit,
            resolution=config.resolution,
        )
        interpolate = needs_interpolation(
            config.transform, geometry.location, geometry.orientation, geometry.resolution
        )

        bounds = compute_in_plane_bounds(geometry)
        Xi, Yi = plane_grid(bounds, geometry.resolution)
        voxel_coords = plane_to_voxel_coords(geometry, Xi, Yi)

        if bounds.intersects:
            grid = self._grid_cache.get(data.shape)
            backend = get_backend(voxel_coords, interpolate, config.interp_method)
            values, mask_values, background_values = backend.resample_planes(
                data, voxel_coords, grid, mask=mask, background=background
            )
            backend_name = backend.name
        else:
            values = np.full(Xi.shape + data.shape[3:], np.nan)
            mask_values = np.full(Xi.shape + mask.shape[3:], np.nan) if mask is not None else None
            background_values = np.full(values.shape, np.nan) if background is not None else None
            backend_name = "none"

        if values.size == 0 or not np.any(np.isfinite(values)):
            logging.info("The slice plane lies completely outside the volume")
        else:
            rows, cols = trim_edges(values)
            values = values[rows][:, cols]
            if mask_values is not None:
                mask_values = mask_values[rows][:, cols]
            if background_values is not None:
                background_values = background_values[rows][:, cols]
            Xi = Xi[rows][:, cols]
            Yi = Yi[rows][:, cols]
            voxel_coords = voxel_coords[:, rows][:, :, cols]

        Xe, Ye = reconstruct_edge_grid(Xi, Yi, geometry.resolution)
        edges = plane_to_world_coords(geometry, Xe, Ye)

        logging.debug(
            f"Sampled plane {values.shape[:2]} at location {geometry.location.tolist()} "
            f"with {backend_name}"
        )

        return ResampledPlane(
            values=values,
            mask=mask_values,
            background=background_values,
            plane_x=Xi,
            plane_y=Yi,
            voxel_coords=voxel_coords,
            edges=edges,
            geometry=geometry,
            bounds=bounds,
            backend=backend_name,
            data_range=_finite_range(np.asarray(data, dtype=float)),
            background_range=_finite_range(np.asarray(background, dtype=float)) if background is not None else None,
            coordsys=config.coordsys,
        )
