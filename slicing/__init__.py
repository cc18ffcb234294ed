"""
Slicing package for oblique plane extraction.

Contains the plane geometry, the resampling strategies and the
composition of sampled planes for display.
"""

from .errors import (
    SlicingError,
    DegenerateOrientationError,
    SingularTransformError,
    ShapeMismatchError,
    SingleSliceVolumeError,
    InvalidMaskStyleError,
)
from .geometry import (
    PlaneGeometry,
    InPlaneBounds,
    resolve_geometry,
    needs_interpolation,
    compute_in_plane_bounds,
    plane_grid,
    project_markers,
)
from .grid import SampleGrid, SampleGridCache, build_sample_grid
from .trimming import trim_edges, reconstruct_edge_grid
from .sampler import PlaneSampler, ResampledPlane
from .compose import SliceImage, compose_slice
from .units import estimate_units, scaling_factor

__all__ = [
    "SlicingError",
    "DegenerateOrientationError",
    "SingularTransformError",
    "ShapeMismatchError",
    "SingleSliceVolumeError",
    "InvalidMaskStyleError",
    "PlaneGeometry",
    "InPlaneBounds",
    "resolve_geometry",
    "needs_interpolation",
    "compute_in_plane_bounds",
    "plane_grid",
    "project_markers",
    "SampleGrid",
    "SampleGridCache",
    "build_sample_grid",
    "trim_edges",
    "reconstruct_edge_grid",
    "PlaneSampler",
    "ResampledPlane",
    "SliceImage",
    "compose_slice",
    "estimate_units",
    "scaling_factor",
]
