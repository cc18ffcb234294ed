"""
Edge Trimming

Removal of empty margins from a sampled plane and reconstruction of the
grid of cell edges used for drawing one quadrilateral per sample.
"""

from typing import Tuple
import numpy as np

from .geometry import axis_range


def _border_selection(defined: np.ndarray) -> np.ndarray:
    """Select everything between the first and last defined entry."""
    select = np.zeros(defined.shape, dtype=bool)
    index = np.flatnonzero(defined)
    if index.size > 0:
        select[index[0]:index[-1] + 1] = True
    return select


def trim_edges(values: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Find the border rows and columns of a sampled plane that are empty.

    Only the first element of any trailing axes is inspected. Rows and
    columns that are entirely undefined but lie between defined ones are
    kept, so the selection stays a contiguous rectangle.

    Args:
        values: (n, m, ...) sampled plane

    Returns:
        Tuple of boolean (row_select, col_select) of length n and m
    """
    first = values[(slice(None), slice(None)) + (0,) * (values.ndim - 2)]
    finite = np.isfinite(first)
    return _border_selection(finite.any(axis=1)), _border_selection(finite.any(axis=0))


def _edges(centers: np.ndarray, resolution: float) -> np.ndarray:
    spacing = np.diff(centers).mean() if centers.size > 1 else resolution
    return np.append(centers, centers[-1] + spacing) - 0.5 * resolution


def reconstruct_edge_grid(
    Xi: np.ndarray,
    Yi: np.ndarray,
    resolution: float
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Rebuild the cell-edge grid of a (trimmed) plane.

    The sample centers are replaced by a clean range from their minimum to
    their maximum, extended by one step along each grid axis and shifted by
    half a step, so cell (i, j) is bounded by edges [i:i+2, j:j+2].

    Args:
        Xi, Yi: (n, m) plane coordinates of the sample centers
        resolution: Sample spacing

    Returns:
        Tuple of (Xe, Ye) plane coordinates with shape (n+1, m+1)
    """
    if Xi.size == 0:
        return np.zeros((0, 0)), np.zeros((0, 0))
    xplane = axis_range(Xi.min(), Xi.max(), resolution)
    yplane = axis_range(Yi.min(), Yi.max(), resolution)
    return np.meshgrid(_edges(xplane, resolution), _edges(yplane, resolution), indexing='ij')
