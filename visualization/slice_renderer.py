"""
Slice Renderer

Builds PyVista geometry for a sampled plane: a structured grid with one
cell per sample, intersection lines of surfaces, and in-plane markers.
"""

from typing import List, Optional
import logging
import numpy as np

try:
    import pyvista as pv
    HAS_PYVISTA = True
except ImportError:
    HAS_PYVISTA = False

from core.base import BaseVisualizer
from slicing.compose import SliceImage, apply_colormap, compose_slice
from slicing.sampler import ResampledPlane


# Default colors cycled over intersection lines
INTERSECT_COLORS = "yrgbmyrgbm"


def _cell_array(values: np.ndarray) -> np.ndarray:
    """Flatten (n, m, ...) per-sample values to VTK cell order (x fastest)."""
    n, m = values.shape[:2]
    return values.reshape((n * m,) + values.shape[2:], order='F')


class SliceRenderer(BaseVisualizer):
    """
    Converts sampled planes into PyVista meshes and draws them.

    The sampler never draws; this class owns everything renderer-specific.
    """

    def __init__(self):
        if not HAS_PYVISTA:
            raise ImportError(
                "pyvista is required for slice rendering. "
                "Install with: pip install pyvista"
            )
        self._plane: Optional[ResampledPlane] = None
        self._image: Optional[SliceImage] = None
        self._lines: List[np.ndarray] = []
        self._markers: Optional[np.ndarray] = None

    def set_data(self, plane: ResampledPlane, image: Optional[SliceImage] = None) -> None:
        """
        Set the plane to draw.

        Args:
            plane: Sampled plane
            image: Composed colors, grayscale composition when None
        """
        self._plane = plane
        self._image = image if image is not None else compose_slice(plane)

    def set_intersections(self, lines: List[np.ndarray]) -> None:
        """Set (K, 2, 3) line segment arrays, one per surface."""
        self._lines = [np.asarray(seg, dtype=float).reshape(-1, 2, 3) for seg in lines]

    def set_markers(self, points: Optional[np.ndarray]) -> None:
        self._markers = None if points is None else np.atleast_2d(points)

    def clear(self) -> None:
        self._plane = None
        self._image = None
        self._lines = []
        self._markers = None

    @property
    def has_data(self) -> bool:
        return self._plane is not None and self._plane.values.size > 0

    def build_surface(self) -> "pv.StructuredGrid":
        """
        Structured grid of the sample cells.

        Cell arrays: 'rgba' (uint8) when the image carries an alpha
        channel, otherwise 'rgb' (uint8) or 'scalars'. Scalars are mapped
        through the colormap before the alpha channel is attached.
        """
        if not self.has_data:
            raise RuntimeError("No sampled plane to render. Call set_data() first.")

        edges = self._plane.edges
        grid = pv.StructuredGrid(edges[..., 0], edges[..., 1], edges[..., 2])

        image = self._image
        if image.alpha is not None:
            rgb = image.rgb
            if rgb is None:
                rgb = apply_colormap(image.scalars, image.colormap, image.clim)
            alpha = np.clip(image.alpha, 0, 1)[..., np.newaxis]
            rgba = np.concatenate([np.clip(rgb, 0, 1), alpha], axis=-1)
            grid.cell_data['rgba'] = _cell_array((rgba * 255).astype(np.uint8))
        elif image.rgb is not None:
            rgb = np.clip(image.rgb, 0, 1) * 255
            grid.cell_data['rgb'] = _cell_array(rgb.astype(np.uint8))
        else:
            grid.cell_data['scalars'] = _cell_array(image.scalars)
        return grid

    def build_lines(self) -> List["pv.PolyData"]:
        """One PolyData of line segments per intersected surface."""
        polys = []
        for segments in self._lines:
            if len(segments) == 0:
                continue
            points = segments.reshape(-1, 3)
            count = len(segments)
            cells = np.column_stack([
                np.full(count, 2),
                np.arange(0, 2 * count, 2),
                np.arange(1, 2 * count, 2),
            ]).ravel()
            polys.append(pv.PolyData(points, lines=cells))
        return polys

    def _lookup_table(self) -> "pv.LookupTable":
        colormap = np.asarray(self._image.colormap, dtype=float)
        lut = pv.LookupTable()
        lut.values = np.column_stack([
            colormap * 255, np.full(len(colormap), 255)
        ]).astype(np.uint8)
        if self._image.clim is not None:
            lut.scalar_range = tuple(self._image.clim)
        return lut

    def add_to(self, plotter: "pv.Plotter", line_width: float = 2.0) -> None:
        """Add the slice, intersection lines and markers to a plotter."""
        surface = self.build_surface()
        if 'rgba' in surface.cell_data:
            plotter.add_mesh(surface, scalars='rgba', rgba=True,
                             show_edges=False, preference='cell')
        elif 'rgb' in surface.cell_data:
            plotter.add_mesh(surface, scalars='rgb', rgb=True,
                             show_edges=False, preference='cell')
        else:
            plotter.add_mesh(surface, scalars='scalars', cmap=self._lookup_table(),
                             show_edges=False, preference='cell')

        for k, lines in enumerate(self.build_lines()):
            plotter.add_mesh(lines, color=INTERSECT_COLORS[k % len(INTERSECT_COLORS)],
                             line_width=line_width)

        if self._markers is not None and len(self._markers) > 0:
            plotter.add_points(pv.PolyData(self._markers), color='white',
                               point_size=10, render_points_as_spheres=True)

    def show(self, off_screen: bool = False, screenshot: Optional[str] = None) -> None:
        """Open a plotter window with the slice."""
        plotter = pv.Plotter(off_screen=off_screen)
        self.add_to(plotter)
        plotter.add_axes()
        logging.info(f"Rendering slice of {self._plane.shape[0]} x {self._plane.shape[1]} samples")
        plotter.show(screenshot=screenshot)
