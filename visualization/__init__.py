"""
Visualization Package

Contains the renderer and overlay helpers for sampled slices.
"""

from .slice_renderer import SliceRenderer, HAS_PYVISTA
from .mesh_intersection import intersect_mesh, intersect_meshes, HAS_TRIMESH

__all__ = [
    'SliceRenderer',
    'intersect_mesh',
    'intersect_meshes',
    'HAS_PYVISTA',
    'HAS_TRIMESH',
]
