"""
Mesh Intersection

Line segments where triangulated surfaces cross a slice plane.
"""

from typing import Any, List, Sequence
import numpy as np

try:
    import trimesh
    HAS_TRIMESH = True
except ImportError:
    HAS_TRIMESH = False

from slicing.geometry import PlaneGeometry


def as_trimesh(mesh: Any):
    """
    Convert a surface description to a trimesh.Trimesh.

    Accepts a Trimesh, a (vertices, faces) pair, or a mapping with 'pos'
    (or the older 'pnt') and 'tri' entries. Returns None for surfaces
    without vertices or faces.
    """
    if not HAS_TRIMESH:
        raise ImportError(
            "trimesh is required for mesh intersections. "
            "Install it with: pip install trimesh"
        )
    if isinstance(mesh, trimesh.Trimesh):
        return mesh if len(mesh.faces) > 0 else None

    if isinstance(mesh, dict):
        vertices = mesh.get('pos', mesh.get('pnt'))
        faces = mesh.get('tri')
    else:
        vertices, faces = mesh
    if vertices is None or faces is None or len(vertices) == 0 or len(faces) == 0:
        return None
    return trimesh.Trimesh(
        vertices=np.asarray(vertices, dtype=float),
        faces=np.asarray(faces, dtype=np.int64),
        process=False,
    )


def intersect_mesh(geometry: PlaneGeometry, mesh: Any) -> np.ndarray:
    """
    Intersect one surface with the slice plane.

    Args:
        geometry: Resolved plane geometry
        mesh: Surface, see as_trimesh

    Returns:
        (K, 2, 3) array of line segments in world coordinates
    """
    surface = as_trimesh(mesh)
    if surface is None:
        return np.zeros((0, 2, 3))
    lines = trimesh.intersections.mesh_plane(
        surface,
        plane_normal=geometry.orientation,
        plane_origin=geometry.location,
    )
    return np.asarray(lines, dtype=float).reshape(-1, 2, 3)


def intersect_meshes(geometry: PlaneGeometry, meshes: Sequence[Any]) -> List[np.ndarray]:
    """Intersect every surface with the plane, one segment array per surface."""
    return [intersect_mesh(geometry, mesh) for mesh in meshes]
