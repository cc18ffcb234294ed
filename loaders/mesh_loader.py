"""
Surface Loader

Reads triangulated surfaces (cortex, scalp, skull, electrodes grids) whose
intersection with a slice plane is drawn over the slice. Vertices are
kept exactly as stored so they stay in the world space of the volume.
"""

from pathlib import Path
from dataclasses import dataclass
from typing import List, Optional
import logging
import numpy as np

try:
    import trimesh
    HAS_TRIMESH = True
except ImportError:
    HAS_TRIMESH = False

from core.base import BaseLoader


# File formats trimesh reads as triangle surfaces
SUPPORTED_EXTENSIONS = {'.stl', '.ply', '.obj', '.off', '.glb', '.gltf'}


@dataclass
class MeshInfo:
    """Summary of a loaded surface."""
    name: str
    num_vertices: int
    num_faces: int
    bounds_min: np.ndarray  # (3,)
    bounds_max: np.ndarray  # (3,)

    def __str__(self) -> str:
        low = np.round(self.bounds_min, 2).tolist()
        high = np.round(self.bounds_max, 2).tolist()
        return f"{self.name}: {self.num_faces:,} faces, extent {low} .. {high}"


class MeshLoader(BaseLoader):
    """
    Loader for surface files backed by trimesh.

    Attributes:
        mesh: Most recently loaded surface
        info: MeshInfo of that surface
    """

    def __init__(self):
        if not HAS_TRIMESH:
            raise ImportError(
                "trimesh is required for mesh loading. "
                "Install it with: pip install trimesh"
            )
        self.mesh: Optional[trimesh.Trimesh] = None
        self.info: Optional[MeshInfo] = None

    def can_load(self, source: str | Path) -> bool:
        return Path(source).suffix.lower() in SUPPORTED_EXTENSIONS

    @staticmethod
    def _single_surface(loaded, name: str) -> "trimesh.Trimesh":
        """Merge the geometry of a scene into one surface."""
        if isinstance(loaded, trimesh.Trimesh):
            return loaded
        if isinstance(loaded, trimesh.Scene):
            parts = [g for g in loaded.geometry.values() if isinstance(g, trimesh.Trimesh)]
            if not parts:
                raise ValueError(f"{name} contains no triangle surfaces")
            if len(parts) > 1:
                logging.info(f"{name}: merging {len(parts)} surfaces")
            return parts[0] if len(parts) == 1 else trimesh.util.concatenate(parts)
        raise ValueError(f"{name} does not hold a triangle surface ({type(loaded).__name__})")

    def load(self, source: str | Path) -> "trimesh.Trimesh":
        """
        Load a surface file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the format is not supported or holds no surface
        """
        filepath = Path(source)
        if not filepath.exists():
            raise FileNotFoundError(f"Mesh file not found: {filepath}")
        if not self.can_load(filepath):
            raise ValueError(
                f"Unsupported mesh format {filepath.suffix}, "
                f"expected one of {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
            )

        try:
            loaded = trimesh.load(filepath, process=False)
        except Exception as e:
            raise ValueError(f"Failed to read {filepath.name}: {e}") from e
        self.mesh = self._single_surface(loaded, filepath.name)

        self.info = MeshInfo(
            name=filepath.name,
            num_vertices=len(self.mesh.vertices),
            num_faces=len(self.mesh.faces),
            bounds_min=self.mesh.bounds[0],
            bounds_max=self.mesh.bounds[1],
        )
        logging.info(f"Loaded surface {self.info}")
        return self.mesh

    def load_many(self, sources: List[str | Path]) -> List["trimesh.Trimesh"]:
        """Load several surfaces, e.g. one per tissue boundary."""
        return [self.load(source) for source in sources]
