"""
Core Base Classes

Provides the volume data structure accepted by the plane sampler and
the abstract interfaces for loaders and visualizers.
"""

from dataclasses import dataclass, field
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple, Union
import numpy as np

from config import Unit


@dataclass
class VolumeData:
    """
    Anatomical or functional volume with its geometry.

    Attributes:
        anatomy: N-dimensional array (N >= 3); axes beyond the third are
            extra channels such as time or frequency
        transform: 4x4 matrix mapping 1-based voxel indices to world space
        unit: Unit of the world space, inferred when None
        coordsys: Name of the world coordinate system, e.g. 'ras' or 'ctf'
        metadata: Free-form provenance information
    """
    anatomy: np.ndarray
    transform: np.ndarray = field(default_factory=lambda: np.eye(4))
    unit: Optional[Unit] = None
    coordsys: Optional[str] = None
    metadata: Dict = field(default_factory=dict)

    def __post_init__(self):
        self.anatomy = np.asarray(self.anatomy)
        self.transform = np.asarray(self.transform, dtype=float)
        if self.unit is not None and not isinstance(self.unit, Unit):
            self.unit = Unit(self.unit)

    @property
    def shape(self) -> Tuple:
        return self.anatomy.shape

    @property
    def dim(self) -> Tuple[int, int, int]:
        """Extents of the three spatial axes."""
        return tuple(self.anatomy.shape[:3])


VolumeInput = Union[VolumeData, np.ndarray]


class BaseLoader(ABC):
    """Reads one kind of file into an object the slicing tools accept."""

    @abstractmethod
    def load(self, source: str) -> Any:
        """
        Read `source` from disk.

        Raises:
            FileNotFoundError: If the path does not exist
            ValueError: If the file cannot be interpreted
        """
        pass

    def can_load(self, source: str) -> bool:
        """Whether the file name suggests a format this loader reads."""
        return True


class BaseVisualizer(ABC):
    """Draws a sampled plane and its overlays."""

    @abstractmethod
    def set_data(self, data: Any) -> None:
        """Replace the plane being drawn."""
        pass

    def clear(self) -> None:
        """Forget the current plane and overlays."""
        pass
