"""
Loaders Package

Contains data loading strategies for volumes and surface meshes.
"""

from .volume_loader import VolumeLoader
from .mesh_loader import (
    MeshLoader,
    MeshInfo,
    SUPPORTED_EXTENSIONS as MESH_EXTENSIONS,
)

__all__ = [
    'VolumeLoader',
    'MeshLoader',
    'MeshInfo',
    'MESH_EXTENSIONS',
]
