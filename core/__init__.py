"""
Core Package

Contains the volume data structure, sensor descriptions and abstract
interfaces for loaders and visualizers.
"""

from .base import (
    VolumeData,
    BaseLoader,
    BaseVisualizer,
)
from .sensors import SensorArray, append_sensors

__all__ = [
    'VolumeData',
    'BaseLoader',
    'BaseVisualizer',
    'SensorArray',
    'append_sensors',
]
