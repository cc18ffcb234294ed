"""
Volume Loader

Reads volumes stored as numpy files. A `.npy` file holds the bare array;
a `.npz` archive holds the array under `anatomy` together with optional
`transform`, `unit` and `coordsys` entries.
"""

from pathlib import Path
import logging
import numpy as np

from core.base import BaseLoader, VolumeData


SUPPORTED_EXTENSIONS = {'.npy', '.npz'}


class VolumeLoader(BaseLoader):
    """Loader for numpy volume files."""

    def can_load(self, source: str | Path) -> bool:
        return Path(source).suffix.lower() in SUPPORTED_EXTENSIONS

    def load(self, source: str | Path) -> VolumeData:
        """
        Load a volume.

        Args:
            source: Path to a .npy or .npz file

        Returns:
            VolumeData

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the format is unsupported or the archive has no volume
        """
        filepath = Path(source)
        if not filepath.exists():
            raise FileNotFoundError(f"Volume file not found: {filepath}")
        if not self.can_load(filepath):
            raise ValueError(f"Unsupported volume format: {filepath.suffix}")

        if filepath.suffix.lower() == '.npy':
            volume = VolumeData(anatomy=np.load(filepath))
        else:
            with np.load(filepath, allow_pickle=False) as archive:
                if 'anatomy' not in archive:
                    raise ValueError(f"No 'anatomy' array in {filepath.name}")
                volume = VolumeData(
                    anatomy=archive['anatomy'],
                    transform=archive['transform'] if 'transform' in archive else np.eye(4),
                    unit=str(archive['unit']) if 'unit' in archive else None,
                    coordsys=str(archive['coordsys']) if 'coordsys' in archive else None,
                )

        logging.info(f"Loaded volume {filepath.name}: shape {volume.shape}")
        return volume
