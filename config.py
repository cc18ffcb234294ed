"""
Slice Sampling Configuration

Contains constants and default settings for the plane sampling engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple
import numpy as np


class Unit(Enum):
    """Geometrical units a transform can map voxels into."""
    M = "m"
    DM = "dm"
    CM = "cm"
    MM = "mm"


class MaskStyle(Enum):
    """How a mask plane is combined with the data plane."""
    OPACITY = "opacity"
    COLORMIX = "colormix"


# Size of one unit expressed in millimeters
UNIT_IN_MM: dict[Unit, float] = {
    Unit.M: 1000.0,
    Unit.DM: 100.0,
    Unit.CM: 10.0,
    Unit.MM: 1.0,
}

# Grid on which in-plane bounds are rounded, in the unit itself
# (m rounds to cm, cm and dm round to mm, mm rounds to whole mm)
UNIT_ROUNDING: dict[Unit, float] = {
    Unit.M: 0.01,
    Unit.DM: 0.01,
    Unit.CM: 0.1,
    Unit.MM: 1.0,
}

# Order used when estimating units from an object size
UNIT_ESTIMATION_ORDER: Tuple[Unit, ...] = (Unit.M, Unit.DM, Unit.CM, Unit.MM)

# Methods accepted by the interpolating backend
INTERP_METHODS = ("nearest", "linear", "slinear", "cubic", "quintic", "pchip")


@dataclass
class SliceConfig:
    """Options for sampling one plane through a volume."""
    transform: np.ndarray = field(default_factory=lambda: np.eye(4))  # voxel -> world
    location: Optional[Tuple[float, float, float]] = None  # default: volume center or origin
    orientation: Tuple[float, float, float] = (0.0, 0.0, 1.0)  # plane normal
    unit: Optional[Unit] = None  # inferred when None
    resolution: Optional[float] = None  # sample spacing in unit, default 1 mm
    interp_method: str = "nearest"
    coordsys: Optional[str] = None

    # Composition options
    mask_style: MaskStyle = MaskStyle.OPACITY
    opacity_lim: Optional[Tuple[float, float]] = None
    clim: Optional[Tuple[float, float]] = None
    doscale: bool = True  # scale grayscale values to the data range

    def __post_init__(self):
        self.transform = np.asarray(self.transform, dtype=float)
        if self.transform.shape != (4, 4):
            raise ValueError(f"transform must be 4x4, got {self.transform.shape}")
        if self.unit is not None and not isinstance(self.unit, Unit):
            self.unit = Unit(self.unit)
        if not isinstance(self.mask_style, MaskStyle):
            try:
                self.mask_style = MaskStyle(self.mask_style)
            except ValueError:
                from slicing.errors import InvalidMaskStyleError
                raise InvalidMaskStyleError(
                    f"Unsupported mask style '{self.mask_style}', "
                    f"expected 'opacity' or 'colormix'"
                ) from None
        if self.interp_method not in INTERP_METHODS:
            raise ValueError(
                f"Unsupported interpolation method '{self.interp_method}', "
                f"expected one of {', '.join(INTERP_METHODS)}"
            )
        if self.resolution is not None and self.resolution <= 0:
            raise ValueError("resolution must be positive")
