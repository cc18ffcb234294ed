"""
Slicing Errors

Exceptions raised for violated input contracts. A plane that misses the
volume is not an error; it yields an empty ResampledPlane instead.
"""


class SlicingError(ValueError):
    """Base class for plane sampling input errors."""


class DegenerateOrientationError(SlicingError):
    """The plane normal has zero length."""


class SingularTransformError(SlicingError):
    """The voxel-to-world transform cannot be inverted."""


class ShapeMismatchError(SlicingError):
    """Mask or background does not match the data shape."""


class SingleSliceVolumeError(SlicingError):
    """One of the first three volume axes has a single element."""


class InvalidMaskStyleError(SlicingError):
    """The mask style is not one of the supported styles."""
