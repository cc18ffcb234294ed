"""
Slice Composition

Turns a ResampledPlane into colors and opacities for display: grayscale
scaling of anatomical data, opacity masking, and color mixing of a
functional plane over a grayscale background.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union
import logging
import numpy as np

from config import MaskStyle
from .errors import InvalidMaskStyleError, ShapeMismatchError
from .sampler import ResampledPlane


Colormap = Union[str, np.ndarray]


@dataclass
class SliceImage:
    """
    Display-ready representation of a sampled plane.

    Exactly one of `rgb` and `scalars` is set. Scalars are drawn through
    `colormap` with `clim` by the renderer.
    """
    rgb: Optional[np.ndarray] = None  # (n, m, 3) in [0, 1]
    scalars: Optional[np.ndarray] = None  # (n, m)
    alpha: Optional[np.ndarray] = None  # (n, m) in [0, 1]
    colormap: Optional[np.ndarray] = None  # (N, 3)
    clim: Optional[Tuple[float, float]] = None


def first_channel(values: np.ndarray) -> np.ndarray:
    """The (n, m) plane at the first index of all trailing axes."""
    return values[(slice(None), slice(None)) + (0,) * (values.ndim - 2)]


def to_grayscale_rgb(
    values: np.ndarray,
    data_range: Optional[Tuple[float, float]] = None,
    clim: Optional[Tuple[float, float]] = None,
    doscale: bool = True
) -> np.ndarray:
    """
    Convert a plane of values to gray RGB.

    Args:
        values: (n, m) plane
        data_range: (min, max) used for scaling to [0, 1]
        clim: Contrast limits applied after scaling; values become
            (V - clim[0]) / clim[1], saturating at 1
        doscale: Scale by data_range; skip when values already are in [0, 1]

    Returns:
        (n, m, 3) array
    """
    V = np.array(values, dtype=float)
    if doscale and data_range is not None:
        dmin, dmax = data_range
        with np.errstate(divide='ignore', invalid='ignore'):
            V = (V - dmin) / (dmax - dmin)
    V[~np.isfinite(V)] = 0

    if clim is not None:
        V = (V - clim[0]) / clim[1]
        V[V > 1] = 1

    return np.stack([V, V, V], axis=-1)


def background_to_rgb(
    background: np.ndarray,
    background_range: Tuple[float, float]
) -> np.ndarray:
    """Scale a background plane to [0, 1] gray RGB using the whole volume range."""
    bmin, bmax = background_range
    with np.errstate(divide='ignore', invalid='ignore'):
        B = (np.asarray(background, dtype=float) - bmin) / (bmax - bmin)
    B[~np.isfinite(B)] = 0
    return np.stack([B, B, B], axis=-1)


def apply_colormap(
    values: np.ndarray,
    colormap: np.ndarray,
    clim: Optional[Tuple[float, float]] = None
) -> np.ndarray:
    """
    Map values to colors of an (N, 3) colormap.

    Values outside clim saturate at the first/last color, non-finite
    values get the first color.
    """
    colormap = np.asarray(colormap, dtype=float)
    if colormap.ndim != 2 or colormap.shape[1] != 3:
        raise ValueError(f"Colormap must be an (N, 3) array, got shape {colormap.shape}")

    V = np.asarray(values, dtype=float)
    if clim is None:
        finite = V[np.isfinite(V)]
        clim = (finite.min(), finite.max()) if finite.size else (0.0, 1.0)
    lo, hi = clim
    scale = (hi - lo) if hi > lo else 1.0

    with np.errstate(invalid='ignore'):
        index = np.round((V - lo) / scale * (len(colormap) - 1))
    index[~np.isfinite(index)] = 0
    index = np.clip(index, 0, len(colormap) - 1).astype(int)
    return colormap[index]


def rampup_alpha(
    mask: np.ndarray,
    opacity_lim: Optional[Tuple[float, float]] = None
) -> np.ndarray:
    """Opacity rising linearly from 0 at opacity_lim[0] to 1 at opacity_lim[1]."""
    M = np.asarray(mask, dtype=float)
    if opacity_lim is None:
        finite = M[np.isfinite(M)]
        opacity_lim = (finite.min(), finite.max()) if finite.size else (0.0, 1.0)
    lo, hi = opacity_lim
    if hi > lo:
        with np.errstate(invalid='ignore'):
            alpha = np.clip((M - lo) / (hi - lo), 0, 1)
    else:
        alpha = (M >= lo).astype(float)
    alpha[~np.isfinite(alpha)] = 0
    return alpha


def _check_colormap(colormap: Optional[Colormap]) -> Optional[Colormap]:
    if colormap is None or isinstance(colormap, np.ndarray):
        return colormap
    if isinstance(colormap, str):
        if colormap != 'rgb':
            raise ValueError(f"Colormap '{colormap}' is not supported, pass an (N, 3) array")
        return colormap
    return np.asarray(colormap, dtype=float)


def compose_slice(
    plane: ResampledPlane,
    mask_style: Union[MaskStyle, str] = MaskStyle.OPACITY,
    colormap: Optional[Colormap] = None,
    clim: Optional[Tuple[float, float]] = None,
    opacity_lim: Optional[Tuple[float, float]] = None,
    doscale: bool = True
) -> SliceImage:
    """
    Combine the data, mask and background planes for display.

    Args:
        plane: Sampled plane
        mask_style: 'opacity' uses the mask as transparency, 'colormix'
            blends the colored data over the grayscale background
        colormap: None for grayscale, 'rgb' for data with a trailing color
            axis, or an (N, 3) array
        clim: Color limits
        opacity_lim: Mask values mapped to fully transparent/opaque
        doscale: Scale grayscale data by the range of the whole volume

    Returns:
        SliceImage

    Raises:
        InvalidMaskStyleError: For an unknown mask style
        ValueError: For colormix without colormap or background
    """
    if not isinstance(mask_style, MaskStyle):
        try:
            mask_style = MaskStyle(mask_style)
        except ValueError:
            raise InvalidMaskStyleError(f"Unsupported mask style '{mask_style}'") from None
    colormap = _check_colormap(colormap)

    values = plane.values
    if colormap is None:
        image = SliceImage(rgb=to_grayscale_rgb(first_channel(values), plane.data_range, clim, doscale))
    elif isinstance(colormap, str):
        if values.ndim < 3 or values.shape[2] < 3:
            raise ShapeMismatchError(f"RGB data needs a color axis of length 3, got shape {values.shape}")
        rgb = np.array(values[:, :, :3], dtype=float)
        rgb[~np.isfinite(rgb)] = 0
        image = SliceImage(rgb=np.clip(rgb, 0, 1))
    else:
        image = SliceImage(scalars=first_channel(values), colormap=colormap, clim=clim)

    if plane.mask is None:
        return image

    mask = first_channel(plane.mask)
    if mask_style is MaskStyle.OPACITY:
        if plane.background is not None:
            logging.warning("Mask style 'opacity' causes the supplied background image not to be used")
        alpha = np.array(mask, dtype=float)
        alpha[~np.isfinite(alpha)] = 0
        if opacity_lim is not None:
            alpha = rampup_alpha(alpha, opacity_lim)
        image.alpha = alpha
        return image

    # colormix
    if colormap is None or isinstance(colormap, str):
        raise ValueError("Using 'colormix' as mask style requires an explicitly defined colormap")
    if plane.background is None:
        raise ValueError("Using 'colormix' as mask style requires a background")

    data = first_channel(values)
    background = background_to_rgb(first_channel(plane.background), plane.background_range)
    foreground = apply_colormap(data, colormap, clim)
    alpha = rampup_alpha(mask, opacity_lim)
    alpha[~np.isfinite(data)] = 0
    alpha = alpha[..., np.newaxis]
    return SliceImage(rgb=background * (1 - alpha) + foreground * alpha)
