"""Tests for composing sampled planes into display colors."""

import logging

import numpy as np
import pytest

from slicing.compose import (
    apply_colormap,
    compose_slice,
    rampup_alpha,
    to_grayscale_rgb,
)
from slicing.errors import InvalidMaskStyleError, ShapeMismatchError


RED = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])


@pytest.fixture
def axial(sampler, ramp_volume):
    def sample(**kwargs):
        return sampler.sample(ramp_volume, location=(0, 0, 4), **kwargs)
    return sample


def test_grayscale_uses_whole_volume_range(axial, ramp_volume):
    plane = axial()
    image = compose_slice(plane)

    assert image.rgb.shape == plane.shape + (3,)
    assert image.alpha is None
    np.testing.assert_allclose(image.rgb[..., 0], plane.values / ramp_volume.max())
    np.testing.assert_array_equal(image.rgb[..., 0], image.rgb[..., 2])


def test_grayscale_clim():
    rgb = to_grayscale_rgb(np.array([[0.0, 5.0, 10.0]]), (0.0, 10.0), clim=(0.0, 0.5))
    np.testing.assert_allclose(rgb[0, :, 0], [0.0, 1.0, 1.0])


def test_grayscale_without_scaling():
    rgb = to_grayscale_rgb(np.array([[0.25, np.nan]]), (0.0, 10.0), doscale=False)
    np.testing.assert_allclose(rgb[0, :, 1], [0.25, 0.0])


def test_opacity_mask(axial, ramp_volume):
    mask = (ramp_volume > 200).astype(float)
    plane = axial(mask=mask)
    image = compose_slice(plane, mask_style="opacity")
    np.testing.assert_array_equal(image.alpha, plane.mask)


def test_opacity_mask_with_limits(axial, ramp_volume):
    plane = axial(mask=ramp_volume)
    image = compose_slice(plane, opacity_lim=(0, 100))
    assert image.alpha.min() >= 0
    assert image.alpha.max() == 1
    np.testing.assert_allclose(image.alpha, np.clip(plane.mask / 100, 0, 1))


def test_opacity_ignores_background(axial, ramp_volume, caplog):
    plane = axial(mask=np.ones(ramp_volume.shape), background=ramp_volume)
    with caplog.at_level(logging.WARNING):
        compose_slice(plane, mask_style="opacity")
    assert "background" in caplog.text


def test_colormix_opaque_shows_colormap(axial, ramp_volume):
    plane = axial(mask=np.ones(ramp_volume.shape), background=ramp_volume)
    image = compose_slice(plane, mask_style="colormix", colormap=RED, opacity_lim=(0, 1))
    expected = apply_colormap(plane.values, RED)
    np.testing.assert_allclose(image.rgb, expected)


def test_colormix_transparent_shows_background(axial, ramp_volume):
    plane = axial(mask=np.zeros(ramp_volume.shape), background=ramp_volume)
    image = compose_slice(plane, mask_style="colormix", colormap=RED, opacity_lim=(0, 1))
    gray = plane.background / ramp_volume.max()
    np.testing.assert_allclose(image.rgb, np.stack([gray, gray, gray], axis=-1))


def test_colormix_requires_colormap_and_background(axial, ramp_volume):
    mask = np.ones(ramp_volume.shape)
    with pytest.raises(ValueError, match="colormap"):
        compose_slice(axial(mask=mask, background=ramp_volume), mask_style="colormix")
    with pytest.raises(ValueError, match="background"):
        compose_slice(axial(mask=mask), mask_style="colormix", colormap=RED)


def test_invalid_mask_style(axial):
    with pytest.raises(InvalidMaskStyleError):
        compose_slice(axial(), mask_style="outline")


def test_named_colormaps_are_not_supported(axial):
    with pytest.raises(ValueError):
        compose_slice(axial(), colormap="jet")


def test_rgb_colormap(sampler):
    volume = np.random.default_rng(3).random((6, 7, 8, 3))
    plane = sampler.sample(volume, location=(0, 0, 4))
    image = compose_slice(plane, colormap="rgb")
    np.testing.assert_allclose(image.rgb, plane.values)


def test_rgb_colormap_needs_color_axis(axial):
    with pytest.raises(ShapeMismatchError):
        compose_slice(axial(), colormap="rgb")


def test_scalar_colormap_is_left_to_renderer(axial):
    plane = axial()
    image = compose_slice(plane, colormap=RED, clim=(0, 10))
    assert image.rgb is None
    np.testing.assert_array_equal(image.scalars, plane.values)
    assert image.clim == (0, 10)


def test_apply_colormap():
    colors = np.array([[0.0, 0.0, 0.0], [0.5, 0.5, 0.5], [1.0, 1.0, 1.0]])
    mapped = apply_colormap(np.array([0.0, 1.0, 2.0, 5.0, np.nan]), colors, clim=(0, 2))
    np.testing.assert_allclose(mapped[:, 0], [0.0, 0.5, 1.0, 1.0, 0.0])

    with pytest.raises(ValueError):
        apply_colormap(np.zeros(3), np.zeros((3, 4)))


def test_rampup_alpha():
    alpha = rampup_alpha(np.array([0.0, 0.5, 1.0, 2.0, np.nan]), (0.0, 1.0))
    np.testing.assert_allclose(alpha, [0.0, 0.5, 1.0, 1.0, 0.0])

    step = rampup_alpha(np.array([0.0, 1.0, 2.0]), (1.0, 1.0))
    np.testing.assert_allclose(step, [0.0, 1.0, 1.0])
