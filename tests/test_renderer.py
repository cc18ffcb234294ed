"""Tests for building render geometry of sampled planes."""

import numpy as np
import pytest

pv = pytest.importorskip("pyvista")

from slicing.compose import compose_slice
from visualization.slice_renderer import SliceRenderer


@pytest.fixture
def plane(sampler, ramp_volume):
    return sampler.sample(ramp_volume, location=(0, 0, 4))


@pytest.fixture
def masked_plane(sampler, ramp_volume):
    return sampler.sample(ramp_volume, mask=(ramp_volume > 100).astype(float),
                          location=(0, 0, 4))


def test_surface_has_one_cell_per_sample(plane):
    renderer = SliceRenderer()
    renderer.set_data(plane)
    surface = renderer.build_surface()

    n, m = plane.shape
    assert surface.n_cells == n * m
    assert surface.n_points == (n + 1) * (m + 1)
    assert surface.cell_data['rgb'].dtype == np.uint8
    assert 'rgba' not in surface.cell_data
    np.testing.assert_allclose(surface.bounds[4:], (4, 4))


def test_masked_surface_is_rgba(masked_plane):
    renderer = SliceRenderer()
    renderer.set_data(masked_plane, compose_slice(masked_plane, mask_style="opacity"))
    surface = renderer.build_surface()

    rgba = surface.cell_data['rgba']
    assert rgba.dtype == np.uint8
    assert rgba.shape == (masked_plane.values.size, 4)
    assert 'rgb' not in surface.cell_data
    np.testing.assert_array_equal(
        np.sort(rgba[:, 3]), np.sort(masked_plane.mask.ravel() * 255).astype(np.uint8)
    )


def test_masked_scalars_are_colored(masked_plane):
    renderer = SliceRenderer()
    colormap = np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 0.0]])
    renderer.set_data(masked_plane, compose_slice(masked_plane, colormap=colormap))
    surface = renderer.build_surface()
    rgba = surface.cell_data['rgba']
    assert set(np.unique(rgba[:, 2])) == {0}
    assert set(np.unique(rgba[:, 3])) == {0, 255}


def test_surface_with_scalars(plane):
    renderer = SliceRenderer()
    colormap = np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 0.0]])
    renderer.set_data(plane, compose_slice(plane, colormap=colormap))
    surface = renderer.build_surface()
    assert 'scalars' in surface.cell_data
    assert 'rgb' not in surface.cell_data


def test_cell_order_follows_grid(plane):
    renderer = SliceRenderer()
    renderer.set_data(plane, compose_slice(plane, colormap=np.eye(3)))
    surface = renderer.build_surface()
    centers = surface.cell_centers().points
    scalars = surface.cell_data['scalars']

    # each cell center maps back to the sample it was built from
    geometry = plane.geometry
    relative = centers - geometry.location
    x = relative @ geometry.basis_x
    y = relative @ geometry.basis_y
    i = np.rint((x - plane.plane_x[0, 0]) / geometry.resolution).astype(int)
    j = np.rint((y - plane.plane_y[0, 0]) / geometry.resolution).astype(int)
    np.testing.assert_array_equal(scalars, plane.values[i, j])


def test_lines():
    renderer = SliceRenderer()
    segments = np.array([[[0, 0, 0], [1, 0, 0]], [[1, 0, 0], [1, 1, 0]]], dtype=float)
    renderer.set_intersections([segments, np.zeros((0, 2, 3))])
    lines = renderer.build_lines()
    assert len(lines) == 1
    assert lines[0].n_lines == 2


def test_requires_data():
    renderer = SliceRenderer()
    assert not renderer.has_data
    with pytest.raises(RuntimeError):
        renderer.build_surface()


def test_clear(plane):
    renderer = SliceRenderer()
    renderer.set_data(plane)
    renderer.set_markers(np.zeros(3))
    renderer.clear()
    assert not renderer.has_data


def test_add_to_off_screen_plotter(plane):
    renderer = SliceRenderer()
    renderer.set_data(plane)
    renderer.set_intersections([np.array([[[1, 1, 4], [3, 3, 4]]], dtype=float)])
    renderer.set_markers(np.array([[2.0, 2.0, 4.0]]))
    plotter = pv.Plotter(off_screen=True)
    renderer.add_to(plotter)
    assert len(plotter.renderer.actors) >= 3
    plotter.close()


@pytest.mark.parametrize("mask_style", ["opacity", "colormix"])
def test_masked_plane_renders_off_screen(sampler, ramp_volume, tmp_path, mask_style):
    plane = sampler.sample(ramp_volume, mask=(ramp_volume > 100).astype(float),
                           background=ramp_volume, location=(0, 0, 4))
    image = compose_slice(plane, mask_style=mask_style,
                          colormap=np.array([[0.0, 0.0, 1.0], [1.0, 0.0, 0.0]]))
    renderer = SliceRenderer()
    renderer.set_data(plane, image)
    screenshot = tmp_path / "slice.png"
    renderer.show(off_screen=True, screenshot=str(screenshot))
    assert screenshot.exists()
