"""Tests for the command line interface."""

import json

import numpy as np
import pytest
from click.testing import CliRunner

from main import cli


def test_slice_to_npz(tmp_path):
    volume = tmp_path / "volume.npy"
    np.save(volume, np.arange(6 * 7 * 8, dtype=float).reshape(6, 7, 8))
    output = tmp_path / "plane.npz"

    result = CliRunner().invoke(cli, [
        "slice", str(volume), "--location", "0", "0", "4", "-o", str(output),
    ])
    assert result.exit_code == 0, result.output
    with np.load(output) as saved:
        assert sorted(saved["values"].shape) == [6, 7]
        assert saved["edges"].shape[-1] == 3
        assert saved["plane_to_world"].shape == (4, 4)


def test_slice_rejects_single_slice_volume(tmp_path):
    volume = tmp_path / "flat.npy"
    np.save(volume, np.zeros((1, 7, 8)))
    result = CliRunner().invoke(cli, ["slice", str(volume)])
    assert result.exit_code == 1


def test_append_sensors(tmp_path):
    inputs = []
    for prefix, offset in (("A", 0), ("B", 10)):
        path = tmp_path / f"{prefix}.json"
        path.write_text(json.dumps({
            "label": [f"{prefix}1", f"{prefix}2"],
            "elecpos": [[offset, 0, 0], [offset + 1, 0, 0]],
            "unit": "mm",
        }))
        inputs.append(str(path))
    output = tmp_path / "combined.json"

    result = CliRunner().invoke(cli, ["append-sensors", *inputs, "-o", str(output)])
    assert result.exit_code == 0, result.output
    combined = json.loads(output.read_text())
    assert combined["label"] == ["A1", "A2", "B1", "B2"]
    assert combined["unit"] == "mm"
    assert len(combined["chanpos"]) == 4


def test_append_sensors_unit_mismatch(tmp_path):
    inputs = []
    for prefix, unit in (("A", "mm"), ("B", "cm")):
        path = tmp_path / f"{prefix}.json"
        path.write_text(json.dumps({"label": [f"{prefix}1"], "elecpos": [[0, 0, 0]], "unit": unit}))
        inputs.append(str(path))
    result = CliRunner().invoke(cli, ["append-sensors", *inputs, "-o", str(tmp_path / "out.json")])
    assert result.exit_code == 1


def _write_volumes(tmp_path):
    data = np.arange(6 * 7 * 8, dtype=float).reshape(6, 7, 8)
    paths = {}
    for name, array in (("volume", data), ("mask", np.ones(data.shape)), ("background", -data)):
        paths[name] = tmp_path / f"{name}.npy"
        np.save(paths[name], array)
    paths["colormap"] = tmp_path / "colormap.npy"
    np.save(paths["colormap"], np.array([[0.0, 0.0, 1.0], [1.0, 0.0, 0.0]]))
    return paths


def test_slice_colormix(tmp_path):
    paths = _write_volumes(tmp_path)
    output = tmp_path / "plane.npz"

    result = CliRunner().invoke(cli, [
        "slice", str(paths["volume"]), "--location", "0", "0", "4",
        "--mask", str(paths["mask"]), "--background", str(paths["background"]),
        "--mask-style", "colormix", "--colormap", str(paths["colormap"]),
        "--opacity-lim", "0", "1", "-o", str(output),
    ])
    assert result.exit_code == 0, result.output
    with np.load(output) as saved:
        rgb = saved["rgb"]
        assert rgb.shape == saved["values"].shape + (3,)
    # fully opaque mask: only colormap colors, no gray background
    np.testing.assert_array_equal(rgb[..., 1], 0)


def test_slice_colormix_without_colormap_fails(tmp_path):
    paths = _write_volumes(tmp_path)
    result = CliRunner().invoke(cli, [
        "slice", str(paths["volume"]), "--location", "0", "0", "4",
        "--mask", str(paths["mask"]), "--background", str(paths["background"]),
        "--mask-style", "colormix",
    ])
    assert result.exit_code == 1
    assert not isinstance(result.exception, ValueError)


def test_slice_opacity_saves_alpha(tmp_path):
    paths = _write_volumes(tmp_path)
    output = tmp_path / "plane.npz"
    result = CliRunner().invoke(cli, [
        "slice", str(paths["volume"]), "--location", "0", "0", "4",
        "--mask", str(paths["mask"]), "--clim", "0", "1", "--no-doscale", "-o", str(output),
    ])
    assert result.exit_code == 0, result.output
    with np.load(output) as saved:
        np.testing.assert_array_equal(saved["alpha"], 1)
        assert saved["rgb"].shape[-1] == 3


def test_slice_markers(tmp_path):
    paths = _write_volumes(tmp_path)
    output = tmp_path / "plane.npz"
    result = CliRunner().invoke(cli, [
        "slice", str(paths["volume"]), "--location", "0", "0", "4",
        "--marker", "2", "3", "4", "--marker", "2", "3", "5", "-o", str(output),
    ])
    assert result.exit_code == 0, result.output
    with np.load(output) as saved:
        np.testing.assert_allclose(saved["markers"], [[2, 3, 4]])


def _write_json(path, description):
    path.write_text(json.dumps(description))
    return str(path)


def test_append_sensors_ignores_unknown_keys(tmp_path):
    inputs = [
        _write_json(tmp_path / "a.json", {"label": ["A1"], "elecpos": [[0, 0, 0]], "type": "ecog"}),
        _write_json(tmp_path / "b.json", {"label": ["B1"], "elecpos": [[1, 0, 0]]}),
    ]
    output = tmp_path / "out.json"
    result = CliRunner().invoke(cli, ["append-sensors", *inputs, "-o", str(output)])
    assert result.exit_code == 0, result.output
    assert json.loads(output.read_text())["label"] == ["A1", "B1"]


def test_append_sensors_incomplete_description(tmp_path):
    inputs = [_write_json(tmp_path / "a.json", {"label": ["A1"]})]
    result = CliRunner().invoke(cli, ["append-sensors", *inputs, "-o", str(tmp_path / "out.json")])
    assert result.exit_code == 1
    assert not isinstance(result.exception, TypeError)


def test_slice_masked_screenshot(tmp_path):
    pytest.importorskip("pyvista")
    paths = _write_volumes(tmp_path)
    screenshot = tmp_path / "slice.png"
    result = CliRunner().invoke(cli, [
        "slice", str(paths["volume"]), "--location", "0", "0", "4",
        "--mask", str(paths["mask"]), "--screenshot", str(screenshot),
    ])
    assert result.exit_code == 0, result.output
    assert screenshot.exists()
