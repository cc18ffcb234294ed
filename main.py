"""
Oblique Slice Toolkit

Main entry point for the command line interface.
"""

import json
import sys
import logging
from dataclasses import fields
from pathlib import Path

import click
import numpy as np

from config import SliceConfig, Unit, MaskStyle, INTERP_METHODS
from core.sensors import SensorArray, append_sensors
from loaders import VolumeLoader, MeshLoader
from slicing import PlaneSampler, SlicingError, compose_slice, project_markers


def setup_logging(verbose: bool = False):
    """Configure logging to stdout."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """Tools for slicing volumes and combining sensor descriptions."""
    setup_logging(verbose)


@cli.command(name="slice")
@click.argument("volume", type=click.Path(exists=True, path_type=Path))
@click.option("--orientation", nargs=3, type=float, default=(0.0, 0.0, 1.0), show_default=True,
              help="Plane normal in world coordinates")
@click.option("--location", nargs=3, type=float, default=None,
              help="Point on the plane, default is the volume center or origin")
@click.option("--resolution", type=float, default=None, help="Sample spacing in the volume unit")
@click.option("--unit", type=click.Choice([u.value for u in Unit]), default=None)
@click.option("--method", type=click.Choice(INTERP_METHODS), default="nearest", show_default=True)
@click.option("--mask", type=click.Path(exists=True, path_type=Path), default=None,
              help="Mask volume (.npy) with the shape of the data")
@click.option("--background", type=click.Path(exists=True, path_type=Path), default=None,
              help="Background volume (.npy) for colormix")
@click.option("--mask-style", type=click.Choice([s.value for s in MaskStyle]), default="opacity",
              show_default=True)
@click.option("--colormap", type=click.Path(exists=True, path_type=Path), default=None,
              help="Colormap as an (N, 3) array in an .npy file, required for colormix")
@click.option("--clim", nargs=2, type=float, default=None, help="Color limits")
@click.option("--opacity-lim", nargs=2, type=float, default=None,
              help="Mask values mapped to fully transparent and fully opaque")
@click.option("--doscale/--no-doscale", default=True, show_default=True,
              help="Scale grayscale data by the range of the whole volume")
@click.option("--mesh", "meshes", multiple=True, type=click.Path(exists=True, path_type=Path),
              help="Surface to intersect with the plane, may be repeated")
@click.option("--marker", "markers", nargs=3, type=float, multiple=True,
              help="Point to mark when it lies in the plane, may be repeated")
@click.option("--output", "-o", type=click.Path(path_type=Path), default=None,
              help="Save the sampled plane to an .npz file")
@click.option("--show", is_flag=True, help="Render the slice with pyvista")
@click.option("--screenshot", type=click.Path(path_type=Path), default=None,
              help="Render off screen and save an image")
def slice_command(volume, orientation, location, resolution, unit, method, mask, background,
                  mask_style, colormap, clim, opacity_lim, doscale, meshes, markers, output,
                  show, screenshot):
    """Sample a plane through VOLUME (.npy or .npz)."""
    volume_data = VolumeLoader().load(volume)
    config = SliceConfig(
        location=location,
        orientation=orientation,
        unit=unit,
        resolution=resolution,
        interp_method=method,
        mask_style=mask_style,
        clim=clim,
        opacity_lim=opacity_lim,
        doscale=doscale,
    )

    try:
        plane = PlaneSampler(config).sample(
            volume_data,
            mask=np.load(mask) if mask is not None else None,
            background=np.load(background) if background is not None else None,
        )
    except SlicingError as e:
        logging.error(f"Slicing failed: {e}")
        sys.exit(1)

    image = None
    if plane.is_empty:
        logging.info("Nothing to draw: the plane misses the volume")
    else:
        finite = plane.values[np.isfinite(plane.values)]
        logging.info(
            f"Sampled {plane.shape[0]} x {plane.shape[1]} samples "
            f"({plane.geometry.unit.value}, resolution {plane.geometry.resolution:g}) "
            f"using {plane.backend}; values {finite.min():g} .. {finite.max():g}"
        )
        try:
            image = compose_slice(
                plane,
                mask_style=config.mask_style,
                colormap=np.load(colormap) if colormap is not None else None,
                clim=config.clim,
                opacity_lim=config.opacity_lim,
                doscale=config.doscale,
            )
        except ValueError as e:
            logging.error(f"Cannot compose the slice: {e}")
            sys.exit(1)

    lines = []
    if meshes:
        from visualization.mesh_intersection import intersect_mesh
        surfaces = MeshLoader().load_many(meshes)
        for path, surface in zip(meshes, surfaces):
            segments = intersect_mesh(plane.geometry, surface)
            logging.info(f"{path.name}: {len(segments)} intersection segments")
            lines.append(segments)

    in_plane = project_markers(plane.geometry, np.array(markers, dtype=float).reshape(-1, 3))
    if markers:
        logging.info(f"{len(in_plane)} of {len(markers)} markers lie in the plane")

    if output is not None:
        arrays = dict(
            values=plane.values,
            edges=plane.edges,
            plane_to_world=plane.geometry.plane_to_world,
            voxel_coords=plane.voxel_coords,
            markers=in_plane,
        )
        if image is not None and image.rgb is not None:
            arrays["rgb"] = image.rgb
        if image is not None and image.alpha is not None:
            arrays["alpha"] = image.alpha
        np.savez(output, **arrays)
        logging.info(f"Saved sampled plane to {output}")

    if (show or screenshot is not None) and image is not None:
        from visualization.slice_renderer import SliceRenderer
        renderer = SliceRenderer()
        renderer.set_data(plane, image)
        renderer.set_intersections(lines)
        renderer.set_markers(in_plane)
        renderer.show(off_screen=screenshot is not None,
                      screenshot=str(screenshot) if screenshot is not None else None)


def _read_sensors(path: Path) -> SensorArray:
    """Build a SensorArray from a JSON description, ignoring unknown keys."""
    with open(path) as f:
        description = json.load(f)
    known = {field.name for field in fields(SensorArray)}
    ignored = sorted(set(description) - known)
    if ignored:
        logging.warning(f"{path.name}: ignoring unknown keys {', '.join(ignored)}")
    return SensorArray(**{k: v for k, v in description.items() if k in known})


@cli.command(name="append-sensors")
@click.argument("inputs", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("--output", "-o", type=click.Path(path_type=Path), required=True,
              help="JSON file for the combined description")
def append_sensors_command(inputs, output):
    """Concatenate sensor descriptions stored as JSON files."""
    try:
        sensors = [_read_sensors(path) for path in inputs]
        combined = append_sensors(*sensors)
    except (TypeError, ValueError) as e:
        logging.error(f"Cannot append sensors: {e}")
        sys.exit(1)

    result = {
        "label": combined.label,
        "elecpos": combined.elecpos.tolist(),
        "chanpos": combined.chanpos.tolist(),
        "unit": combined.unit,
        "coordsys": combined.coordsys,
    }
    if combined.labelold is not None:
        result["labelold"] = combined.labelold
    if combined.chanposold is not None:
        result["chanposold"] = combined.chanposold.tolist()
    with open(output, "w") as f:
        json.dump(result, f, indent=2)
    logging.info(f"Wrote {combined.num_channels} channels to {output}")


def main():
    """Application entry point."""
    cli()


if __name__ == "__main__":
    main()
