#!/usr/bin/env python3
"""
GPX Overlay
===========

Draws a GPX activity onto a photo for sharing:
- Track polyline coloured by elevation, faded by speed
- Distance, average/max speed, climb and total time
- Logo and athlete sign

Usage:
    gpx-to-instagram -g Ride.gpx -i sky.jpg -o sky-ride.jpg -a "@rider"
"""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from tqdm import tqdm

from .canvas import PillowCanvas, encode_image, load_source_image, square_canvas
from .config import DEFAULT_OUTPUT, GPX_EXTENSIONS, IMAGE_EXTENSIONS, LOGO_PATH
from .errors import InvalidArgumentError, OverlayError
from .layout import Canvas, bounding_box, solve_scale
from .metrics_overlay import backdrop_commands, branding_commands, metric_commands
from .track import enrich_track, load_gpx
from .track_map import glow_command, iter_segment_commands, track_pixels


def assert_extension(path: Path, extensions: Sequence[str], message: str) -> None:
    if path.suffix.lower() not in extensions:
        raise InvalidArgumentError(message)


def validate_inputs(gpx_path: Path, image_path: Path) -> None:
    assert_extension(gpx_path, GPX_EXTENSIONS, "Incorrect GPX file name")
    if not gpx_path.is_file():
        raise FileNotFoundError("Unreadable GPX file")
    assert_extension(image_path, IMAGE_EXTENSIONS, "Incorrect image file name")
    if not image_path.is_file():
        raise FileNotFoundError("Unreadable image file")


def render_overlay(
    gpx_path: Path | str,
    image_path: Path | str,
    output_path: Path | str = DEFAULT_OUTPUT,
    athlete: str = "",
    *,
    progress: bool = True,
    logo_path: Path = LOGO_PATH,
) -> Path:
    """Render the annotated track image and write it to ``output_path``."""
    gpx_path = Path(gpx_path)
    image_path = Path(image_path)
    output_path = Path(output_path)
    validate_inputs(gpx_path, image_path)

    print(f"[gpx-overlay] Reading GPX file {gpx_path}")
    raw_points = load_gpx(gpx_path)

    print(f"[gpx-overlay] Reading image file {image_path}")
    source = load_source_image(image_path)
    canvas = Canvas.square(*source.size)
    surface = PillowCanvas(square_canvas(source))
    logo_size = surface.asset(logo_path).size

    print("[gpx-overlay] Preparing the data")
    track = enrich_track(raw_points)
    bounds = bounding_box(track.points)
    params = solve_scale(bounds, canvas)
    pixels = track_pixels(track, bounds, params)

    surface.execute(backdrop_commands(canvas))
    surface.execute([glow_command(pixels, canvas)])
    with tqdm(total=len(track.points), desc="Rendering map", disable=not progress) as bar:
        surface.execute(iter_segment_commands(track, pixels, canvas, progress=bar.update))

    print("[gpx-overlay] Rendering metrics")
    surface.execute(metric_commands(canvas, track.metrics, surface.measure))
    surface.execute(branding_commands(canvas, athlete, logo_size, logo_path, surface.measure))

    print(f"[gpx-overlay] Writing image file {output_path}")
    return encode_image(surface.image, output_path)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="gpx-to-instagram",
        description="Overlay a GPX track onto an image.",
    )
    parser.add_argument("-g", "--gpx", type=Path, required=True, help="Input GPX file.")
    parser.add_argument("-i", "--image", type=Path, required=True, help="Input image to be drawn on.")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path(DEFAULT_OUTPUT),
        help=f"Output image path; .png writes PNG, anything else JPEG (default: {DEFAULT_OUTPUT}).",
    )
    parser.add_argument("-a", "--athlete", default="", help="Athlete vanity sign.")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        render_overlay(args.gpx, args.image, args.output, args.athlete)
    except (OverlayError, OSError) as exc:
        print(f"Error {exc}")
        return 1
    print("Done!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
