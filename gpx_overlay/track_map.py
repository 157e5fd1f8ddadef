from __future__ import annotations

from typing import Callable, Iterator

import numpy as np
from PIL import ImageColor

from .commands import Color, DrawCommand, GlowPath, StrokeSegment
from .config import (
    GLOW_BLUR_RATIO,
    GLOW_COLOR,
    GLOW_OFFSET,
    HUE_LIGHTNESS,
    HUE_SATURATION,
    STROKE_WIDTH_RATIO,
)
from .layout import BoundingBox, Canvas, ScaleParams, to_pixel
from .track import EnrichedTrack

Progress = Callable[[int], object]


def hue_for_elevation(elevation: float, min_elevation: float, max_elevation: float) -> float:
    """Map elevation to an HSL hue: 255 (blue) at the lowest point down to 5 (red) at the top."""
    span = max_elevation - min_elevation
    if span <= 0:
        return 255.0
    hue = 255 - (elevation - min_elevation) / span * 250
    return float(np.clip(hue, 0.0, 255.0))


def alpha_for_speed(speed: float, max_speed: float) -> float:
    if max_speed <= 0:
        return 0.3
    return float(np.clip(round(speed * 0.7 / max_speed + 0.3, 2), 0.0, 1.0))


def segment_color(hue: float, alpha: float) -> Color:
    r, g, b = ImageColor.getrgb(f"hsl({hue:.2f}, {HUE_SATURATION}%, {HUE_LIGHTNESS}%)")
    return r, g, b, int(round(alpha * 255))


def stroke_width(canvas: Canvas) -> float:
    return max(1.0, min(canvas.width, canvas.height) * STROKE_WIDTH_RATIO)


def track_pixels(track: EnrichedTrack, bounds: BoundingBox, params: ScaleParams) -> list[tuple[int, int]]:
    return [to_pixel(point, bounds, params) for point in track.points]


def glow_command(pixels: list[tuple[int, int]], canvas: Canvas) -> GlowPath:
    return GlowPath(
        segments=tuple(zip(pixels[:-1], pixels[1:])),
        width=stroke_width(canvas),
        blur=canvas.width * GLOW_BLUR_RATIO,
        color=GLOW_COLOR,
        offset=GLOW_OFFSET,
    )


def iter_segment_commands(
    track: EnrichedTrack,
    pixels: list[tuple[int, int]],
    canvas: Canvas,
    progress: Progress | None = None,
) -> Iterator[StrokeSegment]:
    """Yield one stroke per consecutive point pair, styled by the later point.

    ``progress(1)`` is called once per point, after that point's segment has
    been consumed, so a lazy consumer sees progress track actual drawing.
    """
    min_ele = track.min_elevation
    max_ele = track.max_elevation
    max_speed = track.metrics.max_speed
    width = stroke_width(canvas)

    for i, point in enumerate(track.points):
        if i > 0:
            hue = hue_for_elevation(point.elevation, min_ele, max_ele)
            alpha = alpha_for_speed(point.speed, max_speed)
            yield StrokeSegment(
                start=pixels[i - 1],
                end=pixels[i],
                color=segment_color(hue, alpha),
                width=width,
            )
        if progress is not None:
            progress(1)


def track_commands(
    track: EnrichedTrack,
    canvas: Canvas,
    bounds: BoundingBox,
    params: ScaleParams,
    progress: Progress | None = None,
) -> list[DrawCommand]:
    pixels = track_pixels(track, bounds, params)
    commands: list[DrawCommand] = [glow_command(pixels, canvas)]
    commands.extend(iter_segment_commands(track, pixels, canvas, progress))
    return commands
