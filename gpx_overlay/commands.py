"""Backend-independent draw commands.

Renderers return these value objects instead of mutating an image; the
canvas backend in :mod:`gpx_overlay.canvas` executes them in order.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

Color = tuple[int, int, int, int]
Point = tuple[float, float]


@dataclass(frozen=True)
class FontSpec:
    size: int


@dataclass(frozen=True)
class StrokeSegment:
    start: Point
    end: Point
    color: Color
    width: float
    round_caps: bool = True


@dataclass(frozen=True)
class GlowPath:
    """Blurred halo drawn beneath a polyline made of ``segments``."""

    segments: tuple[tuple[Point, Point], ...]
    width: float
    blur: float
    color: Color
    offset: tuple[int, int] = (0, 0)


@dataclass(frozen=True)
class FillGradient:
    """Vertical linear gradient filling ``box`` (x0, y0, x1, y1)."""

    box: tuple[int, int, int, int]
    top_color: Color
    bottom_color: Color


@dataclass(frozen=True)
class DrawText:
    position: Point
    text: str
    font: FontSpec
    fill: Color
    # Pillow text anchor: "ls" left/baseline, "rs" right/baseline, "ms" middle/baseline.
    anchor: str = "ls"
    glow: float = 0.0
    glow_color: Color = (255, 255, 255, 128)
    glow_offset: tuple[int, int] = (1, 1)


@dataclass(frozen=True)
class DrawImage:
    source: Path
    position: tuple[int, int]


DrawCommand = StrokeSegment | GlowPath | FillGradient | DrawText | DrawImage
