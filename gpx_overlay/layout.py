from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .config import (
    LABEL_BAND_RESERVE,
    MARGIN_BOTTOM,
    MARGIN_LEFT,
    MARGIN_RIGHT,
    MARGIN_TOP,
)
from .errors import DegenerateTrackError
from .track import ProjectedPoint


@dataclass(frozen=True)
class Margins:
    left: float
    top: float
    right: float
    bottom: float


@dataclass(frozen=True)
class Canvas:
    width: int
    height: int
    margins: Margins

    @classmethod
    def square(cls, source_width: int, source_height: int) -> "Canvas":
        """Square canvas cropped to the smaller source side, with default margins."""
        side = min(source_width, source_height)
        margins = Margins(
            left=side * MARGIN_LEFT,
            top=side * MARGIN_TOP,
            right=side * MARGIN_RIGHT,
            bottom=side * MARGIN_BOTTOM,
        )
        return cls(width=side, height=side, margins=margins)


@dataclass(frozen=True)
class BoundingBox:
    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def span_x(self) -> float:
        return self.max_x - self.min_x

    @property
    def span_y(self) -> float:
        return self.max_y - self.min_y


@dataclass(frozen=True)
class ScaleParams:
    scale: float
    origin_offset_x: float
    origin_offset_y: float


def bounding_box(points: Sequence[ProjectedPoint]) -> BoundingBox:
    coords = np.array([(p.planar_x, p.planar_y) for p in points], dtype=float)
    if coords.size == 0:
        raise DegenerateTrackError("Cannot compute bounds of an empty track")
    mins = coords.min(axis=0)
    maxs = coords.max(axis=0)
    return BoundingBox(
        min_x=float(mins[0]),
        max_x=float(maxs[0]),
        min_y=float(mins[1]),
        max_y=float(maxs[1]),
    )


def candidate_scales(bounds: BoundingBox, canvas: Canvas) -> tuple[float | None, float | None]:
    """Pixels-per-unit ratios that fit the track horizontally and vertically.

    An axis with zero extent has no defined ratio and yields ``None``.
    """
    m = canvas.margins
    usable_w = canvas.width - m.left - m.right
    usable_h = canvas.height - m.top - m.bottom - canvas.height * LABEL_BAND_RESERVE
    rx = usable_w / bounds.span_x if bounds.span_x > 0 else None
    ry = usable_h / bounds.span_y if bounds.span_y > 0 else None
    return rx, ry


def solve_scale(bounds: BoundingBox, canvas: Canvas) -> ScaleParams:
    """Single aspect-preserving scale plus the offsets that center the track."""
    rx, ry = candidate_scales(bounds, canvas)
    if rx is None and ry is None:
        raise DegenerateTrackError("Track has zero spatial extent and cannot be scaled")
    if rx is None or ry is None:
        axis = "longitude" if rx is None else "latitude"
        print(f"[gpx-overlay] Warning: track has no {axis} extent; scaling on the other axis only")
        scale = rx if ry is None else ry
    else:
        scale = min(rx, ry)

    m = canvas.margins
    return ScaleParams(
        scale=scale,
        origin_offset_x=(canvas.width - bounds.span_x * scale) / 2,
        origin_offset_y=(canvas.height - m.bottom + m.top) / 2 + bounds.span_y * scale / 2,
    )


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def to_pixel(point: ProjectedPoint, bounds: BoundingBox, params: ScaleParams) -> tuple[int, int]:
    px = params.origin_offset_x + (point.planar_x - bounds.min_x) * params.scale
    py = params.origin_offset_y - (point.planar_y - bounds.min_y) * params.scale
    return round_half_up(px), round_half_up(py)
