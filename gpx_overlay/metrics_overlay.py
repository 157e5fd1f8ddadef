from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Callable

from .commands import DrawCommand, DrawImage, DrawText, FillGradient, FontSpec, StrokeSegment
from .config import (
    BRANDING_FONT_RATIO,
    DIVIDER_WIDTH_RATIO,
    GRADIENT_MAX_ALPHA,
    GRADIENT_START,
    KMH_DIVIDER_OFFSET_RATIO,
    KMH_KM_OFFSET_RATIO,
    LABEL_FONT_RATIO,
    LABEL_GLOW_RATIO,
    UNIT_FONT_RATIO,
    VALUE_FONT_RATIO,
    VALUE_GLOW_RATIO,
    VALUE_OFFSET_RATIO,
)
from .layout import Canvas, round_half_up
from .track import TrackMetrics

Measure = Callable[[str, FontSpec], float]

LABEL_FILL = (255, 255, 255, 191)
VALUE_FILL = (255, 255, 255, 128)
KMH = "km/h"


@dataclass(frozen=True)
class MetricBlock:
    label: str
    value: str
    unit: str
    column: int
    baseline: float


def format_fixed(value: float, digits: int) -> str:
    """Fixed-point text with halves rounded away from zero (``2.5`` -> ``3``)."""
    step = Decimal(1).scaleb(-digits)
    return str(Decimal(repr(value)).quantize(step, rounding=ROUND_HALF_UP))


def format_distance_km(meters: float) -> str:
    return format_fixed(meters / 1000, 1)


def format_speed_kmh(meters_per_second: float) -> str:
    return format_fixed(meters_per_second * 3.6, 1)


def format_climb(meters: float) -> str:
    return format_fixed(meters, 0)


def format_elapsed(seconds: float) -> str:
    """Minutes of the hour, prefixed by whole hours once past one hour (``1h5``)."""
    minutes = format_fixed(seconds / 60 % 60, 0)
    if seconds / 3600 > 1.0:
        return f"{math.floor(seconds / 3600)}h{minutes}"
    return minutes


def column_width(canvas: Canvas) -> float:
    m = canvas.margins
    return (canvas.width - m.left - m.right) / 4


def column_x(canvas: Canvas, column: int) -> float:
    return canvas.margins.left + column_width(canvas) * column


def metric_blocks(canvas: Canvas, metrics: TrackMetrics) -> list[MetricBlock]:
    bottom = canvas.height - canvas.margins.bottom
    return [
        MetricBlock("Distance", format_distance_km(metrics.total_distance), "km", 0, bottom),
        MetricBlock("Avg Speed", format_speed_kmh(metrics.average_speed), KMH, 1, bottom),
        MetricBlock("Max Speed", format_speed_kmh(metrics.smoothed_max_speed), KMH, 2, bottom),
        MetricBlock("Elevation", format_climb(metrics.total_climb), "m", 3, canvas.height * 3 / 4),
        MetricBlock("Total Time", format_elapsed(metrics.elapsed_duration), "m", 3, bottom),
    ]


def _font(size: float) -> FontSpec:
    return FontSpec(max(1, round_half_up(size)))


def backdrop_commands(canvas: Canvas) -> list[DrawCommand]:
    """Darken the lower half so white labels stay legible on any photo."""
    top = round_half_up(canvas.height * GRADIENT_START)
    return [
        FillGradient(
            box=(0, top, canvas.width, canvas.height),
            top_color=(0, 0, 0, 0),
            bottom_color=(0, 0, 0, round_half_up(GRADIENT_MAX_ALPHA * 255)),
        )
    ]


def block_commands(canvas: Canvas, block: MetricBlock, measure: Measure) -> list[DrawCommand]:
    h = canvas.height
    unit_font = _font(h * UNIT_FONT_RATIO)
    label_font = _font(h * LABEL_FONT_RATIO)
    value_font = _font(h * VALUE_FONT_RATIO)
    label_glow = canvas.width * LABEL_GLOW_RATIO
    value_glow = canvas.width * VALUE_GLOW_RATIO

    x = column_x(canvas, block.column)
    y = block.baseline
    unit_width = measure("km" if block.unit == KMH else block.unit, unit_font)
    # Right edge of label and value; the unit hangs to the right of it.
    anchor_x = x + column_width(canvas) - unit_width
    value_y = y + h * VALUE_OFFSET_RATIO

    commands: list[DrawCommand] = [
        DrawText((anchor_x, y), block.label, label_font, LABEL_FILL, anchor="rs", glow=label_glow),
        DrawText((anchor_x, value_y), block.value, value_font, VALUE_FILL, anchor="rs", glow=value_glow),
    ]
    if block.unit == KMH:
        divider_y = y + h * KMH_DIVIDER_OFFSET_RATIO
        commands += [
            DrawText((anchor_x, y + h * KMH_KM_OFFSET_RATIO), "km", unit_font, VALUE_FILL, glow=value_glow),
            StrokeSegment(
                start=(anchor_x, divider_y),
                end=(anchor_x + unit_width, divider_y),
                color=LABEL_FILL,
                width=min(canvas.width, canvas.height) * DIVIDER_WIDTH_RATIO,
            ),
            DrawText(
                (anchor_x + unit_width / 2, value_y), "h", unit_font, VALUE_FILL, anchor="ms", glow=value_glow
            ),
        ]
    else:
        commands.append(DrawText((anchor_x, value_y), block.unit, unit_font, VALUE_FILL, glow=value_glow))
    return commands


def metric_commands(canvas: Canvas, metrics: TrackMetrics, measure: Measure) -> list[DrawCommand]:
    commands: list[DrawCommand] = []
    for block in metric_blocks(canvas, metrics):
        commands.extend(block_commands(canvas, block, measure))
    return commands


def branding_commands(
    canvas: Canvas,
    athlete: str,
    logo_size: tuple[int, int],
    logo_path: Path,
    measure: Measure,
) -> list[DrawCommand]:
    """Logo followed by the athlete sign, right-aligned on the top margin."""
    logo_width, logo_height = logo_size
    font = _font(logo_height * BRANDING_FONT_RATIO)
    text_width = measure(athlete, font) if athlete else 0.0
    right = canvas.width - canvas.margins.right
    top = canvas.margins.top

    commands: list[DrawCommand] = [
        DrawImage(logo_path, (round_half_up(right - logo_width - text_width), round_half_up(top)))
    ]
    if athlete:
        commands.append(DrawText((right, top + font.size), athlete, font, VALUE_FILL, anchor="rs"))
    return commands
