"""Render a GPX track and its summary metrics onto a photo."""

from .errors import (
    DegenerateTrackError,
    EncodingError,
    InvalidArgumentError,
    MalformedInputError,
    OverlayError,
)
from .overlay import main, render_overlay
from .track import EnrichedTrack, ProjectedPoint, RawPoint, TrackMetrics, enrich_track, load_gpx

__all__ = [
    "main",
    "render_overlay",
    "enrich_track",
    "load_gpx",
    "RawPoint",
    "ProjectedPoint",
    "TrackMetrics",
    "EnrichedTrack",
    "OverlayError",
    "InvalidArgumentError",
    "MalformedInputError",
    "DegenerateTrackError",
    "EncodingError",
]
