from __future__ import annotations

import codecs
import math
import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Sequence

import gpxpy
import gpxpy.gpx

from .config import CLIMB_NOISE_CEILING_M, SPEED_WINDOW, STATIONARY_DISTANCE_M
from .errors import MalformedInputError
from .geo import distance_meters, project


@dataclass(frozen=True)
class RawPoint:
    latitude: float
    longitude: float
    elevation: float
    timestamp: datetime


@dataclass(frozen=True)
class ProjectedPoint(RawPoint):
    planar_x: float
    planar_y: float
    speed: float
    distance: float


@dataclass(frozen=True)
class TrackMetrics:
    total_distance: float
    average_speed: float
    max_speed: float
    smoothed_max_speed: float
    total_climb: float
    active_duration: float
    elapsed_duration: float


@dataclass(frozen=True)
class EnrichedTrack:
    points: tuple[ProjectedPoint, ...]
    metrics: TrackMetrics

    @property
    def min_elevation(self) -> float:
        return min(p.elevation for p in self.points)

    @property
    def max_elevation(self) -> float:
        return max(p.elevation for p in self.points)


@dataclass(frozen=True)
class EnrichState:
    """Accumulators threaded through the enrichment fold."""

    window: tuple[float, ...] = field(default=(0.0,) * SPEED_WINDOW)
    smoothed_max_speed: float = 0.0
    active_duration: float = 0.0
    total_climb: float = 0.0
    total_distance: float = 0.0
    speed_sum: float = 0.0
    max_speed: float = 0.0
    count: int = 0
    first: RawPoint | None = None
    previous: RawPoint | None = None


def _check_finite(point: RawPoint, index: int) -> None:
    values = (point.latitude, point.longitude, point.elevation)
    if not all(isinstance(v, (int, float)) and math.isfinite(v) for v in values):
        raise MalformedInputError(
            f"Track point {index} has non-finite coordinates: "
            f"lat={point.latitude} lon={point.longitude} ele={point.elevation}"
        )


def _project(point: RawPoint, speed: float, distance: float) -> ProjectedPoint:
    x, y = project(point.latitude, point.longitude)
    return ProjectedPoint(
        latitude=point.latitude,
        longitude=point.longitude,
        elevation=point.elevation,
        timestamp=point.timestamp,
        planar_x=x,
        planar_y=y,
        speed=speed,
        distance=distance,
    )


def advance(state: EnrichState, point: RawPoint) -> tuple[EnrichState, ProjectedPoint]:
    """Fold one raw point into ``state``.

    Returns the updated state together with the projected point. The first
    point of a track (``state.previous is None``) gets zero speed and distance
    and resets the climb accumulator.
    """
    _check_finite(point, state.count)
    prev = state.previous
    if prev is None:
        state = replace(
            state,
            total_climb=0.0,
            count=1,
            first=point,
            previous=point,
        )
        return state, _project(point, 0.0, 0.0)

    if (point.timestamp.tzinfo is None) != (prev.timestamp.tzinfo is None):
        raise MalformedInputError(f"Track point {state.count} mixes zoned and zoneless timestamps")
    distance = distance_meters(prev.latitude, prev.longitude, point.latitude, point.longitude)
    dt = (point.timestamp - prev.timestamp).total_seconds()
    if dt <= 0:
        raise MalformedInputError(
            f"Track point {state.count} is not after its predecessor "
            f"({prev.timestamp.isoformat()} -> {point.timestamp.isoformat()})"
        )
    speed = distance / dt

    window = state.window[1:] + (speed,)
    smoothed = sum(window) / len(window)

    active = state.active_duration
    if distance > STATIONARY_DISTANCE_M:
        active += dt

    # Only sub-threshold rises count; larger steps are treated as GPS noise.
    climb = state.total_climb
    delta = point.elevation - prev.elevation
    if 0 < delta < CLIMB_NOISE_CEILING_M:
        climb += delta

    state = replace(
        state,
        window=window,
        smoothed_max_speed=max(state.smoothed_max_speed, smoothed),
        active_duration=active,
        total_climb=climb,
        total_distance=state.total_distance + distance,
        speed_sum=state.speed_sum + speed,
        max_speed=max(state.max_speed, speed),
        count=state.count + 1,
        previous=point,
    )
    return state, _project(point, speed, distance)


def summarize(state: EnrichState) -> TrackMetrics:
    if state.count == 0 or state.first is None or state.previous is None:
        raise MalformedInputError("Cannot summarize an empty track")
    elapsed = (state.previous.timestamp - state.first.timestamp).total_seconds()
    return TrackMetrics(
        total_distance=state.total_distance,
        average_speed=state.speed_sum / state.count,
        max_speed=state.max_speed,
        smoothed_max_speed=state.smoothed_max_speed,
        total_climb=state.total_climb,
        active_duration=state.active_duration,
        elapsed_duration=elapsed,
    )


def enrich_track(points: Sequence[RawPoint]) -> EnrichedTrack:
    """Project every point and derive speed, distance and summary metrics."""
    if len(points) < 2:
        raise MalformedInputError(f"Track needs at least 2 points, got {len(points)}")

    state = EnrichState()
    projected: list[ProjectedPoint] = []
    for point in points:
        state, enriched = advance(state, point)
        projected.append(enriched)
    return EnrichedTrack(points=tuple(projected), metrics=summarize(state))


def _first_track_points(gpx: gpxpy.gpx.GPX) -> Iterable[gpxpy.gpx.GPXTrackPoint]:
    track = gpx.tracks[0]
    for segment in track.segments:
        yield from segment.points


XML_ENCODING = re.compile(rb"""<\?xml[^>]*?\bencoding\s*=\s*["']([A-Za-z0-9._-]+)["']""")


def _decode_gpx(data: bytes, path: Path) -> str:
    """Decode GPX bytes using the encoding named by the XML declaration, UTF-8 otherwise."""
    if data.startswith(codecs.BOM_UTF8):
        data = data[len(codecs.BOM_UTF8):]
    match = XML_ENCODING.match(data)
    encoding = match.group(1).decode("ascii") if match else "utf-8"
    try:
        return data.decode(encoding)
    except (LookupError, UnicodeDecodeError) as exc:
        raise MalformedInputError(f"Unparsable GPX file {path}: {exc}") from exc


def _utc(stamp: datetime) -> datetime:
    # Zoneless GPX times are UTC by the format's definition.
    return stamp if stamp.tzinfo is not None else stamp.replace(tzinfo=timezone.utc)


def load_gpx(path: Path | str) -> list[RawPoint]:
    """Read the first track of a GPX file as raw points, in file order."""
    path = Path(path)
    text = _decode_gpx(path.read_bytes(), path)
    try:
        gpx = gpxpy.parse(text)
    except gpxpy.gpx.GPXException as exc:
        raise MalformedInputError(f"Unparsable GPX file {path}: {exc}") from exc

    if not gpx.tracks:
        raise MalformedInputError(f"GPX file {path} contains no tracks")
    if len(gpx.tracks) > 1:
        print(f"[gpx-overlay] Warning: {len(gpx.tracks)} tracks found; only the first is rendered")

    points: list[RawPoint] = []
    for index, trkpt in enumerate(_first_track_points(gpx)):
        if trkpt.time is None:
            raise MalformedInputError(f"Track point {index} has no timestamp")
        if trkpt.elevation is None:
            raise MalformedInputError(f"Track point {index} has no elevation")
        points.append(
            RawPoint(
                latitude=float(trkpt.latitude),
                longitude=float(trkpt.longitude),
                elevation=float(trkpt.elevation),
                timestamp=_utc(trkpt.time),
            )
        )
    if not points:
        raise MalformedInputError(f"GPX file {path} contains no track points")
    return points
