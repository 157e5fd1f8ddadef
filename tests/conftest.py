"""Shared fixtures: tiny GPX tracks and photos written to ``tmp_path``."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from PIL import Image

from gpx_overlay.track import RawPoint

T0 = datetime(2024, 5, 1, 8, 0, 0, tzinfo=timezone.utc)

GPX_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<gpx version="1.1" creator="tests" xmlns="http://www.topografix.com/GPX/1/1">\n'
)


def trkpt_xml(lat, lon, ele, seconds):
    parts = [f'<trkpt lat="{lat}" lon="{lon}">']
    if ele is not None:
        parts.append(f"<ele>{ele}</ele>")
    if seconds is not None:
        stamp = (T0 + timedelta(seconds=seconds)).strftime("%Y-%m-%dT%H:%M:%SZ")
        parts.append(f"<time>{stamp}</time>")
    parts.append("</trkpt>")
    return "".join(parts)


def gpx_document(*segments, extra_tracks=0):
    body = ["<trk><name>Ride</name>"]
    for segment in segments:
        body.append("<trkseg>")
        body.extend(trkpt_xml(*sample) for sample in segment)
        body.append("</trkseg>")
    body.append("</trk>")
    for _ in range(extra_tracks):
        body.append("<trk><name>Other</name><trkseg>")
        body.append(trkpt_xml(10.0, 10.0, 5.0, 0))
        body.append("</trkseg></trk>")
    return GPX_HEADER + "\n".join(body) + "\n</gpx>\n"


def loop_samples(count=24):
    """A small closed loop around Zurich, one fix every 5 seconds, climbing gently."""
    samples = []
    for i in range(count):
        step = i % 8
        lat = 47.37 + 0.0005 * (step if step < 4 else 8 - step)
        lon = 8.54 + 0.0007 * (i // 2 % 4)
        samples.append((round(lat, 6), round(lon, 6), 400.0 + 0.1 * i, 5 * i))
    return samples


def raw_points(samples):
    return [
        RawPoint(latitude=lat, longitude=lon, elevation=ele, timestamp=T0 + timedelta(seconds=sec))
        for lat, lon, ele, sec in samples
    ]


@pytest.fixture
def make_gpx(tmp_path):
    def _make(*segments, name="ride.gpx", extra_tracks=0) -> Path:
        path = tmp_path / name
        path.write_text(gpx_document(*segments, extra_tracks=extra_tracks), encoding="utf-8")
        return path

    return _make


@pytest.fixture
def make_image(tmp_path):
    def _make(size=(240, 180), name="photo.png") -> Path:
        width, height = size
        img = Image.new("RGB", size)
        for x in range(width):
            shade = int(255 * x / max(width - 1, 1))
            img.paste((shade, 120, 255 - shade), (x, 0, x + 1, height))
        path = tmp_path / name
        img.save(path)
        return path

    return _make


@pytest.fixture
def loop_gpx(make_gpx):
    return make_gpx(loop_samples())
