"""Spherical geometry helpers for GPS fixes given in degrees."""
from __future__ import annotations

import math

from .config import EARTH_RADIUS_M, MAX_LATITUDE


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle (haversine) distance in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def bearing_degrees(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Initial compass bearing from point 1 towards point 2, in [0, 360)."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_lambda = math.radians(lon2 - lon1)

    y = math.sin(d_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lambda)
    theta = math.degrees(math.atan2(y, x))
    return (theta + 360.0) % 360.0


def project(lat: float, lon: float, reference_longitude: float = 0.0) -> tuple[float, float]:
    """Mercator-family projection to planar (x, y).

    ``reference_longitude`` is subtracted after the longitude is converted to
    radians, so it is expressed in radians as well. Latitude is clamped to
    +/-89.9999 degrees so the poles map to large finite values.
    """
    lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, lat))
    sin_phi = math.sin(math.radians(lat))
    x = math.radians(lon) - reference_longitude
    y = math.log((1 + sin_phi) / (1 - sin_phi)) / 2
    return x, y
