from __future__ import annotations
from dataclasses import dataclass
from math import asin, atan2, cos, degrees, floor, isfinite, radians, sin, sqrt

"""
Geospatial helpers.

We keep a tiny geometry layer here so proximity and guidance code can do distance and
bearing calculations without pulling in heavier GIS dependencies.
"""

EARTH_RADIUS_M = 6_371_000


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lng: float


def round_half_up(x: float) -> int:
    """Round to the nearest integer, halves away from -inf (2.5 -> 3, -2.5 -> -2)."""
    return int(floor(x + 0.5))


def is_coordinate(value: object) -> bool:
    """True for a finite int/float (bools excluded)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool) and isfinite(value)


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """Compute great-circle distance in meters between two points."""
    lat1 = radians(a.lat)
    lng1 = radians(a.lng)
    lat2 = radians(b.lat)
    lng2 = radians(b.lng)

    dlat = lat2 - lat1
    dlng = lng2 - lng1

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_M * asin(sqrt(h))


def initial_bearing_deg(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle initial bearing from point 1 to point 2, in degrees [0, 360)."""
    phi1 = radians(lat1)
    phi2 = radians(lat2)
    dlambda = radians(lng2 - lng1)

    x = sin(dlambda) * cos(phi2)
    y = cos(phi1) * sin(phi2) - sin(phi1) * cos(phi2) * cos(dlambda)

    bearing = (degrees(atan2(x, y)) + 360) % 360
    # -0.0 % 360 and tiny negatives can land exactly on 360.0
    return 0.0 if bearing >= 360 else bearing


def bearing_difference(current_deg: float, target_deg: float) -> float:
    """Signed rotation from `current_deg` to `target_deg`, wrapped into [-180, 180]."""
    diff = target_deg - current_deg
    if diff > 180:
        diff -= 360
    if diff < -180:
        diff += 360
    return diff
