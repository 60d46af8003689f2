"""Great-circle and 3D distance helpers."""

from __future__ import annotations

import math
from typing import Protocol

_EARTH_RADIUS_M = 6_371_008.8


class _Positioned(Protocol):
    latitude: float
    longitude: float
    altitude: float


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the great-circle distance in metres between two coordinates."""

    sin = math.sin
    cos = math.cos
    radians = math.radians
    lat1_rad = radians(lat1)
    lat2_rad = radians(lat2)
    delta_lat = lat2_rad - lat1_rad
    delta_lon = radians(lon2 - lon1)
    sin_half_lat = sin(delta_lat / 2.0)
    sin_half_lon = sin(delta_lon / 2.0)
    a = sin_half_lat**2 + cos(lat1_rad) * cos(lat2_rad) * sin_half_lon**2
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return _EARTH_RADIUS_M * c


def horizontal_distance_m(start: _Positioned, end: _Positioned) -> float:
    return haversine_m(start.latitude, start.longitude, end.latitude, end.longitude)


def distance_3d_m(start: _Positioned, end: _Positioned) -> float:
    """Combine horizontal distance and altitude delta (Pythagoras)."""

    horizontal = horizontal_distance_m(start, end)
    vertical = abs(end.altitude - start.altitude)
    return math.hypot(horizontal, vertical)


__all__ = ["distance_3d_m", "haversine_m", "horizontal_distance_m"]
