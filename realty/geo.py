# Great-circle distance helpers for radius search.
from __future__ import annotations

import math
from typing import Literal, Tuple

EARTH_RADIUS = {"km": 6371.0, "mi": 3956.0}


def haversine_distance(
    lat1: float,
    lng1: float,
    lat2: float,
    lng2: float,
    unit: Literal["km", "mi"] = "km",
) -> float:
    """Distance between two (lat, lng) points along the earth's surface."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS[unit] * c


def bounding_box(lat: float, lng: float, radius_km: float) -> Tuple[float, float, float, float]:
    """
    (min_lat, max_lat, min_lng, max_lng) enclosing a circle of radius_km.

    Used as an index-friendly SQL prefilter; callers still check the exact distance.
    Longitude bounds widen to the full range near the poles.
    """
    d_lat = math.degrees(radius_km / EARTH_RADIUS["km"])
    min_lat, max_lat = max(lat - d_lat, -90.0), min(lat + d_lat, 90.0)
    cos_lat = math.cos(math.radians(lat))
    if cos_lat < 1e-6 or max_lat >= 90.0 or min_lat <= -90.0:
        return min_lat, max_lat, -180.0, 180.0
    d_lng = math.degrees(radius_km / (EARTH_RADIUS["km"] * cos_lat))
    # Boxes crossing the antimeridian fall back to the full longitude range
    if lng - d_lng < -180.0 or lng + d_lng > 180.0:
        return min_lat, max_lat, -180.0, 180.0
    return min_lat, max_lat, lng - d_lng, lng + d_lng
