"""
Spherical helpers for the bootcamp radius search.

Distances on the sphere are expressed as central angles (radians): a search
radius is `distance / earth radius`, and a point matches when its haversine
angle to the centre is within that radius.
"""

import math
from typing import Optional, Tuple

EARTH_RADIUS = {
    "mi": 3959.0,
    "km": 6371.0,
}


def radius_in_radians(distance: float, unit: str = "mi") -> float:
    """Convert a ground distance into a central angle. Raises KeyError for unknown units."""
    return distance / EARTH_RADIUS[unit]


def angular_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Haversine central angle, in radians, between two (lat, lng) points in degrees."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * math.asin(min(1.0, math.sqrt(a)))


def bounding_box(
    lat: float, lng: float, radius: float
) -> Tuple[float, float, Optional[float], Optional[float]]:
    """
    Latitude/longitude box enclosing the spherical cap of `radius` radians.

    Returns (min_lat, max_lat, min_lng, max_lng). The longitude bounds are
    None when the cap reaches a pole or crosses the antimeridian; callers
    then skip the longitude pre-filter.
    """
    d_lat = math.degrees(radius)
    min_lat, max_lat = lat - d_lat, lat + d_lat
    if min_lat <= -90 or max_lat >= 90:
        return max(min_lat, -90.0), min(max_lat, 90.0), None, None

    ratio = math.sin(radius) / math.cos(math.radians(lat))
    if ratio >= 1:
        return min_lat, max_lat, None, None
    d_lng = math.degrees(math.asin(ratio))
    min_lng, max_lng = lng - d_lng, lng + d_lng
    if min_lng < -180 or max_lng > 180:
        return min_lat, max_lat, None, None
    return min_lat, max_lat, min_lng, max_lng
