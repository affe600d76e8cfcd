from __future__ import annotations
from dataclasses import dataclass
from math import asin, cos, radians, sin, sqrt
from typing import Iterable

"""
Geospatial helpers.

We keep a tiny geometry layer here so the clustering and geofence code can do distance
calculations without pulling in heavier GIS dependencies. All distances are kilometers.
"""

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lon: float


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute great-circle (Haversine) distance in kilometers between two coordinates."""
    phi1 = radians(lat1)
    phi2 = radians(lat2)
    dlat = phi2 - phi1
    dlon = radians(lon2 - lon1)

    h = sin(dlat / 2) ** 2 + cos(phi1) * cos(phi2) * sin(dlon / 2) ** 2
    # Rounding can push h slightly outside [0, 1] for antipodal points.
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_KM * asin(sqrt(h))


def is_within_km(a: GeoPoint, b: GeoPoint, radius_km: float) -> bool:
    """Check whether `b` is inside or on the boundary of a circle of `radius_km` around `a`."""
    return distance_km(a.lat, a.lon, b.lat, b.lon) <= radius_km


def mean_point(points: Iterable[GeoPoint]) -> GeoPoint | None:
    """Arithmetic mean of coordinates; None for an empty input."""
    lat_sum = 0.0
    lon_sum = 0.0
    n = 0
    for p in points:
        lat_sum += p.lat
        lon_sum += p.lon
        n += 1
    if n == 0:
        return None
    return GeoPoint(lat=lat_sum / n, lon=lon_sum / n)
