"""
Distance calculations for proximity search.

Haversine formula for great-circle distance between two lat/lng points,
and the coarse bounding box used to pre-filter candidates through the
(latitude, longitude) index before the exact distance is computed.
"""

import math
from dataclasses import dataclass
from typing import List, Tuple

from .models import Point

EARTH_RADIUS_KM = 6371.0

# Length of one degree of arc on the sphere above
KM_PER_DEGREE = math.pi * EARTH_RADIUS_KM / 180.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Calculate great-circle distance between two points in kilometers.
    Uses the Haversine formula.
    """
    lat1_r = math.radians(lat1)
    lat2_r = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (math.sin(dlat / 2) ** 2 +
         math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2)
    # Rounding can push a slightly above 1 for antipodal points
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


@dataclass(frozen=True)
class BoundingBox:
    """
    Latitude/longitude rectangle containing every point within a radius.

    lng_ranges holds one interval, or two when the box wraps across the
    antimeridian.
    """

    min_lat: float
    max_lat: float
    lng_ranges: Tuple[Tuple[float, float], ...]

    def contains(self, lat: float, lng: float) -> bool:
        if not self.min_lat <= lat <= self.max_lat:
            return False
        return any(lo <= lng <= hi for lo, hi in self.lng_ranges)

    def sql(self, lat_col: str = "latitude", lng_col: str = "longitude") -> Tuple[str, List[float]]:
        """Render as a WHERE fragment with parameters."""
        lng_parts = " OR ".join(f"{lng_col} BETWEEN ? AND ?" for _ in self.lng_ranges)
        params: List[float] = [self.min_lat, self.max_lat]
        for lo, hi in self.lng_ranges:
            params.extend([lo, hi])
        return f"({lat_col} BETWEEN ? AND ?) AND ({lng_parts})", params


def bounding_box(center: Point, radius_km: float) -> BoundingBox:
    """
    Compute the bounding box of a circle of radius_km around center.

    The box is slightly larger than the circle, never smaller.
    """
    dlat = radius_km / KM_PER_DEGREE
    min_lat = center.latitude - dlat
    max_lat = center.latitude + dlat

    # Circle reaches a pole: every longitude is within range there
    if min_lat <= -90.0 or max_lat >= 90.0:
        return BoundingBox(max(min_lat, -90.0), min(max_lat, 90.0), ((-180.0, 180.0),))

    # Longitude degrees shrink towards the poles; widen by the most poleward latitude
    widest_lat = max(abs(min_lat), abs(max_lat))
    dlng = dlat / math.cos(math.radians(widest_lat))
    if dlng >= 180.0:
        return BoundingBox(min_lat, max_lat, ((-180.0, 180.0),))

    min_lng = center.longitude - dlng
    max_lng = center.longitude + dlng
    if min_lng < -180.0:
        ranges = ((min_lng + 360.0, 180.0), (-180.0, max_lng))
    elif max_lng > 180.0:
        ranges = ((min_lng, 180.0), (-180.0, max_lng - 360.0))
    else:
        ranges = ((min_lng, max_lng),)
    return BoundingBox(min_lat, max_lat, ranges)
