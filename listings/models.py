"""
Data models for marketplace listings and geocoding.
"""
import math
from dataclasses import dataclass
from typing import Optional

from .errors import InvalidInput


@dataclass(frozen=True)
class Point:
    """A latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float

    def __post_init__(self):
        for value in (self.latitude, self.longitude):
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise InvalidInput(f"Coordinates must be finite numbers, got ({self.latitude}, {self.longitude})")
        if not -90.0 <= self.latitude <= 90.0:
            raise InvalidInput(f"Latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise InvalidInput(f"Longitude out of range: {self.longitude}")


@dataclass(frozen=True)
class GeocodeResult:
    """First candidate returned by the geocoding provider."""

    latitude: float
    longitude: float
    display_address: Optional[str] = None
    provider: str = "nominatim"

    @property
    def point(self) -> Point:
        return Point(self.latitude, self.longitude)


@dataclass
class User:
    """Owner of listings."""

    name: str
    email: str
    id: Optional[int] = None
    created_at: Optional[str] = None


@dataclass
class Listing:
    """A listing owned by a user, with coordinates cached from its location."""

    user_id: int
    name: str
    price: float
    location: str = ""
    description: str = ""

    # Derived from location by the geocode-on-save hook
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def set_coordinates(self, result: GeocodeResult):
        self.latitude = result.latitude
        self.longitude = result.longitude

    def clear_coordinates(self):
        self.latitude = None
        self.longitude = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "price": self.price,
            "location": self.location,
            "description": self.description,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class NearbyListing:
    """A listing matched by a proximity query."""

    listing: Listing
    distance_km: float
