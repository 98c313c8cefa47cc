"""
Marketplace listings with geocoded proximity search.
"""
from .models import GeocodeResult, Listing, NearbyListing, Point, User
from .errors import (
    InvalidInput,
    ListingsError,
    NoMatch,
    NotFound,
    PermissionDenied,
    ProviderError,
)
from .geocoding import GeocodingClient, MemoizingGeocoder
from .hooks import geocode_on_save
from .distance import haversine_km, bounding_box
from .database import db_connect, db_init
from .proximity import find_near, resolve_point, search_near_text
from .core import create_listing, update_listing, delete_listing, backfill_coordinates

__version__ = "1.0.0"

__all__ = [
    "GeocodeResult",
    "Listing",
    "NearbyListing",
    "Point",
    "User",
    "InvalidInput",
    "ListingsError",
    "NoMatch",
    "NotFound",
    "PermissionDenied",
    "ProviderError",
    "GeocodingClient",
    "MemoizingGeocoder",
    "geocode_on_save",
    "haversine_km",
    "bounding_box",
    "db_connect",
    "db_init",
    "find_near",
    "resolve_point",
    "search_near_text",
    "create_listing",
    "update_listing",
    "delete_listing",
    "backfill_coordinates",
]
