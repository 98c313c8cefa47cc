"""
Proximity search route handlers.
"""
import logging
import sqlite3
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from listings.geocoding import MemoizingGeocoder
from listings.models import NearbyListing, Point
from listings.errors import NoMatch
from listings.proximity import find_near, resolve_point

from ..config import config
from ..database import get_db
from ..dependencies import get_geocoder
from ..models import NearbyListingOut, SearchResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["search"])


def get_search_filters(
    keyword: Optional[str] = None,
    user_id: Optional[int] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
) -> dict:
    """Listing filters applied on top of the distance constraint."""
    return {
        "q": keyword,
        "user_id": user_id,
        "min_price": min_price,
        "max_price": max_price,
    }


def _items(results: List[NearbyListing]) -> List[NearbyListingOut]:
    return [NearbyListingOut(**r.listing.to_dict(), distance_km=r.distance_km) for r in results]


@router.get("/search", response_model=SearchResponse)
def search_listings(
    q: str = Query(..., description="Place to search around, e.g. 'Cairo, Egypt'"),
    radius_km: float = Query(config.DEFAULT_RADIUS_KM, gt=0, le=config.MAX_RADIUS_KM),
    limit: int = Query(config.DEFAULT_API_LIMIT, ge=1, le=config.MAX_API_LIMIT),
    filters: dict = Depends(get_search_filters),
    geocoder: MemoizingGeocoder = Depends(get_geocoder),
    conn: sqlite3.Connection = Depends(get_db),
):
    """Listings near a free-text place. An unknown place gives an empty result."""
    try:
        point = resolve_point(geocoder, q)
    except NoMatch:
        return SearchResponse(query=q, radius_km=radius_km, total=0, items=[])

    matches = list(find_near(conn, point, radius_km, filters))
    return SearchResponse(
        query=q,
        latitude=point.latitude,
        longitude=point.longitude,
        radius_km=radius_km,
        total=len(matches),
        items=_items(matches[:limit]),
    )


@router.get("/near", response_model=SearchResponse)
def near_point(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(config.DEFAULT_RADIUS_KM, gt=0, le=config.MAX_RADIUS_KM),
    limit: int = Query(config.DEFAULT_API_LIMIT, ge=1, le=config.MAX_API_LIMIT),
    filters: dict = Depends(get_search_filters),
    conn: sqlite3.Connection = Depends(get_db),
):
    """Listings near a coordinate point."""
    matches = list(find_near(conn, Point(lat, lng), radius_km, filters))
    return SearchResponse(
        latitude=lat,
        longitude=lng,
        radius_km=radius_km,
        total=len(matches),
        items=_items(matches[:limit]),
    )
