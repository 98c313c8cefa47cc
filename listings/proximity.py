"""
Proximity search over geocoded listings.

find_near() narrows candidates with a bounding box over the
(latitude, longitude) index, then applies the exact haversine distance
(the same Python function, registered in SQLite by db_connect) and orders
by distance with the listing id as tie-break.
"""
import logging
import math
import sqlite3
from typing import Any, Dict, Iterator, List, Optional

from .database import LISTING_COLUMNS, build_where_clause, db_iter_rows, row_to_listing
from .distance import bounding_box
from .errors import InvalidInput, NoMatch
from .geocoding import Geocoder
from .models import NearbyListing, Point

logger = logging.getLogger(__name__)

DEFAULT_RADIUS_KM = 50.0


def validate_radius(radius_km) -> float:
    if isinstance(radius_km, bool) or not isinstance(radius_km, (int, float)):
        raise InvalidInput(f"Radius must be a number, got {radius_km!r}")
    if not math.isfinite(radius_km) or radius_km <= 0:
        raise InvalidInput(f"Radius must be positive, got {radius_km}")
    return float(radius_km)


def find_near(
    conn: sqlite3.Connection,
    point: Point,
    radius_km: float,
    filters: Optional[Dict[str, Any]] = None,
) -> Iterator[NearbyListing]:
    """
    Yield listings within radius_km of point, nearest first.

    Validation happens on the call, before any query; the rows themselves
    are fetched lazily as the iterator is consumed.
    """
    if not isinstance(point, Point):
        raise InvalidInput(f"Expected a Point, got {point!r}")
    radius_km = validate_radius(radius_km)

    box = bounding_box(point, radius_km)
    box_sql, box_params = box.sql()
    where, filter_params = build_where_clause(filters)

    sql = f"""
    SELECT * FROM (
      SELECT {LISTING_COLUMNS},
             haversine_km(?, ?, latitude, longitude) AS distance_km
      FROM listings
      WHERE latitude IS NOT NULL AND longitude IS NOT NULL
        AND {box_sql}
        {'AND ' + where if where else ''}
    )
    WHERE distance_km <= ?
    ORDER BY distance_km ASC, id ASC
    """
    params = [point.latitude, point.longitude, *box_params, *filter_params, radius_km]
    logger.debug(f"find_near ({point.latitude}, {point.longitude}) r={radius_km}km box={box}")
    return _iter_nearby(conn, sql, params)


def _iter_nearby(conn: sqlite3.Connection, sql: str, params: List[Any]) -> Iterator[NearbyListing]:
    for row in db_iter_rows(conn, sql, params):
        yield NearbyListing(listing=row_to_listing(row), distance_km=row["distance_km"])


def resolve_point(geocoder: Geocoder, query: str) -> Point:
    """Resolve a place to a point, raising NoMatch when the provider finds nothing."""
    result = geocoder.resolve(query)
    if result is None:
        raise NoMatch(query)
    return result.point


def search_near_text(
    conn: sqlite3.Connection,
    geocoder: Geocoder,
    query: str,
    radius_km: Optional[float] = None,
    filters: Optional[Dict[str, Any]] = None,
) -> List[NearbyListing]:
    """
    Resolve a free-text place and return the listings around it.

    A place the geocoder cannot find yields an empty list.
    """
    radius_km = validate_radius(DEFAULT_RADIUS_KM if radius_km is None else radius_km)
    try:
        point = resolve_point(geocoder, query)
    except NoMatch:
        logger.info(f"Search for '{query}' did not resolve; returning no listings")
        return []
    return list(find_near(conn, point, radius_km, filters))
