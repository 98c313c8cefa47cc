"""
Listing write orchestration.

Each write validates, runs the geocode-on-save hook, and only then issues a
single store statement. A ProviderError from the hook aborts the whole write
before anything reaches the database.
"""
import logging
import sqlite3
from typing import Any, Dict, Mapping, Optional

from .database import (
    db_delete_listing,
    db_get_listing,
    db_get_user,
    db_insert_listing,
    db_listings_missing_coordinates,
    db_set_coordinates,
    db_update_listing,
)
from .errors import InvalidInput, NotFound, PermissionDenied, ProviderError
from .geocoding import Geocoder
from .hooks import geocode_on_save
from .models import Listing
from .utils import clean_text, parse_price

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({"name", "price", "location", "description"})


def _clean_name(name: Optional[str]) -> str:
    name = clean_text(name)
    if not name:
        raise InvalidInput("Listing name must not be empty")
    return name


def _load_owned(conn: sqlite3.Connection, listing_id: int, acting_user_id: Optional[int]) -> Listing:
    listing = db_get_listing(conn, listing_id)
    if listing is None:
        raise NotFound(f"Listing {listing_id} not found")
    if acting_user_id is not None and listing.user_id != acting_user_id:
        raise PermissionDenied(f"User {acting_user_id} does not own listing {listing_id}")
    return listing


def create_listing(
    conn: sqlite3.Connection,
    geocoder: Geocoder,
    user_id: int,
    name: str,
    price,
    location: str = "",
    description: str = "",
) -> Listing:
    """Create a listing owned by user_id, geocoding its location first."""
    listing = Listing(
        user_id=user_id,
        name=_clean_name(name),
        price=parse_price(price),
        location=location or "",
        description=(description or "").strip(),
    )
    if db_get_user(conn, user_id) is None:
        raise NotFound(f"User {user_id} not found")

    geocode_on_save(listing, None, geocoder)
    db_insert_listing(conn, listing)
    logger.info(
        f"Created listing {listing.id} for user {user_id} "
        f"at ({listing.latitude}, {listing.longitude})"
    )
    return listing


def update_listing(
    conn: sqlite3.Connection,
    geocoder: Geocoder,
    listing_id: int,
    changes: Mapping[str, Any],
    acting_user_id: Optional[int] = None,
) -> Listing:
    """
    Apply changes to a listing.

    Only name, price, location and description are writable; coordinates are
    always derived from the location.
    """
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise InvalidInput(f"Fields not writable: {', '.join(sorted(unknown))}")

    listing = _load_owned(conn, listing_id, acting_user_id)
    previous_location = listing.location

    if "name" in changes:
        listing.name = _clean_name(changes["name"])
    if "price" in changes:
        listing.price = parse_price(changes["price"])
    if "description" in changes:
        listing.description = (changes["description"] or "").strip()
    if "location" in changes:
        listing.location = changes["location"] or ""

    if geocode_on_save(listing, previous_location, geocoder):
        logger.info(
            f"Listing {listing_id} moved from '{previous_location}' to '{listing.location}' "
            f"-> ({listing.latitude}, {listing.longitude})"
        )

    if not db_update_listing(conn, listing):
        raise NotFound(f"Listing {listing_id} not found")
    return listing


def delete_listing(conn: sqlite3.Connection, listing_id: int, acting_user_id: Optional[int] = None):
    _load_owned(conn, listing_id, acting_user_id)
    db_delete_listing(conn, listing_id)
    logger.info(f"Deleted listing {listing_id}")


def backfill_coordinates(
    conn: sqlite3.Connection,
    geocoder: Geocoder,
    limit: Optional[int] = None,
) -> Dict[str, int]:
    """
    Retry geocoding for listings saved without coordinates.

    Stops at the first ProviderError and re-raises it; listings already
    processed keep their new coordinates.
    """
    counts = {"checked": 0, "resolved": 0, "unmatched": 0, "skipped": 0}
    for listing in db_listings_missing_coordinates(conn, limit):
        counts["checked"] += 1
        try:
            result = geocoder.resolve(listing.location)
        except ProviderError:
            logger.error(f"Backfill stopped at listing {listing.id}: {counts}")
            raise

        if result is None:
            counts["unmatched"] += 1
            continue
        if db_set_coordinates(conn, listing.id, listing.location, result.latitude, result.longitude):
            counts["resolved"] += 1
        else:
            # Location edited or listing deleted since it was read
            counts["skipped"] += 1

    logger.info(f"Backfill finished: {counts}")
    return counts
