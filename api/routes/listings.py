"""
API route handlers for listings endpoints.
"""
import logging
import sqlite3
from typing import Optional

import pandas as pd
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import StreamingResponse

from listings.core import create_listing, delete_listing, update_listing
from listings.database import db_count_listings, db_get_listing, db_list_listings
from listings.errors import ListingsError
from listings.export import LISTING_EXPORT_COLUMNS, listings_frame
from listings.geocoding import MemoizingGeocoder
from listings.models import User

from ..config import config
from ..database import get_db
from ..dependencies import get_current_user, get_geocoder
from ..models import ListingIn, ListingOut, ListingsResponse, ListingUpdate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["listings"])


def get_listing_filters(
    q: Optional[str] = None,
    user_id: Optional[int] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
) -> dict:
    """Dependency to extract listing filters."""
    return {
        'q': q,
        'user_id': user_id,
        'min_price': min_price,
        'max_price': max_price,
    }


@router.get("/listings", response_model=ListingsResponse)
def get_api_listings(
    filters: dict = Depends(get_listing_filters),
    sort: str = 'created_desc',
    limit: int = Query(config.DEFAULT_API_LIMIT, ge=1, le=config.MAX_API_LIMIT),
    offset: int = Query(0, ge=0),
    conn: sqlite3.Connection = Depends(get_db),
):
    """Get listings with filtering, sorting and pagination."""
    try:
        total = db_count_listings(conn, filters)
        items = [ListingOut(**x.to_dict()) for x in db_list_listings(conn, filters, sort, limit, offset)]
        return ListingsResponse(total=total, items=items)

    except Exception as e:
        logger.error(f"Error fetching listings: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/listings/{listing_id}", response_model=ListingOut)
def get_api_listing(listing_id: int, conn: sqlite3.Connection = Depends(get_db)):
    """Get a specific listing by ID."""
    listing = db_get_listing(conn, listing_id)
    if listing is None:
        raise HTTPException(status_code=404, detail="Listing not found")
    return ListingOut(**listing.to_dict())


@router.post("/listings", response_model=ListingOut, status_code=201)
def post_api_listing(
    body: ListingIn,
    user: User = Depends(get_current_user),
    geocoder: MemoizingGeocoder = Depends(get_geocoder),
    conn: sqlite3.Connection = Depends(get_db),
):
    """Create a listing owned by the acting user."""
    listing = create_listing(
        conn, geocoder,
        user_id=user.id,
        name=body.name,
        price=body.price,
        location=body.location,
        description=body.description,
    )
    return ListingOut(**listing.to_dict())


@router.patch("/listings/{listing_id}", response_model=ListingOut)
def patch_api_listing(
    listing_id: int,
    body: ListingUpdate,
    user: User = Depends(get_current_user),
    geocoder: MemoizingGeocoder = Depends(get_geocoder),
    conn: sqlite3.Connection = Depends(get_db),
):
    """Update fields of a listing; coordinates follow the location."""
    changes = body.model_dump(exclude_unset=True)
    listing = update_listing(conn, geocoder, listing_id, changes, acting_user_id=user.id)
    return ListingOut(**listing.to_dict())


@router.delete("/listings/{listing_id}", status_code=204)
def delete_api_listing(
    listing_id: int,
    user: User = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    delete_listing(conn, listing_id, acting_user_id=user.id)
    return Response(status_code=204)


@router.get("/export/csv")
def export_listings_csv(
    filters: dict = Depends(get_listing_filters),
    sort: str = 'created_desc',
    conn: sqlite3.Connection = Depends(get_db),
):
    """Export filtered listings as CSV."""
    try:
        # Get all matching listings (no pagination for export)
        rows = db_list_listings(conn, filters, sort, limit=10000, offset=0)
        df = listings_frame(rows) if rows else pd.DataFrame(columns=LISTING_EXPORT_COLUMNS)
        csv_content = df.to_csv(index=False).encode('utf-8')

        return StreamingResponse(
            iter([csv_content]),
            media_type='text/csv',
            headers={'Content-Disposition': 'attachment; filename="listings.csv"'}
        )

    except ListingsError:
        raise
    except Exception as e:
        logger.error(f"Error exporting CSV: {e}")
        raise HTTPException(status_code=500, detail="Error generating CSV export")
