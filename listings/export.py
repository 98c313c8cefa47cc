"""
Export utilities for listings and proximity search results.
"""
import logging
import sqlite3
from typing import Iterable, Optional

import pandas as pd

from .models import Listing, NearbyListing

logger = logging.getLogger(__name__)

LISTING_EXPORT_COLUMNS = [
    "id", "user_id", "name", "price", "location", "description",
    "latitude", "longitude", "created_at", "updated_at",
]


def listings_frame(listings: Iterable[Listing]) -> pd.DataFrame:
    rows = [x.to_dict() for x in listings]
    return pd.DataFrame(rows, columns=LISTING_EXPORT_COLUMNS)


def nearby_frame(results: Iterable[NearbyListing]) -> pd.DataFrame:
    rows = []
    for r in results:
        row = r.listing.to_dict()
        row["distance_km"] = round(r.distance_km, 3)
        rows.append(row)
    return pd.DataFrame(rows, columns=LISTING_EXPORT_COLUMNS + ["distance_km"])


def export_all_listings(conn: sqlite3.Connection) -> pd.DataFrame:
    """Export every listing, oldest first."""
    q = "SELECT * FROM listings ORDER BY id ASC"
    return pd.read_sql_query(q, conn)


def save_frame(df: pd.DataFrame, out_path: str, logger: Optional[logging.Logger] = logger):
    """Save a DataFrame to CSV or Excel file."""
    if out_path.lower().endswith(".xlsx"):
        df.to_excel(out_path, index=False)
    else:
        df.to_csv(out_path, index=False)

    if logger:
        logger.info(f">>> Saved {len(df)} rows to {out_path}")
