"""
Statistics API route handlers.
"""
import logging
import sqlite3

from fastapi import APIRouter, Depends, HTTPException

from listings.database import db_statistics

from ..database import get_db
from ..models import StatsOut

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["statistics"])


@router.get("/stats", response_model=StatsOut)
def get_api_stats(conn: sqlite3.Connection = Depends(get_db)):
    """Get marketplace statistics."""
    try:
        stats_data = db_statistics(conn)
        return StatsOut(**stats_data)

    except Exception as e:
        logger.error(f"Error fetching statistics: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
