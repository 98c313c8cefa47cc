"""
Request-scoped dependencies: geocoder and acting user.
"""
import sqlite3
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from listings.database import db_get_user
from listings.geocoding import MemoizingGeocoder
from listings.models import User

from .database import get_db


def get_geocoder(request: Request) -> MemoizingGeocoder:
    """Per-request memoizing wrapper over the application's geocoding client."""
    return MemoizingGeocoder(request.app.state.geocoder)


def get_current_user(
    x_user_id: Optional[int] = Header(default=None),
    conn: sqlite3.Connection = Depends(get_db),
) -> User:
    """
    Acting user, as identified by the upstream authentication layer.

    The layer in front of this API sets X-User-Id after verifying the session.
    """
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    user = db_get_user(conn, x_user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Unknown user")
    return user
