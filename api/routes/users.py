"""
User route handlers.

Sign-up and sessions belong to the authentication layer in front of this
API; these endpoints manage the user records listings hang off.
"""
import logging
import sqlite3

from fastapi import APIRouter, Depends, HTTPException, Response

from listings.database import db_delete_user, db_get_user, db_insert_user
from listings.models import User

from ..database import get_db
from ..dependencies import get_current_user
from ..models import UserIn, UserOut

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("", response_model=UserOut, status_code=201)
def create_user(body: UserIn, conn: sqlite3.Connection = Depends(get_db)):
    try:
        user = db_insert_user(conn, User(name=body.name.strip(), email=body.email.strip().lower()))
    except sqlite3.IntegrityError:
        raise HTTPException(status_code=409, detail="Email already registered")
    logger.info(f"Created user {user.id}")
    return UserOut(**vars(user))


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: int, conn: sqlite3.Connection = Depends(get_db)):
    user = db_get_user(conn, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return UserOut(**vars(user))


@router.delete("/{user_id}", status_code=204)
def delete_user(
    user_id: int,
    current: User = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
):
    """Delete the acting user's account together with their listings."""
    if current.id != user_id:
        raise HTTPException(status_code=403, detail="Cannot delete another user")
    db_delete_user(conn, user_id)
    logger.info(f"Deleted user {user_id} and their listings")
    return Response(status_code=204)
