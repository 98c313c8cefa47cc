"""
Listing record store on SQLite.

Every write is a single statement committed through `with conn:`, so a
listing's location and coordinates always change together.
"""
import os
import sqlite3
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .distance import haversine_km
from .models import Listing, User
from .utils import now_iso


# Schema definitions
DDL_USERS = """
CREATE TABLE IF NOT EXISTS users (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  name TEXT NOT NULL,
  email TEXT NOT NULL UNIQUE,
  created_at TEXT
);
"""

DDL_LISTINGS = """
CREATE TABLE IF NOT EXISTS listings (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
  name TEXT NOT NULL,
  price REAL NOT NULL,
  location TEXT NOT NULL DEFAULT '',
  description TEXT NOT NULL DEFAULT '',
  latitude REAL,
  longitude REAL,
  created_at TEXT,
  updated_at TEXT,
  CHECK ((latitude IS NULL) = (longitude IS NULL))
);
"""

DDL_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_listings_user ON listings(user_id);",
    "CREATE INDEX IF NOT EXISTS idx_listings_lat_lng ON listings(latitude, longitude);",
]

LISTING_COLUMNS = (
    "id, user_id, name, price, location, description, "
    "latitude, longitude, created_at, updated_at"
)


def db_connect(path: str) -> sqlite3.Connection:
    """Create database connection with optimized settings."""
    if path != ":memory:":
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    conn = sqlite3.connect(path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA foreign_keys=ON;")
    # Exact refinement step of proximity queries
    conn.create_function("haversine_km", 4, haversine_km, deterministic=True)
    return conn


def db_init(conn: sqlite3.Connection):
    """Initialize database schema with tables and indexes."""
    conn.execute(DDL_USERS)
    conn.execute(DDL_LISTINGS)
    for ddl in DDL_INDEXES:
        conn.execute(ddl)
    conn.commit()


def row_to_listing(row: sqlite3.Row) -> Listing:
    return Listing(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        price=row["price"],
        location=row["location"] or "",
        description=row["description"] or "",
        latitude=row["latitude"],
        longitude=row["longitude"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def row_to_user(row: sqlite3.Row) -> User:
    return User(id=row["id"], name=row["name"], email=row["email"], created_at=row["created_at"])


# Users

def db_insert_user(conn: sqlite3.Connection, user: User) -> User:
    """Insert a user and return it with id and timestamp set."""
    user.created_at = now_iso()
    with conn:
        cur = conn.execute(
            "INSERT INTO users (name, email, created_at) VALUES (?, ?, ?)",
            (user.name, user.email, user.created_at),
        )
    user.id = cur.lastrowid
    return user


def db_get_user(conn: sqlite3.Connection, user_id: int) -> Optional[User]:
    row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    return row_to_user(row) if row else None


def db_delete_user(conn: sqlite3.Connection, user_id: int) -> bool:
    """Delete a user; their listings go with them."""
    with conn:
        cur = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
    return cur.rowcount > 0


# Listings

def db_get_listing(conn: sqlite3.Connection, listing_id: int) -> Optional[Listing]:
    """Retrieve existing listing by id."""
    row = conn.execute(
        f"SELECT {LISTING_COLUMNS} FROM listings WHERE id = ?", (listing_id,)
    ).fetchone()
    return row_to_listing(row) if row else None


def db_insert_listing(conn: sqlite3.Connection, lst: Listing) -> Listing:
    """Insert new listing into database."""
    ts = now_iso()
    with conn:
        cur = conn.execute("""
        INSERT INTO listings (
          user_id, name, price, location, description,
          latitude, longitude, created_at, updated_at
        ) VALUES (?,?,?,?,?,?,?,?,?)
        """, (
            lst.user_id, lst.name, lst.price, lst.location, lst.description,
            lst.latitude, lst.longitude, ts, ts
        ))
    lst.id = cur.lastrowid
    lst.created_at = lst.updated_at = ts
    return lst


def db_update_listing(conn: sqlite3.Connection, lst: Listing) -> bool:
    """Update every mutable field of an existing listing in one statement."""
    ts = now_iso()
    with conn:
        cur = conn.execute("""
        UPDATE listings SET
          name=?, price=?, location=?, description=?,
          latitude=?, longitude=?, updated_at=?
        WHERE id=?
        """, (
            lst.name, lst.price, lst.location, lst.description,
            lst.latitude, lst.longitude, ts, lst.id
        ))
    if cur.rowcount:
        lst.updated_at = ts
    return cur.rowcount > 0


def db_set_coordinates(
    conn: sqlite3.Connection,
    listing_id: int,
    location: str,
    latitude: Optional[float],
    longitude: Optional[float],
) -> bool:
    """
    Store coordinates resolved for `location`.

    Does nothing if the listing's location changed in the meantime.
    """
    with conn:
        cur = conn.execute(
            "UPDATE listings SET latitude=?, longitude=?, updated_at=? WHERE id=? AND location=?",
            (latitude, longitude, now_iso(), listing_id, location),
        )
    return cur.rowcount > 0


def db_delete_listing(conn: sqlite3.Connection, listing_id: int) -> bool:
    with conn:
        cur = conn.execute("DELETE FROM listings WHERE id = ?", (listing_id,))
    return cur.rowcount > 0


def db_listings_missing_coordinates(conn: sqlite3.Connection, limit: Optional[int] = None) -> List[Listing]:
    """Listings with a location but no coordinates, oldest first."""
    sql = (
        f"SELECT {LISTING_COLUMNS} FROM listings "
        "WHERE location != '' AND latitude IS NULL ORDER BY id ASC"
    )
    params: List[Any] = []
    if limit is not None:
        sql += " LIMIT ?"
        params.append(limit)
    return [row_to_listing(r) for r in conn.execute(sql, params).fetchall()]


def build_where_clause(filters: Optional[Dict[str, Any]]) -> Tuple[str, List[Any]]:
    """Build WHERE conditions and parameters from browse filters."""
    filters = filters or {}
    where_conditions = []
    parameters: List[Any] = []

    # Text search
    q = filters.get('q')
    if q:
        where_conditions.append('(lower(name) LIKE ? OR lower(description) LIKE ?)')
        search_term = f'%{q.lower()}%'
        parameters.extend([search_term, search_term])

    # Owner
    user_id = filters.get('user_id')
    if user_id is not None:
        where_conditions.append('user_id = ?')
        parameters.append(user_id)

    # Price range
    min_price = filters.get('min_price')
    if min_price is not None:
        where_conditions.append('price >= ?')
        parameters.append(min_price)

    max_price = filters.get('max_price')
    if max_price is not None:
        where_conditions.append('price <= ?')
        parameters.append(max_price)

    return ' AND '.join(where_conditions), parameters


def get_order_clause(sort: str) -> str:
    """Generate ORDER BY clause based on sort parameter."""
    sort_options = {
        "price_asc": "ORDER BY price ASC, id ASC",
        "price_desc": "ORDER BY price DESC, id ASC",
        "created_asc": "ORDER BY created_at ASC, id ASC",
        "created_desc": "ORDER BY created_at DESC, id DESC",
        "updated_desc": "ORDER BY updated_at DESC, id DESC",
    }
    return sort_options.get(sort, sort_options["created_desc"])


def db_count_listings(conn: sqlite3.Connection, filters: Optional[Dict[str, Any]] = None) -> int:
    """Get total count of listings matching filters."""
    where, parameters = build_where_clause(filters)
    sql = 'SELECT COUNT(*) FROM listings' + (f' WHERE {where}' if where else '')
    result = conn.execute(sql, parameters).fetchone()
    return result[0] if result else 0


def db_list_listings(
    conn: sqlite3.Connection,
    filters: Optional[Dict[str, Any]] = None,
    sort: str = 'created_desc',
    limit: int = 50,
    offset: int = 0,
) -> List[Listing]:
    """Get listings with filters, sorting, and pagination."""
    where, parameters = build_where_clause(filters)
    sql = f'SELECT {LISTING_COLUMNS} FROM listings'
    if where:
        sql += f' WHERE {where}'
    sql += f' {get_order_clause(sort)} LIMIT ? OFFSET ?'
    parameters.extend([limit, offset])
    return [row_to_listing(r) for r in conn.execute(sql, parameters).fetchall()]


def db_iter_rows(conn: sqlite3.Connection, sql: str, parameters: List[Any]) -> Iterator[sqlite3.Row]:
    cursor = conn.execute(sql, parameters)
    try:
        yield from cursor
    finally:
        cursor.close()


def db_statistics(conn: sqlite3.Connection) -> Dict[str, Any]:
    """Get various statistics about the listings."""
    total_listings = conn.execute('SELECT COUNT(*) FROM listings').fetchone()[0]
    geocoded = conn.execute(
        'SELECT COUNT(*) FROM listings WHERE latitude IS NOT NULL'
    ).fetchone()[0]
    missing = conn.execute(
        "SELECT COUNT(*) FROM listings WHERE location != '' AND latitude IS NULL"
    ).fetchone()[0]
    total_users = conn.execute('SELECT COUNT(*) FROM users').fetchone()[0]

    min_price, max_price, avg_price = conn.execute(
        'SELECT MIN(price), MAX(price), AVG(price) FROM listings'
    ).fetchone()

    return {
        'total_listings': total_listings,
        'total_users': total_users,
        'geocoded_listings': geocoded,
        'ungeocoded_listings': missing,
        'min_price': min_price,
        'max_price': max_price,
        'avg_price': avg_price,
    }
