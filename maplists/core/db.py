"""Database helpers for collections and their locations."""

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from psycopg2 import extras, pool

from maplists.core.config import get_settings
from maplists.core.errors import ConfigError

logger = logging.getLogger(__name__)

_connection_pool: Optional[pool.SimpleConnectionPool] = None


def init_pool(minconn: int = 1, maxconn: int = 5) -> pool.SimpleConnectionPool:
    """Initialise and return the shared connection pool."""
    global _connection_pool
    if _connection_pool is None:
        settings = get_settings()
        if not settings.database_url:
            raise ConfigError("DATABASE_URL is required for database connections")
        _connection_pool = pool.SimpleConnectionPool(
            minconn,
            maxconn,
            dsn=settings.database_url,
            connect_timeout=10,
        )
        logger.info("Database connection pool initialised")
    return _connection_pool


@contextmanager
def get_connection():
    """Context manager yielding a pooled connection, rolled back on error."""
    pg_pool = init_pool()
    conn = pg_pool.getconn()
    try:
        yield conn
    except Exception:
        conn.rollback()
        raise
    finally:
        pg_pool.putconn(conn)


_SELECT_OWNER = "SELECT owner_id FROM maps WHERE id = %(collection_id)s;"

_SELECT_LOCATIONS = """
SELECT name, latitude, longitude, google_maps_url
FROM locations
WHERE map_id = %(collection_id)s;
"""

_INSERT_LOCATION = """
INSERT INTO locations (
    map_id,
    creator_id,
    name,
    latitude,
    longitude,
    google_maps_url,
    note,
    status,
    is_approved,
    city,
    created_at,
    updated_at
) VALUES (
    %(map_id)s,
    %(creator_id)s,
    %(name)s,
    %(latitude)s,
    %(longitude)s,
    %(google_maps_url)s,
    %(note)s,
    %(status)s,
    %(is_approved)s,
    %(city)s,
    %(created_at)s,
    %(updated_at)s
)
RETURNING id;
"""

_INSERT_UPVOTE = """
INSERT INTO location_votes (location_id, user_id)
VALUES (%(location_id)s, %(user_id)s)
ON CONFLICT (location_id, user_id) DO NOTHING;
"""

_REQUIRED_LOCATION_FIELDS = ("map_id", "creator_id", "name", "latitude", "longitude", "google_maps_url")


def get_collection_owner(collection_id: str) -> Optional[str]:
    """Return the owner id of a collection, or None when it does not exist."""
    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(_SELECT_OWNER, {"collection_id": collection_id})
            row = cur.fetchone()
    if row is None:
        return None
    return str(row[0])


def list_collection_locations(collection_id: str) -> List[Dict[str, Any]]:
    """Rows used for duplicate detection, scoped to one collection."""
    with get_connection() as conn:
        with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
            cur.execute(_SELECT_LOCATIONS, {"collection_id": collection_id})
            rows = cur.fetchall()
    return [dict(row) for row in rows]


def insert_location(row: Dict[str, Any]) -> str:
    """Insert one location in its own transaction and return the new id."""
    missing = [name for name in _REQUIRED_LOCATION_FIELDS if row.get(name) is None]
    if missing:
        raise ValueError(f"missing location fields: {', '.join(missing)}")

    params = {
        "map_id": row["map_id"],
        "creator_id": row["creator_id"],
        "name": row["name"],
        "latitude": row["latitude"],
        "longitude": row["longitude"],
        "google_maps_url": row["google_maps_url"],
        "note": row.get("note"),
        "status": row.get("status", "pending"),
        "is_approved": bool(row.get("is_approved", False)),
        "city": row.get("city"),
        "created_at": row.get("created_at"),
        "updated_at": row.get("updated_at"),
    }

    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(_INSERT_LOCATION, params)
            inserted = cur.fetchone()
        conn.commit()
    logger.debug("Inserted location %s into map %s", params["name"], params["map_id"])
    return str(inserted[0])


def register_upvote(location_id: str, user_id: str) -> None:
    """Record an upvote; repeated calls for the same pair are no-ops."""
    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(_INSERT_UPVOTE, {"location_id": location_id, "user_id": user_id})
        conn.commit()
