"""SQLite persistence for spots.

Rows are owned by this store; callers receive immutable `Spot` values.
Every sqlite error is re-raised as `PersistenceError`.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
import sqlite3

from loguru import logger

from core.errors import PersistenceError
from core.models import Spot

DT_FMT = "%Y-%m-%d %H:%M:%S"

SCHEMA = """
CREATE TABLE IF NOT EXISTS spots (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    latitude REAL NOT NULL,
    longitude REAL NOT NULL,
    image_uri TEXT NOT NULL,
    created_at TEXT NOT NULL
)
"""


def _parse_datetime(value: str | None) -> datetime:
    """Parse a stored timestamp; unreadable values fall back to epoch."""
    if not value:
        return datetime.fromtimestamp(0)
    try:
        return datetime.strptime(value, DT_FMT)
    except ValueError:
        logger.warning("Invalid datetime in spots table: {}", value)
        return datetime.fromtimestamp(0)


def _row_to_spot(row: sqlite3.Row) -> Spot:
    return Spot(
        id=int(row["id"]),
        title=str(row["title"]),
        latitude=float(row["latitude"]),
        longitude=float(row["longitude"]),
        image_uri=str(row["image_uri"]),
        created_at=_parse_datetime(row["created_at"]),
    )


class SqliteSpotStore:
    """Spot table access on a single sqlite connection.

    The connection is created lazily on the thread that first uses it; all
    calls must come from that thread (the event loop thread in the app).
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = str(db_path)
        self._conn: sqlite3.Connection | None = None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            try:
                if self._db_path != ":memory:":
                    Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(self._db_path)
                conn.row_factory = sqlite3.Row
                conn.execute(SCHEMA)
                conn.commit()
            except (sqlite3.Error, OSError) as ex:
                raise PersistenceError(f"No se pudo abrir la base de datos: {ex}") from ex
            self._conn = conn
            logger.info("Spot database opened: {}", self._db_path)
        return self._conn

    def list_spots(self) -> list[Spot]:
        """Return every spot, newest first."""
        try:
            rows = self._connection().execute(
                "SELECT * FROM spots ORDER BY created_at DESC, id DESC"
            ).fetchall()
        except sqlite3.Error as ex:
            raise PersistenceError(str(ex)) from ex
        return [_row_to_spot(r) for r in rows]

    def get_spot(self, spot_id: int) -> Spot | None:
        try:
            row = self._connection().execute(
                "SELECT * FROM spots WHERE id = ?", (int(spot_id),)
            ).fetchone()
        except sqlite3.Error as ex:
            raise PersistenceError(str(ex)) from ex
        return _row_to_spot(row) if row is not None else None

    def insert_spot(
        self,
        title: str,
        latitude: float,
        longitude: float,
        image_uri: str,
        created_at: datetime | None = None,
    ) -> Spot:
        """Insert a row and return the stored spot with its new id."""
        created = (created_at or datetime.now()).replace(microsecond=0)
        conn = self._connection()
        try:
            with conn:
                cur = conn.execute(
                    "INSERT INTO spots (title, latitude, longitude, image_uri, created_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (title, float(latitude), float(longitude), image_uri, created.strftime(DT_FMT)),
                )
        except sqlite3.Error as ex:
            raise PersistenceError(str(ex)) from ex
        return Spot(
            id=int(cur.lastrowid),
            title=title,
            latitude=float(latitude),
            longitude=float(longitude),
            image_uri=image_uri,
            created_at=created,
        )

    def delete_spot(self, spot_id: int) -> bool:
        """Delete a row; returns False when the id did not exist."""
        conn = self._connection()
        try:
            with conn:
                cur = conn.execute("DELETE FROM spots WHERE id = ?", (int(spot_id),))
        except sqlite3.Error as ex:
            raise PersistenceError(str(ex)) from ex
        return cur.rowcount > 0

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
