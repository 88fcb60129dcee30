"""Schema creation for the image item table."""

from __future__ import annotations

import logging
import sqlite3

from ...config import SCHEMA_VERSION
from ...errors import StoreLoadError

logger = logging.getLogger(__name__)

TABLE_NAME = "image_items"

_SCHEMA_V1 = f"""
CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
    pk INTEGER PRIMARY KEY AUTOINCREMENT,
    identifier TEXT,
    title TEXT,
    datetime REAL NOT NULL,
    views INTEGER NOT NULL,
    link TEXT
);
CREATE INDEX IF NOT EXISTS idx_{TABLE_NAME}_identifier ON {TABLE_NAME} (identifier);
CREATE INDEX IF NOT EXISTS idx_{TABLE_NAME}_datetime ON {TABLE_NAME} (datetime DESC);
"""


def ensure_schema(conn: sqlite3.Connection) -> None:
    """Create or validate the schema on *conn*.

    Raises:
        StoreLoadError: If the file was written by a newer schema version
        sqlite3.Error: If the file is not a usable database
    """

    version = conn.execute("PRAGMA user_version").fetchone()[0]
    if version > SCHEMA_VERSION:
        raise StoreLoadError(
            f"store schema version {version} is newer than supported {SCHEMA_VERSION}"
        )
    if version == SCHEMA_VERSION:
        return

    conn.executescript(_SCHEMA_V1)
    conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
    logger.info("Initialized item store schema version %d", SCHEMA_VERSION)
