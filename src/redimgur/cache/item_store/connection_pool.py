"""SQLite connection pool shared by the store's background contexts.

Connections are created lazily, configured for WAL journaling and handed out
to one context at a time.
"""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path
from queue import Queue, Empty
from typing import Optional
import logging

from ...config import ACQUIRE_TIMEOUT, CONNECTION_TIMEOUT

logger = logging.getLogger(__name__)


class ConnectionPool:
    """Thread-safe pool of SQLite connections to a single store file."""

    def __init__(self, db_path: str | Path, pool_size: int = 4):
        """Initialize a connection pool.

        Args:
            db_path: Path to the SQLite database file
            pool_size: Maximum number of pooled connections
        """
        self._db_path = str(db_path)
        self._pool_size = pool_size
        self._pool: Queue[sqlite3.Connection] = Queue(maxsize=pool_size)
        self._lock = threading.Lock()
        self._initialized = False
        self._total_connections = 0

    @property
    def db_path(self) -> str:
        return self._db_path

    def _init_pool(self) -> None:
        with self._lock:
            if self._initialized:
                return

            for _ in range(self._pool_size):
                try:
                    conn = self.connect()
                except sqlite3.Error as e:
                    logger.error("Failed to create database connection: %s", e)
                    continue
                self._pool.put(conn)
                self._total_connections += 1

            self._initialized = True
            logger.debug(
                "Initialized connection pool for %s with %d connections",
                self._db_path,
                self._total_connections,
            )

    def connect(self) -> sqlite3.Connection:
        """Open a new, unpooled connection with the store's settings.

        Raises:
            sqlite3.Error: If the database file cannot be opened
        """
        conn = sqlite3.connect(
            self._db_path,
            check_same_thread=False,  # contexts hop between pool threads
            timeout=CONNECTION_TIMEOUT,
            isolation_level=None,  # transactions are opened explicitly
        )
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
            conn.execute("PRAGMA temp_store=MEMORY")
        except sqlite3.Error:
            conn.close()
            raise
        conn.row_factory = sqlite3.Row
        return conn

    def acquire(self, timeout: float = ACQUIRE_TIMEOUT) -> Optional[sqlite3.Connection]:
        """Acquire a connection from the pool.

        Returns:
            Database connection or None if none became free within *timeout*
        """
        if not self._initialized:
            self._init_pool()

        try:
            conn = self._pool.get(timeout=timeout)
            logger.debug("Connection acquired from pool")
            return conn
        except Empty:
            logger.warning("Connection pool exhausted (timeout after %.1fs)", timeout)
            return None

    def release(self, conn: sqlite3.Connection) -> None:
        """Return *conn* to the pool, discarding any open transaction."""
        if conn is None:
            return

        try:
            if conn.in_transaction:
                conn.rollback()
            self._pool.put(conn, block=False)
            logger.debug("Connection released to pool")
        except Exception as e:
            logger.error("Error releasing connection: %s", e)
            conn.close()

    def shutdown(self) -> None:
        """Close all connections in the pool."""
        with self._lock:
            if not self._initialized:
                return

            closed_count = 0
            while not self._pool.empty():
                try:
                    conn = self._pool.get(block=False)
                    conn.close()
                    closed_count += 1
                except Exception as e:
                    logger.error("Error closing connection: %s", e)

            self._initialized = False
            self._total_connections = 0
            logger.info("Closed %d connections from pool", closed_count)
