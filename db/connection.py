"""
db/connection.py
----------------
Manages the PostgreSQL connection pool.
Uses psycopg2's ThreadedConnectionPool so several threads (or several
initializers in tests) can check connections out concurrently.

The pool is owned by whoever creates it (normally ``main.py``) and is passed
explicitly to the code that needs connections.
"""

from contextlib import contextmanager

import psycopg2
from psycopg2 import pool

from db.errors import DatabaseConnectionError
from utils.logger import get_logger

logger = get_logger(__name__)


class ConnectionPool:
    """
    Thin wrapper around ``psycopg2.pool.ThreadedConnectionPool``.

    Exposes the ``getconn`` / ``putconn`` pair expected by the schema
    initializer and translates driver failures into DatabaseConnectionError.
    """

    def __init__(self, dsn: str, min_conn: int = 1, max_conn: int = 5, **connect_kwargs):
        """
        Args:
            dsn: libpq connection string or URL.
            min_conn: Minimum number of connections to keep open.
            max_conn: Maximum number of connections allowed.
            **connect_kwargs: Extra keyword arguments for ``psycopg2.connect``
                (e.g. ``connect_timeout``, ``options``).
        """
        self.dsn = dsn
        self.min_conn = min_conn
        self.max_conn = max_conn
        self.connect_kwargs = connect_kwargs
        self._pool: pool.ThreadedConnectionPool | None = None

    @property
    def is_open(self) -> bool:
        return self._pool is not None and not self._pool.closed

    def open(self) -> "ConnectionPool":
        """
        Create the underlying pool. Calling it twice is a no-op.

        Raises:
            DatabaseConnectionError: If the database is unreachable.
        """
        if self.is_open:
            return self
        try:
            self._pool = pool.ThreadedConnectionPool(
                self.min_conn, self.max_conn, self.dsn, **self.connect_kwargs
            )
        except psycopg2.OperationalError as e:
            logger.error(f"Failed to initialize database pool: {e}")
            raise DatabaseConnectionError(f"Cannot connect to database: {e}") from e
        logger.info("Database connection pool initialized successfully.")
        return self

    def getconn(self):
        """
        Get a connection from the pool.

        Raises:
            DatabaseConnectionError: If the pool is not open, is exhausted,
                or a new connection cannot be established.
        """
        if not self.is_open:
            raise DatabaseConnectionError("Database pool not initialized. Call open() first.")
        try:
            return self._pool.getconn()
        except (pool.PoolError, psycopg2.OperationalError) as e:
            logger.error(f"Failed to get a database connection: {e}")
            raise DatabaseConnectionError(f"Cannot get a database connection: {e}") from e

    def putconn(self, conn, close: bool = False) -> None:
        """
        Return a connection back to the pool.

        Args:
            conn: The psycopg2 connection to release.
            close: Discard the connection instead of keeping it for reuse.
        """
        if self._pool is not None and not self._pool.closed:
            self._pool.putconn(conn, close=close)

    @contextmanager
    def connection(self):
        """Check out a connection for the duration of a ``with`` block."""
        conn = self.getconn()
        try:
            yield conn
        finally:
            self.putconn(conn, close=bool(conn.closed))

    def close(self) -> None:
        """Close all connections in the pool."""
        if self.is_open:
            self._pool.closeall()
            logger.info("Database connection pool closed.")
        self._pool = None

    def __enter__(self) -> "ConnectionPool":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def rollback_quietly(conn) -> None:
    """Roll back, logging (not raising) if the connection is already gone."""
    try:
        conn.rollback()
    except psycopg2.Error as e:
        logger.warning(f"Rollback failed, connection will be discarded: {e}")
