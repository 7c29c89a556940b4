"""
repositories/schema_repo.py
----------------------------
Read-only queries against the PostgreSQL system catalogs.
Everything except extensions is scoped to the connection's current schema.
"""

import psycopg2

from db.connection import rollback_quietly
from db.errors import StatementError
from models.schema import StatementKind
from utils.logger import get_logger

logger = get_logger(__name__)


class SchemaRepository:
    """Looks up which schema objects exist in the connected database."""

    _EXISTING_SQL = {
        StatementKind.EXTENSION: "SELECT extname FROM pg_extension;",
        StatementKind.ENUM: """
            SELECT t.typname
            FROM pg_type t
            JOIN pg_namespace n ON n.oid = t.typnamespace
            WHERE t.typtype = 'e' AND n.nspname = current_schema();
        """,
        StatementKind.TABLE: """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = current_schema() AND table_type = 'BASE TABLE';
        """,
        StatementKind.INDEX: "SELECT indexname FROM pg_indexes WHERE schemaname = current_schema();",
    }

    def __init__(self, provider):
        """
        Args:
            provider: Connection provider with ``getconn()`` / ``putconn()``.
        """
        self.provider = provider

    def _fetch_column(self, sql: str, params: tuple = ()) -> list:
        """
        Run a catalog query and return its first column.

        Raises:
            StatementError: The query failed (permissions, lost connection...).
        """
        conn = self.provider.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                return [row[0] for row in cur.fetchall()]
        except psycopg2.Error as e:
            logger.error(f"Catalog query failed: {e}")
            raise StatementError("catalog query", str(e).strip()) from e
        finally:
            rollback_quietly(conn)
            self.provider.putconn(conn, close=bool(conn.closed))

    def get_existing(self, kind: StatementKind) -> set[str]:
        """Names of all objects of the given kind that exist right now."""
        return set(self._fetch_column(self._EXISTING_SQL[kind]))

    def get_existing_by_kind(self) -> dict[StatementKind, set[str]]:
        """Existing object names for every statement kind."""
        return {kind: self.get_existing(kind) for kind in StatementKind}

    def get_enum_labels(self, type_name: str) -> list[str]:
        """
        Labels of an enum type in declaration order.

        Returns:
            The labels, or an empty list if the type does not exist.
        """
        sql = """
            SELECT e.enumlabel
            FROM pg_enum e
            JOIN pg_type t ON t.oid = e.enumtypid
            JOIN pg_namespace n ON n.oid = t.typnamespace
            WHERE t.typname = %s AND n.nspname = current_schema()
            ORDER BY e.enumsortorder;
        """
        return self._fetch_column(sql, (type_name,))
