"""
db/init_db.py
-------------
Creates the database schema (extension, enum types, tables, indexes)
if it does not already exist.

All statements run in a single transaction: either the whole schema
converges or nothing is committed. Safe to call repeatedly and from several
processes at once. Run this module directly to initialize a database:
    python -m db.init_db
"""

import psycopg2
from psycopg2 import errors, pool

from config import SCHEMA_LOCK_KEY
from db.connection import rollback_quietly
from db.errors import AlreadyExistsError, DatabaseConnectionError, StatementError
from db.schema_statements import SCHEMA_STATEMENTS, validate_order
from models.schema import SchemaRunSummary
from utils.logger import get_logger

logger = get_logger(__name__)

_SAVEPOINT = "schema_statement"

_ALREADY_EXISTS_ERRORS = (
    errors.DuplicateObject,     # 42710, e.g. CREATE TYPE on an existing type
    errors.DuplicateTable,      # 42P07, tables and indexes
    errors.DuplicateSchema,     # 42P06
    errors.DuplicateFunction,   # 42723
)


def is_already_exists(exc: psycopg2.Error) -> bool:
    """
    Tell whether a driver error only means the object is already there.

    Two sessions racing on ``CREATE ... IF NOT EXISTS`` can make PostgreSQL
    report a unique violation on one of its own ``pg_*`` catalog indexes
    instead of a duplicate error; that counts as "already exists" too.
    """
    if isinstance(exc, _ALREADY_EXISTS_ERRORS):
        return True
    if isinstance(exc, errors.UniqueViolation):
        constraint = getattr(exc.diag, "constraint_name", None) or ""
        return constraint.startswith("pg_")
    return False


def apply_statement(cur, statement) -> None:
    """
    Execute one schema statement inside a savepoint.

    Raises:
        AlreadyExistsError: The object exists; the savepoint has been rolled
            back so the transaction can continue.
        StatementError: Any other failure. The transaction is left aborted.
    """
    cur.execute(f"SAVEPOINT {_SAVEPOINT};")
    try:
        cur.execute(statement.to_sql())
    except psycopg2.Error as e:
        if not is_already_exists(e):
            raise StatementError(statement, str(e).strip()) from e
        cur.execute(f"ROLLBACK TO SAVEPOINT {_SAVEPOINT};")
        raise AlreadyExistsError(statement) from e
    cur.execute(f"RELEASE SAVEPOINT {_SAVEPOINT};")


def _checkout(provider):
    """Get a connection from the provider, normalizing driver failures."""
    try:
        return provider.getconn()
    except DatabaseConnectionError:
        raise
    except (pool.PoolError, psycopg2.OperationalError) as e:
        logger.error(f"Failed to get a database connection: {e}")
        raise DatabaseConnectionError(f"Cannot get a database connection: {e}") from e


def _apply_all(conn, statements, lock_key: int) -> SchemaRunSummary:
    summary = SchemaRunSummary()
    with conn.cursor() as cur:
        try:
            # Serializes concurrent initializers until this transaction ends
            cur.execute("SELECT pg_advisory_xact_lock(%s);", (lock_key,))
        except psycopg2.Error as e:
            raise StatementError("advisory lock", str(e).strip()) from e

        for statement in statements:
            try:
                apply_statement(cur, statement)
            except AlreadyExistsError:
                logger.debug(f"{statement} already exists, skipping.")
                summary.already_present.append(statement.name)
            else:
                logger.debug(f"Applied {statement}.")
                summary.applied.append(statement.name)
    return summary


def initialize(provider, statements=SCHEMA_STATEMENTS, lock_key: int = SCHEMA_LOCK_KEY) -> SchemaRunSummary:
    """
    Converge the database onto the declared schema in one transaction.

    Args:
        provider: Anything with ``getconn()`` / ``putconn(conn, close=...)``,
            e.g. db.connection.ConnectionPool or a psycopg2 pool.
        statements: Ordered schema statements to apply.
        lock_key: Advisory lock key shared by all initializers.

    Returns:
        A SchemaRunSummary of applied vs. already-present statements.

    Raises:
        SchemaOrderError: The statement list is not in dependency order.
        DatabaseConnectionError: No connection could be obtained.
        StatementError: A statement (or the commit) failed; nothing was committed.
    """
    statements = tuple(statements)
    validate_order(statements)

    conn = _checkout(provider)
    try:
        conn.autocommit = False
        summary = _apply_all(conn, statements, lock_key)
        try:
            conn.commit()
        except psycopg2.Error as e:
            raise StatementError("commit", str(e).strip()) from e
    except psycopg2.Error as e:
        # Savepoint bookkeeping failed, usually because the connection dropped
        rollback_quietly(conn)
        logger.error(f"Database initialization failed: {e}")
        raise StatementError("schema transaction", str(e).strip()) from e
    except Exception as e:
        rollback_quietly(conn)
        logger.error(f"Database initialization failed: {e}")
        raise
    finally:
        provider.putconn(conn, close=bool(conn.closed))

    logger.info(f"Database initialized successfully ({summary}).")
    return summary


if __name__ == "__main__":
    import sys

    from main import main

    sys.exit(main())
