"""
main.py
-------
Entry point for the booking platform's database bootstrap.

Responsibilities:
    - Open the database connection pool.
    - Apply the schema (or, with --check, only verify it).
    - Close the pool and report success or failure through the exit code.

Any failure is fatal: the process exits with status 1 so that the
application startup depending on the schema does not proceed.
"""

import argparse
import sys

from config import DATABASE_URL, DB_CONNECT_TIMEOUT, DB_POOL_MAX, DB_POOL_MIN
from db.connection import ConnectionPool
from db.errors import SchemaError
from services.schema_service import SchemaService
from utils.logger import get_logger

logger = get_logger(__name__)


def _parse_args(argv):
    parser = argparse.ArgumentParser(description="Create or verify the booking database schema.")
    parser.add_argument(
        "--check",
        action="store_true",
        help="only verify that every schema object exists; change nothing",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Run the bootstrap and return the process exit code."""
    args = _parse_args(argv)

    # ── 1. Database connection ────────────────────────────
    pool = ConnectionPool(
        DATABASE_URL, DB_POOL_MIN, DB_POOL_MAX, connect_timeout=DB_CONNECT_TIMEOUT
    )
    try:
        pool.open()
        service = SchemaService(pool)

        # ── 2. Verify only ────────────────────────────────
        if args.check:
            report = service.verify()
            return 0 if report.is_complete else 1

        # ── 3. Apply the schema ───────────────────────────
        logger.info("Initializing database...")
        service.initialize()
        return 0
    except SchemaError as e:
        logger.error(f"Database bootstrap aborted: {e}")
        return 1
    finally:
        # ── 4. Cleanup ────────────────────────────────────
        pool.close()


if __name__ == "__main__":
    sys.exit(main())
