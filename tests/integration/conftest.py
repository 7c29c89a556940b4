"""
Fixtures for tests against a real PostgreSQL server.

Set TEST_DATABASE_URL to run them. Each test gets its own throwaway schema
(first on the search_path), so the server's other contents are untouched.
"""

import os
import uuid

import psycopg2
import pytest

from db.connection import ConnectionPool
from services.schema_service import SchemaService

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")


@pytest.fixture(scope="session", autouse=True)
def require_database():
    if not TEST_DATABASE_URL:
        pytest.skip("TEST_DATABASE_URL is not set")


@pytest.fixture(scope="session")
def admin_conn(require_database):
    """Autocommit connection used to create and drop test schemas."""
    conn = psycopg2.connect(TEST_DATABASE_URL)
    conn.autocommit = True
    with conn.cursor() as cur:
        # Installed once in public so dropping a test schema never removes it
        cur.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp" SCHEMA public;')
    yield conn
    conn.close()


@pytest.fixture
def schema_name(admin_conn):
    name = f"test_{uuid.uuid4().hex[:12]}"
    with admin_conn.cursor() as cur:
        cur.execute(f"CREATE SCHEMA {name};")
    yield name
    with admin_conn.cursor() as cur:
        cur.execute(f"DROP SCHEMA IF EXISTS {name} CASCADE;")


@pytest.fixture
def db_pool(schema_name):
    """Connection pool whose connections live in the test schema."""
    cp = ConnectionPool(
        TEST_DATABASE_URL, 1, 4, options=f"-c search_path={schema_name},public"
    ).open()
    yield cp
    cp.close()


@pytest.fixture
def service(db_pool):
    return SchemaService(db_pool)


@pytest.fixture
def initialized(service):
    service.initialize()
    return service


@pytest.fixture
def db(db_pool):
    """A connection for inserting rows; rolled back after the test."""
    with db_pool.connection() as conn:
        yield conn
        conn.rollback()
