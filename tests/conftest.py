"""
Shared fixtures: in-memory stand-ins for a psycopg2 pool, connection and cursor.
"""

import pytest


class FakeCursor:
    """Records every statement; raises configured errors on matching SQL."""

    def __init__(self, connection):
        self.connection = connection
        self.rows = connection.rows

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def execute(self, sql, params=None):
        self.connection.executed.append(sql)
        for fragment, error in self.connection.fail_on.items():
            if fragment in sql:
                raise error

    def fetchall(self):
        return self.rows


class FakeConnection:
    def __init__(self):
        self.executed = []
        self.fail_on = {}
        self.rows = []
        self.autocommit = True
        self.closed = 0
        self.commits = 0
        self.rollbacks = 0
        self.commit_error = None
        self.rollback_error = None

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        if self.commit_error is not None:
            raise self.commit_error
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1
        if self.rollback_error is not None:
            raise self.rollback_error

    def statements_run(self):
        """Executed SQL without the savepoint and lock bookkeeping."""
        return [
            sql for sql in self.executed
            if "SAVEPOINT" not in sql and "pg_advisory_xact_lock" not in sql
        ]


class FakeProvider:
    def __init__(self, connection):
        self.connection = connection
        self.getconn_error = None
        self.checkouts = 0
        self.released = []

    def getconn(self):
        if self.getconn_error is not None:
            raise self.getconn_error
        self.checkouts += 1
        return self.connection

    def putconn(self, conn, close=False):
        self.released.append((conn, close))


@pytest.fixture
def fake_conn():
    return FakeConnection()


@pytest.fixture
def fake_provider(fake_conn):
    return FakeProvider(fake_conn)
