"""
Unit tests for the schema initializer, using a fake pool and connection.
"""

from types import SimpleNamespace

import psycopg2
import pytest
from psycopg2 import errors, pool

from db.errors import DatabaseConnectionError, SchemaOrderError, StatementError
from db.init_db import initialize, is_already_exists
from db.schema_statements import BOOKINGS, SCHEMA_STATEMENTS
from models.schema import SchemaStatement, StatementKind


class CatalogUniqueViolation(errors.UniqueViolation):
    """What PostgreSQL raises when two sessions race on CREATE ... IF NOT EXISTS."""

    @property
    def diag(self):
        return SimpleNamespace(constraint_name="pg_type_typname_nsp_index")


class TestSuccessfulRun:
    """Tests for a run where every statement succeeds."""

    def test_commits_and_releases(self, fake_conn, fake_provider):
        initialize(fake_provider)

        assert fake_conn.commits == 1
        assert fake_conn.rollbacks == 0
        assert fake_conn.autocommit is False
        assert fake_provider.checkouts == 1
        assert fake_provider.released == [(fake_conn, False)]

    def test_statements_run_in_declared_order(self, fake_conn, fake_provider):
        initialize(fake_provider)

        assert fake_conn.statements_run() == [s.to_sql() for s in SCHEMA_STATEMENTS]

    def test_advisory_lock_taken_first(self, fake_conn, fake_provider):
        initialize(fake_provider, lock_key=42)

        assert "pg_advisory_xact_lock" in fake_conn.executed[0]

    def test_each_statement_in_savepoint(self, fake_conn, fake_provider):
        initialize(fake_provider, statements=[SchemaStatement(StatementKind.TABLE, "t", "id INT")])

        assert fake_conn.executed[1:] == [
            "SAVEPOINT schema_statement;",
            "CREATE TABLE IF NOT EXISTS t (\nid INT\n);",
            "RELEASE SAVEPOINT schema_statement;",
        ]

    def test_summary_lists_applied_statements(self, fake_provider):
        summary = initialize(fake_provider)

        assert summary.applied == [s.name for s in SCHEMA_STATEMENTS]
        assert summary.already_present == []


class TestIdempotence:
    """Tests for objects that already exist."""

    def test_duplicate_enum_treated_as_success(self, fake_conn, fake_provider):
        fake_conn.fail_on["CREATE TYPE company_status"] = errors.DuplicateObject(
            'type "company_status" already exists'
        )

        summary = initialize(fake_provider)

        assert summary.already_present == ["company_status"]
        assert "company_status" not in summary.applied
        assert "ROLLBACK TO SAVEPOINT schema_statement;" in fake_conn.executed
        assert fake_conn.commits == 1
        assert fake_conn.rollbacks == 0

    def test_every_enum_already_present(self, fake_conn, fake_provider):
        fake_conn.fail_on["CREATE TYPE"] = errors.DuplicateObject("already exists")

        summary = initialize(fake_provider)

        assert len(summary.already_present) == 6
        assert "companies" in summary.applied
        assert fake_conn.commits == 1

    def test_catalog_race_treated_as_success(self, fake_conn, fake_provider):
        fake_conn.fail_on["CREATE TABLE IF NOT EXISTS companies"] = CatalogUniqueViolation("duplicate key")

        summary = initialize(fake_provider)

        assert summary.already_present == ["companies"]
        assert fake_conn.commits == 1


class TestFailures:
    """Tests for the all-or-nothing error path."""

    def test_statement_failure_rolls_back(self, fake_conn, fake_provider):
        cause = errors.UndefinedTable('relation "users" does not exist')
        fake_conn.fail_on["CREATE TABLE IF NOT EXISTS bookings"] = cause

        with pytest.raises(StatementError) as exc_info:
            initialize(fake_provider)

        assert exc_info.value.statement is BOOKINGS
        assert exc_info.value.__cause__ is cause
        assert "table bookings failed" in str(exc_info.value)
        assert fake_conn.rollbacks == 1
        assert fake_conn.commits == 0
        assert fake_provider.released == [(fake_conn, False)]

    def test_no_statement_runs_after_failure(self, fake_conn, fake_provider):
        fake_conn.fail_on["CREATE TABLE IF NOT EXISTS bookings"] = errors.InsufficientPrivilege("denied")

        with pytest.raises(StatementError):
            initialize(fake_provider)

        assert fake_conn.statements_run()[-1] == BOOKINGS.to_sql()

    def test_failure_on_last_statement(self, fake_conn, fake_provider):
        fake_conn.fail_on["idx_audit_logs_company_id"] = errors.SyntaxError("syntax error")

        with pytest.raises(StatementError):
            initialize(fake_provider)

        assert fake_conn.commits == 0
        assert fake_conn.rollbacks == 1

    def test_commit_failure(self, fake_conn, fake_provider):
        fake_conn.commit_error = psycopg2.OperationalError("server closed the connection")

        with pytest.raises(StatementError, match="commit failed"):
            initialize(fake_provider)

        assert fake_conn.rollbacks == 1
        assert len(fake_provider.released) == 1

    def test_rollback_failure_does_not_mask_error(self, fake_conn, fake_provider):
        fake_conn.fail_on["CREATE TABLE IF NOT EXISTS users"] = psycopg2.OperationalError("connection lost")
        fake_conn.rollback_error = psycopg2.InterfaceError("connection already closed")
        fake_conn.closed = 2

        with pytest.raises(StatementError) as exc_info:
            initialize(fake_provider)

        assert exc_info.value.statement.name == "users"
        assert fake_provider.released == [(fake_conn, True)]

    def test_lost_connection_during_savepoint(self, fake_conn, fake_provider):
        fake_conn.fail_on["SAVEPOINT"] = psycopg2.OperationalError("connection lost")

        with pytest.raises(StatementError, match="schema transaction"):
            initialize(fake_provider)

        assert fake_conn.rollbacks == 1

    def test_advisory_lock_failure(self, fake_conn, fake_provider):
        fake_conn.fail_on["pg_advisory_xact_lock"] = errors.LockNotAvailable("timeout")

        with pytest.raises(StatementError, match="advisory lock"):
            initialize(fake_provider)

        assert fake_conn.statements_run() == []

    def test_unexpected_error_propagates_unchanged(self, fake_conn, fake_provider):
        fake_conn.fail_on["CREATE EXTENSION"] = RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            initialize(fake_provider)

        assert fake_conn.rollbacks == 1
        assert len(fake_provider.released) == 1

    def test_pool_exhausted(self, fake_provider):
        fake_provider.getconn_error = pool.PoolError("connection pool exhausted")

        with pytest.raises(DatabaseConnectionError):
            initialize(fake_provider)

        assert fake_provider.released == []

    def test_order_checked_before_connecting(self, fake_provider):
        with pytest.raises(SchemaOrderError):
            initialize(fake_provider, statements=[BOOKINGS])

        assert fake_provider.checkouts == 0


class TestIsAlreadyExists:
    """Tests for classifying driver errors."""

    @pytest.mark.parametrize("error_class", [
        errors.DuplicateObject,
        errors.DuplicateTable,
        errors.DuplicateSchema,
        errors.DuplicateFunction,
    ])
    def test_duplicate_errors(self, error_class):
        assert is_already_exists(error_class("exists")) is True

    def test_catalog_unique_violation(self):
        assert is_already_exists(CatalogUniqueViolation("duplicate key")) is True

    def test_data_unique_violation(self):
        assert is_already_exists(errors.UniqueViolation("duplicate key")) is False

    @pytest.mark.parametrize("error", [
        errors.SyntaxError("syntax"),
        errors.UndefinedTable("missing"),
        errors.InsufficientPrivilege("denied"),
        psycopg2.OperationalError("gone"),
    ])
    def test_other_errors(self, error):
        assert is_already_exists(error) is False
