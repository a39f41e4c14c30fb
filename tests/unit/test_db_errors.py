# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for database error translation."""

import pytest
from sqlalchemy import exc as sa_exc

from src.core.errors import (
    ConflictError,
    NotFoundError,
    ReferentialError,
    ResourceExhaustedError,
    ValidationError,
)
from src.infrastructure.database.errors import (
    DUPLICATE_MESSAGE,
    FOREIGN_KEY_MESSAGE,
    IntegrityKind,
    classify_integrity_error,
    translate_db_error,
)


class MySQLDriverError(Exception):
    """Stand-in for a MySQL driver error carrying (errno, message)."""


class PostgresDriverError(Exception):
    """Stand-in for an asyncpg error carrying a SQLSTATE."""

    def __init__(self, sqlstate: str) -> None:
        super().__init__(f"sqlstate {sqlstate}")
        self.sqlstate = sqlstate


def integrity(orig: Exception) -> sa_exc.IntegrityError:
    return sa_exc.IntegrityError("INSERT ...", {}, orig)


class TestClassifyIntegrityError:
    """Tests for reducing driver signals to an IntegrityKind."""

    @pytest.mark.parametrize(
        ("errno", "kind"),
        [
            (1062, IntegrityKind.DUPLICATE),
            (1452, IntegrityKind.FOREIGN_KEY),
            (1451, IntegrityKind.FOREIGN_KEY),
            (1048, IntegrityKind.NOT_NULL),
            (1364, IntegrityKind.OTHER),
        ],
    )
    def test_mysql_error_codes(self, errno: int, kind: IntegrityKind) -> None:
        """Test MySQL numeric error codes."""
        error = integrity(MySQLDriverError(errno, "constraint failed"))

        assert classify_integrity_error(error) is kind

    @pytest.mark.parametrize(
        ("sqlstate", "kind"),
        [
            ("23505", IntegrityKind.DUPLICATE),
            ("23503", IntegrityKind.FOREIGN_KEY),
            ("23502", IntegrityKind.NOT_NULL),
        ],
    )
    def test_postgres_sqlstates(self, sqlstate: str, kind: IntegrityKind) -> None:
        """Test PostgreSQL SQLSTATE codes."""
        assert classify_integrity_error(integrity(PostgresDriverError(sqlstate))) is kind

    def test_postgres_sqlstate_on_cause(self) -> None:
        """Test that a SQLSTATE on the wrapped cause is found."""
        orig = Exception("wrapped")
        orig.__cause__ = PostgresDriverError("23505")

        assert classify_integrity_error(integrity(orig)) is IntegrityKind.DUPLICATE

    @pytest.mark.parametrize(
        ("message", "kind"),
        [
            ("UNIQUE constraint failed: scores.student_id", IntegrityKind.DUPLICATE),
            ("FOREIGN KEY constraint failed", IntegrityKind.FOREIGN_KEY),
            ("NOT NULL constraint failed: attendance.status", IntegrityKind.NOT_NULL),
            ("CHECK constraint failed", IntegrityKind.OTHER),
        ],
    )
    def test_sqlite_messages(self, message: str, kind: IntegrityKind) -> None:
        """Test SQLite message matching."""
        assert classify_integrity_error(integrity(Exception(message))) is kind


class TestTranslateDbError:
    """Tests for mapping database errors to application errors."""

    def test_duplicate_becomes_conflict(self) -> None:
        """Test that a unique violation is reported as 409."""
        error = translate_db_error(integrity(MySQLDriverError(1062, "Duplicate entry")))

        assert isinstance(error, ConflictError)
        assert error.status_code == 409
        assert error.message == DUPLICATE_MESSAGE

    def test_foreign_key_becomes_referential(self) -> None:
        """Test that a dangling reference is reported as 400."""
        error = translate_db_error(integrity(PostgresDriverError("23503")))

        assert isinstance(error, ReferentialError)
        assert error.status_code == 400
        assert error.message == FOREIGN_KEY_MESSAGE

    def test_not_null_becomes_validation(self) -> None:
        """Test that a missing column value is reported as 400."""
        error = translate_db_error(integrity(Exception("NOT NULL constraint failed: x.y")))

        assert isinstance(error, ValidationError)

    def test_pool_timeout_is_retriable(self) -> None:
        """Test that pool exhaustion is reported as retriable 503."""
        error = translate_db_error(sa_exc.TimeoutError("QueuePool limit reached"))

        assert isinstance(error, ResourceExhaustedError)
        assert error.status_code == 503
        assert error.retriable is True

    def test_data_error_becomes_validation(self) -> None:
        """Test that a value the column rejects is reported as 400."""
        error = translate_db_error(sa_exc.DataError("INSERT", {}, Exception("out of range")))

        assert isinstance(error, ValidationError)

    def test_unclassified_errors_are_not_translated(self) -> None:
        """Test that unknown failures stay internal errors."""
        assert translate_db_error(integrity(Exception("CHECK constraint failed"))) is None
        assert translate_db_error(sa_exc.OperationalError("SELECT", {}, Exception("x"))) is None

    def test_app_errors_pass_through(self) -> None:
        """Test that an AppError is returned unchanged."""
        original = NotFoundError("Class not found.")

        assert translate_db_error(original) is original
