# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Translation of database driver errors into application errors.

Drivers report constraint violations differently: MySQL uses numeric error
codes, PostgreSQL uses SQLSTATE codes and SQLite only has a message. This
module reduces all of them to one IntegrityKind and maps that kind to an
AppError subclass. It is called in one place, the API exception handlers,
after the unit of work has already rolled back.
"""

from enum import Enum
from typing import Any

from sqlalchemy import exc as sa_exc

from src.core.errors import (
    AppError,
    ConflictError,
    ReferentialError,
    ResourceExhaustedError,
    ValidationError,
)


class IntegrityKind(str, Enum):
    """Constraint families distinguished by the translator."""

    DUPLICATE = "duplicate"
    FOREIGN_KEY = "foreign_key"
    NOT_NULL = "not_null"
    OTHER = "other"


_MYSQL_CODES = {
    1062: IntegrityKind.DUPLICATE,  # ER_DUP_ENTRY
    1216: IntegrityKind.FOREIGN_KEY,  # ER_NO_REFERENCED_ROW
    1217: IntegrityKind.FOREIGN_KEY,  # ER_ROW_IS_REFERENCED
    1451: IntegrityKind.FOREIGN_KEY,  # ER_ROW_IS_REFERENCED_2
    1452: IntegrityKind.FOREIGN_KEY,  # ER_NO_REFERENCED_ROW_2
    1048: IntegrityKind.NOT_NULL,  # ER_BAD_NULL_ERROR
}

_SQLSTATE_CODES = {
    "23505": IntegrityKind.DUPLICATE,
    "23503": IntegrityKind.FOREIGN_KEY,
    "23502": IntegrityKind.NOT_NULL,
}

_SQLITE_MESSAGES = (
    ("UNIQUE constraint failed", IntegrityKind.DUPLICATE),
    ("FOREIGN KEY constraint failed", IntegrityKind.FOREIGN_KEY),
    ("NOT NULL constraint failed", IntegrityKind.NOT_NULL),
)

DUPLICATE_MESSAGE = "Duplicate entry. This record already exists."
FOREIGN_KEY_MESSAGE = "Invalid reference. A related record does not exist."
NOT_NULL_MESSAGE = "A required field is missing."
EXHAUSTED_MESSAGE = "The service is busy. Please retry shortly."


def _sqlstate(orig: Any) -> str | None:
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if candidate is None:
            continue
        for attribute in ("sqlstate", "pgcode"):
            code = getattr(candidate, attribute, None)
            if isinstance(code, str):
                return code
    return None


def _mysql_errno(orig: Any) -> int | None:
    args = getattr(orig, "args", ())
    if args and isinstance(args[0], int):
        return args[0]
    return None


def classify_integrity_error(error: sa_exc.DBAPIError) -> IntegrityKind:
    """Work out which constraint a driver error violated.

    Args:
        error: SQLAlchemy wrapped driver error.

    Returns:
        The IntegrityKind, OTHER when the driver signal is unrecognized.
    """
    orig = error.orig

    errno = _mysql_errno(orig)
    if errno in _MYSQL_CODES:
        return _MYSQL_CODES[errno]

    state = _sqlstate(orig)
    if state in _SQLSTATE_CODES:
        return _SQLSTATE_CODES[state]

    message = str(orig)
    for fragment, kind in _SQLITE_MESSAGES:
        if fragment in message:
            return kind
    return IntegrityKind.OTHER


def translate_db_error(error: BaseException) -> AppError | None:
    """Map a database error to the AppError it is reported as.

    Args:
        error: Any exception raised while talking to the database.

    Returns:
        The matching AppError, or None when the error is unclassified and
        should be reported as an internal error.
    """
    if isinstance(error, AppError):
        return error

    if isinstance(error, sa_exc.TimeoutError):
        return ResourceExhaustedError(EXHAUSTED_MESSAGE)

    if isinstance(error, sa_exc.IntegrityError):
        kind = classify_integrity_error(error)
        if kind is IntegrityKind.DUPLICATE:
            return ConflictError(DUPLICATE_MESSAGE)
        if kind is IntegrityKind.FOREIGN_KEY:
            return ReferentialError(FOREIGN_KEY_MESSAGE)
        if kind is IntegrityKind.NOT_NULL:
            return ValidationError(NOT_NULL_MESSAGE)
        return None

    if isinstance(error, sa_exc.DataError):
        return ValidationError("Invalid data value.")

    return None
