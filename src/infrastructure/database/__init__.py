# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure.

This package provides:
- connection: the process wide async engine and sessionmaker
- unit_of_work: the commit / rollback boundary for writes
- query: SELECT construction from untrusted request params
- bulk: single statement multi-row inserts and upserts
- errors: driver error translation into application errors
- models: SQLAlchemy declarative models

Example:
    from src.infrastructure.database import init_database, unit_of_work

    await init_database(settings)
    async with unit_of_work() as session:
        await bulk_upsert(session, "attendance", columns, rows, updates)
"""

from src.infrastructure.database.bulk import bulk_insert, bulk_upsert
from src.infrastructure.database.connection import (
    DatabaseError,
    check_database_connection,
    close_database,
    get_engine,
    get_sessionmaker,
    init_database,
)
from src.infrastructure.database.errors import translate_db_error
from src.infrastructure.database.query import PageSpec, QueryBuilder
from src.infrastructure.database.unit_of_work import UnitOfWork, unit_of_work

__all__ = [
    # Connection
    "DatabaseError",
    "check_database_connection",
    "close_database",
    "get_engine",
    "get_sessionmaker",
    "init_database",
    # Writes
    "UnitOfWork",
    "unit_of_work",
    "bulk_insert",
    "bulk_upsert",
    # Reads
    "PageSpec",
    "QueryBuilder",
    # Errors
    "translate_db_error",
]
