# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Multi-row insert and upsert statements.

bulk_upsert() writes a whole batch with a single INSERT statement that
updates rows whose unique key already exists:

- MySQL / MariaDB: ``INSERT ... ON DUPLICATE KEY UPDATE col = VALUES(col)``
- PostgreSQL / SQLite: ``INSERT ... ON CONFLICT (key) DO UPDATE SET
  col = excluded.col``

One statement means the batch is applied entirely or not at all. The
writer does no duplicate detection of its own: the table's unique
constraint decides between insert and update. Database errors are not
caught here; they reach the caller's unit of work and the API error
translator unchanged.

The writer joins the caller's transaction and never commits.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import Table, UniqueConstraint, insert
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import InvalidArgumentError
from src.infrastructure.database.models import Base
from src.infrastructure.database.query import coerce_value

logger = logging.getLogger(__name__)

_MYSQL_DIALECTS = frozenset({"mysql", "mariadb"})
_CONFLICT_CLAUSE_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

Row = Sequence[Any]


def resolve_table(table: Table | str | type) -> Table:
    """Find the Table for a name, mapped class or Table.

    Raises:
        InvalidArgumentError: If the name is not a known table.
    """
    if isinstance(table, Table):
        return table
    if isinstance(table, str):
        found = Base.metadata.tables.get(table)
        if found is None:
            raise InvalidArgumentError(f"Unknown table '{table}'.")
        return found
    mapped = getattr(table, "__table__", None)
    if isinstance(mapped, Table):
        return mapped
    raise InvalidArgumentError(f"Cannot resolve a table from {table!r}.")


def _check_columns(table: Table, columns: Sequence[str], label: str) -> None:
    if not columns:
        raise InvalidArgumentError(f"{label} must not be empty.")
    if len(set(columns)) != len(columns):
        raise InvalidArgumentError(f"{label} contains duplicate columns.")
    unknown = [name for name in columns if name not in table.c]
    if unknown:
        raise InvalidArgumentError(
            f"{label} references unknown columns of '{table.name}'.",
            details={"columns": unknown},
        )


def _prepare_rows(
    table: Table,
    columns: Sequence[str],
    rows: Sequence[Row],
) -> list[dict[str, Any]]:
    if not rows:
        raise InvalidArgumentError("rows must not be empty.")

    width = len(columns)
    prepared: list[dict[str, Any]] = []
    for index, row in enumerate(rows):
        if isinstance(row, (str, bytes, Mapping)) or len(row) != width:
            raise InvalidArgumentError(
                f"Row {index} does not have {width} values.",
                details={"row": index, "expected": width},
            )
        prepared.append(
            {
                name: None if value is None else coerce_value(table.c[name], value, name)
                for name, value in zip(columns, row)
            }
        )
    return prepared


def conflict_key(
    table: Table,
    insert_columns: Sequence[str],
    conflict_columns: Sequence[str] | None = None,
) -> list[str]:
    """Pick the unique key an upsert conflicts on.

    Args:
        table: Target table.
        insert_columns: Columns the statement inserts.
        conflict_columns: Explicit key; must be a subset of insert_columns.

    Returns:
        Column names of the conflict key.

    Raises:
        InvalidArgumentError: If no unique key is covered by insert_columns.
    """
    inserted = set(insert_columns)
    if conflict_columns:
        if not set(conflict_columns) <= inserted:
            raise InvalidArgumentError("conflict_columns must be a subset of insert_columns.")
        return list(conflict_columns)

    for constraint in sorted(table.constraints, key=lambda c: c.name or ""):
        if not isinstance(constraint, UniqueConstraint):
            continue
        names = [column.name for column in constraint.columns]
        if names and set(names) <= inserted:
            return names

    primary = [column.name for column in table.primary_key.columns]
    if primary and set(primary) <= inserted:
        return primary

    raise InvalidArgumentError(
        f"insert_columns do not cover a unique key of '{table.name}'."
    )


def _dialect_name(db: AsyncSession) -> str:
    return db.get_bind().dialect.name


async def bulk_upsert(
    db: AsyncSession,
    table: Table | str | type,
    insert_columns: Sequence[str],
    rows: Sequence[Row],
    update_columns: Sequence[str],
    conflict_columns: Sequence[str] | None = None,
) -> int:
    """Insert a batch of rows, updating those whose unique key exists.

    Args:
        db: Session of the caller's unit of work.
        table: Table, mapped class or table name.
        insert_columns: Column names, in row value order.
        rows: Row tuples, each with len(insert_columns) values.
        update_columns: Columns overwritten from the new row on conflict.
            Must be a subset of insert_columns.
        conflict_columns: Unique key for ON CONFLICT dialects. Defaults to
            the table's unique constraint covered by insert_columns.

    Returns:
        Rows affected as reported by the driver.

    Raises:
        InvalidArgumentError: If a precondition is violated. Nothing is
            sent to the database in that case.
        NotImplementedError: If the dialect has no upsert statement.
    """
    target = resolve_table(table)
    _check_columns(target, insert_columns, "insert_columns")
    _check_columns(target, update_columns, "update_columns")
    if not set(update_columns) <= set(insert_columns):
        raise InvalidArgumentError("update_columns must be a subset of insert_columns.")
    values = _prepare_rows(target, insert_columns, rows)

    dialect = _dialect_name(db)
    if dialect in _MYSQL_DIALECTS:
        stmt = mysql.insert(target).values(values)
        stmt = stmt.on_duplicate_key_update(
            {name: stmt.inserted[name] for name in update_columns}
        )
    elif dialect in _CONFLICT_CLAUSE_DIALECTS:
        key = conflict_key(target, insert_columns, conflict_columns)
        stmt = _CONFLICT_CLAUSE_DIALECTS[dialect](target).values(values)
        stmt = stmt.on_conflict_do_update(
            index_elements=key,
            set_={name: stmt.excluded[name] for name in update_columns},
        )
    else:
        raise NotImplementedError(f"Upsert is not supported for dialect '{dialect}'")

    result = await db.execute(stmt)
    logger.debug("Upserted %d rows into %s", len(values), target.name)
    return result.rowcount


async def bulk_insert(
    db: AsyncSession,
    table: Table | str | type,
    columns: Sequence[str],
    rows: Sequence[Row],
    ignore_duplicates: bool = False,
) -> int:
    """Insert a batch of rows with one statement.

    Args:
        db: Session of the caller's unit of work.
        table: Table, mapped class or table name.
        columns: Column names, in row value order.
        rows: Row tuples, each with len(columns) values.
        ignore_duplicates: Skip rows that hit a unique key instead of
            failing (``INSERT IGNORE`` / ``ON CONFLICT DO NOTHING``).

    Returns:
        Rows inserted as reported by the driver.

    Raises:
        InvalidArgumentError: If a precondition is violated.
        NotImplementedError: If ignore_duplicates is unsupported for the
            dialect.
    """
    target = resolve_table(table)
    _check_columns(target, columns, "columns")
    values = _prepare_rows(target, columns, rows)

    if not ignore_duplicates:
        stmt = insert(target).values(values)
    else:
        dialect = _dialect_name(db)
        if dialect in _MYSQL_DIALECTS:
            stmt = insert(target).values(values).prefix_with("IGNORE")
        elif dialect in _CONFLICT_CLAUSE_DIALECTS:
            stmt = _CONFLICT_CLAUSE_DIALECTS[dialect](target).values(values)
            stmt = stmt.on_conflict_do_nothing()
        else:
            raise NotImplementedError(
                f"Ignoring duplicates is not supported for dialect '{dialect}'"
            )

    result = await db.execute(stmt)
    logger.debug("Inserted %d rows into %s", len(values), target.name)
    return result.rowcount
