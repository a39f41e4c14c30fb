# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Filtered, sorted and paginated SELECT construction from request params.

List endpoints receive untrusted query-string values. QueryBuilder turns
them into a SQLAlchemy Select without ever interpolating a value into SQL:
filter and search values travel as bound parameters, and a client supplied
sort column is reduced to ``[A-Za-z0-9_.]`` and only ever selects one of
the columns the endpoint declares sortable.

Predicates are ANDed in the order they were added. The built statement
always reads WHERE, then ORDER BY, then LIMIT/OFFSET.

Example:
    >>> builder = QueryBuilder(select(Attendance))
    >>> builder.apply_filters(params, {"class_id": Attendance.class_id})
    >>> builder.apply_sorting(params, [Attendance.date.desc()], {"date": Attendance.date})
    >>> builder.apply_pagination(params, default_limit=25)
    >>> rows = (await db.execute(builder.build())).all()
"""

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Self

from sqlalchemy import ColumnElement, Select, func, or_, select

from src.core.errors import ValidationError

logger = logging.getLogger(__name__)

_SORT_COLUMN_UNSAFE = re.compile(r"[^a-zA-Z0-9_.]")
_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})

QueryParams = Mapping[str, Any]


@dataclass(frozen=True)
class PageSpec:
    """Resolved pagination window.

    Attributes:
        page: 1-based page number.
        limit: Rows per page.
        offset: Rows skipped, (page - 1) * limit.
    """

    page: int
    limit: int
    offset: int

    @classmethod
    def from_page(cls, page: int, limit: int) -> "PageSpec":
        return cls(page=page, limit=limit, offset=(page - 1) * limit)


def sanitize_sort_column(raw: str) -> str:
    """Strip every character that cannot appear in a column reference.

    Args:
        raw: Client supplied sort column.

    Returns:
        The input with everything outside ``[A-Za-z0-9_.]`` removed.
    """
    return _SORT_COLUMN_UNSAFE.sub("", raw)


def first_value(value: Any) -> Any:
    """Collapse a repeated query key to its first value."""
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def is_present(value: Any) -> bool:
    """Check whether a request param counts as supplied."""
    return value is not None and value != ""


def _python_type(column: Any) -> type | None:
    try:
        return column.type.python_type
    except (AttributeError, NotImplementedError):
        return None


def coerce_value(column: Any, raw: Any, name: str | None = None) -> Any:
    """Convert a raw request value to the column's Python type.

    Args:
        column: Column or column expression the value is compared with.
        raw: Value taken from the request.
        name: Request param name used in the error details.

    Returns:
        The converted value, or raw unchanged when the column type is
        unknown or the value already has the right type.

    Raises:
        ValidationError: If the value cannot be converted.
    """
    target = _python_type(column)
    if target is None or isinstance(raw, target) and not (
        target is int and isinstance(raw, bool)
    ):
        return raw

    text = str(raw).strip()
    try:
        if target is bool:
            lowered = text.lower()
            if lowered in _TRUE_VALUES:
                return True
            if lowered in _FALSE_VALUES:
                return False
            raise ValueError(text)
        if target is int:
            return int(text)
        if target is float:
            return float(text)
        if target is Decimal:
            return Decimal(text)
        if target is datetime:
            return datetime.fromisoformat(text)
        if target is date:
            return date.fromisoformat(text)
        if target is time:
            return time.fromisoformat(text)
        if target is str:
            return text
    except (ValueError, InvalidOperation) as e:
        label = name or getattr(column, "key", "value")
        raise ValidationError(
            f"Invalid value for '{label}'.",
            details={label: f"Expected {target.__name__}, got {raw!r}"},
        ) from e
    return raw


def _positive_int(raw: Any) -> int | None:
    raw = first_value(raw)
    if not is_present(raw):
        return None
    try:
        value = int(str(raw).strip())
    except ValueError:
        return None
    return value if value >= 1 else None


class QueryBuilder:
    """Accumulates predicates, ordering and paging for one SELECT.

    The builder never mutates the base statement; build() returns a new
    Select each time.

    Attributes:
        page: Pagination window, set by apply_pagination().
    """

    def __init__(self, statement: Select) -> None:
        self._statement = statement
        self._conditions: list[ColumnElement[bool]] = []
        self._order_by: list[Any] = []
        self.page: PageSpec | None = None

    @property
    def conditions(self) -> list[ColumnElement[bool]]:
        """Predicates added so far, in order."""
        return list(self._conditions)

    def where(self, *conditions: ColumnElement[bool]) -> Self:
        """Append endpoint specific predicates."""
        self._conditions.extend(conditions)
        return self

    def apply_filters(self, params: QueryParams, filter_spec: Mapping[str, Any]) -> Self:
        """Add one equality predicate per supplied, declared param.

        Args:
            params: Request query params.
            filter_spec: Ordered mapping of request param name to column.
                Params not declared here are ignored.

        Returns:
            The builder, for chaining.

        Raises:
            ValidationError: If a supplied value does not fit its column.
        """
        for param, column in filter_spec.items():
            value = first_value(params.get(param))
            if not is_present(value):
                continue
            self._conditions.append(column == coerce_value(column, value, param))
        return self

    def apply_search(self, params: QueryParams, search_fields: Sequence[Any]) -> Self:
        """Add one OR group matching ``search`` against every field.

        Args:
            params: Request query params.
            search_fields: Columns searched with ``LIKE %term%``.

        Returns:
            The builder, for chaining.
        """
        term = first_value(params.get("search"))
        if not is_present(term) or not search_fields:
            return self
        pattern = f"%{term}%"
        self._conditions.append(or_(*(field.like(pattern) for field in search_fields)))
        return self

    def apply_sorting(
        self,
        params: QueryParams,
        default_sort: Sequence[Any],
        sortable: Mapping[str, Any],
    ) -> Self:
        """Set ORDER BY from ``sort_by`` and ``order``.

        Args:
            params: Request query params.
            default_sort: Order by clauses used when no usable sort_by is
                given.
            sortable: Public sort names mapped to columns. Only a sanitized
                name found here changes the order; any other name falls back
                to default_sort.

        Returns:
            The builder, for chaining.
        """
        raw = first_value(params.get("sort_by"))
        column_name = sanitize_sort_column(str(raw)) if is_present(raw) else ""
        column = sortable.get(column_name) if column_name else None
        if column is None:
            if is_present(raw):
                logger.debug("Sort column %r is not sortable, using default", raw)
            self._order_by = list(default_sort)
            return self

        order = str(first_value(params.get("order")) or "").lower()
        self._order_by = [column.desc() if order == "desc" else column.asc()]
        return self

    def apply_pagination(
        self,
        params: QueryParams,
        default_limit: int = 25,
        max_limit: int | None = None,
    ) -> PageSpec:
        """Set LIMIT and OFFSET from ``page`` and ``limit``.

        Missing, unparsable or non-positive values fall back to page 1 and
        default_limit.

        Args:
            params: Request query params.
            default_limit: Page size when none is given.
            max_limit: Optional cap on the page size.

        Returns:
            The resolved PageSpec.
        """
        limit = _positive_int(params.get("limit")) or default_limit
        if max_limit is not None:
            limit = min(limit, max_limit)
        page = _positive_int(params.get("page")) or 1
        self.page = PageSpec.from_page(page, limit)
        return self.page

    def _filtered(self) -> Select:
        statement = self._statement
        if self._conditions:
            statement = statement.where(*self._conditions)
        return statement

    def build(self) -> Select:
        """Compose the final statement."""
        statement = self._filtered()
        if self._order_by:
            statement = statement.order_by(*self._order_by)
        if self.page is not None:
            statement = statement.limit(self.page.limit).offset(self.page.offset)
        return statement

    def build_count(self) -> Select:
        """Count the rows matched by the filters, ignoring order and paging."""
        return select(func.count()).select_from(self._filtered().order_by(None).subquery())
