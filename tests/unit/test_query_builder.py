# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the list query builder."""

from datetime import date

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import sqlite

from src.core.errors import ValidationError
from src.infrastructure.database.models import Attendance, Class, Notification
from src.infrastructure.database.query import (
    PageSpec,
    QueryBuilder,
    coerce_value,
    first_value,
    sanitize_sort_column,
)


def compile_sql(statement) -> str:
    """Render a statement with inlined values, whitespace collapsed."""
    compiled = statement.compile(
        dialect=sqlite.dialect(),
        compile_kwargs={"literal_binds": True},
    )
    return " ".join(str(compiled).split())


def attendance_builder() -> QueryBuilder:
    return QueryBuilder(select(Attendance.id, Attendance.date, Attendance.status))


FILTER_SPEC = {
    "class_id": Attendance.class_id,
    "student_id": Attendance.student_id,
    "date": Attendance.date,
}

SORTABLE = {"date": Attendance.date, "status": Attendance.status}


class TestSanitizeSortColumn:
    """Tests for sort column sanitizing."""

    def test_strips_injection_characters(self) -> None:
        """Test that everything outside [A-Za-z0-9_.] is removed."""
        assert sanitize_sort_column("id; DROP TABLE x") == "idDROPTABLEx"

    def test_keeps_qualified_names(self) -> None:
        """Test that dotted column references survive."""
        assert sanitize_sort_column("classes.name") == "classes.name"

    def test_quotes_and_comments_removed(self) -> None:
        """Test that quotes and comment markers are dropped."""
        assert sanitize_sort_column("name' --") == "name"


class TestApplyFilters:
    """Tests for equality filters."""

    def test_filters_follow_spec_order(self) -> None:
        """Test predicates are added in declared filter order, not param order."""
        params = {"date": "2025-03-14", "student_id": "11", "class_id": "3"}

        builder = attendance_builder().apply_filters(params, FILTER_SPEC)

        rendered = [str(condition) for condition in builder.conditions]
        assert rendered == [
            "attendance.class_id = :class_id_1",
            "attendance.student_id = :student_id_1",
            "attendance.date = :date_1",
        ]

    def test_same_input_builds_same_sql(self) -> None:
        """Test that building twice yields identical statements."""
        params = {"student_id": "11", "class_id": "3"}

        first = compile_sql(attendance_builder().apply_filters(params, FILTER_SPEC).build())
        second = compile_sql(attendance_builder().apply_filters(params, FILTER_SPEC).build())

        assert first == second

    def test_values_are_coerced_to_column_types(self) -> None:
        """Test that query-string values become typed bind parameters."""
        builder = attendance_builder().apply_filters(
            {"class_id": "3", "date": "2025-03-14"}, FILTER_SPEC
        )

        values = [condition.right.value for condition in builder.conditions]
        assert values == [3, date(2025, 3, 14)]

    def test_absent_and_empty_params_are_skipped(self) -> None:
        """Test that missing or empty values add no predicate."""
        builder = attendance_builder().apply_filters(
            {"class_id": "", "student_id": None}, FILTER_SPEC
        )

        assert builder.conditions == []
        assert "WHERE" not in compile_sql(builder.build())

    def test_undeclared_params_are_ignored(self) -> None:
        """Test that params not declared as filters never reach the query."""
        builder = attendance_builder().apply_filters(
            {"status": "absent", "school_id": "9"}, FILTER_SPEC
        )

        assert builder.conditions == []

    def test_repeated_key_uses_first_value(self) -> None:
        """Test that a repeated query key contributes its first value."""
        builder = attendance_builder().apply_filters({"class_id": ["4", "8"]}, FILTER_SPEC)

        assert builder.conditions[0].right.value == 4

    def test_invalid_value_raises_validation_error(self) -> None:
        """Test that an unparsable value is reported, not sent to SQL."""
        with pytest.raises(ValidationError) as exc_info:
            attendance_builder().apply_filters({"class_id": "abc"}, FILTER_SPEC)

        assert exc_info.value.details == {"class_id": "Expected int, got 'abc'"}

    def test_values_are_bound_not_inlined(self) -> None:
        """Test that a hostile value is carried as a parameter."""
        statement = (
            QueryBuilder(select(Attendance.id))
            .apply_filters({"status": "x' OR '1'='1"}, {"status": Attendance.status})
            .build()
        )

        compiled = statement.compile(dialect=sqlite.dialect())
        assert "OR '1'" not in str(compiled)
        assert list(compiled.params.values()) == ["x' OR '1'='1"]


class TestApplySearch:
    """Tests for free-text search."""

    def test_search_ors_every_field(self) -> None:
        """Test that search builds one OR group of LIKE predicates."""
        builder = QueryBuilder(select(Class.id)).apply_search(
            {"search": "10"}, [Class.name, Class.academic_year]
        )

        sql = compile_sql(builder.build())
        assert "classes.name LIKE '%10%' OR classes.academic_year LIKE '%10%'" in sql

    def test_search_is_anded_with_filters(self) -> None:
        """Test that the search group joins the filters with AND."""
        builder = (
            QueryBuilder(select(Class.id))
            .apply_filters({"school_id": "5"}, {"school_id": Class.school_id})
            .apply_search({"search": "A"}, [Class.name])
        )

        sql = compile_sql(builder.build())
        assert "WHERE classes.school_id = 5 AND classes.name LIKE '%A%'" in sql

    def test_empty_search_adds_nothing(self) -> None:
        """Test that an empty term is ignored."""
        builder = QueryBuilder(select(Class.id)).apply_search({"search": ""}, [Class.name])

        assert builder.conditions == []


class TestApplySorting:
    """Tests for ORDER BY handling."""

    def test_default_sort_used_without_sort_by(self) -> None:
        """Test that the default order applies when no sort_by is given."""
        builder = attendance_builder().apply_sorting({}, [Attendance.date.desc()], SORTABLE)

        assert compile_sql(builder.build()).endswith("ORDER BY attendance.date DESC")

    def test_known_sort_name_maps_to_column(self) -> None:
        """Test that a declared sort name sorts by its column."""
        builder = attendance_builder().apply_sorting(
            {"sort_by": "status", "order": "DESC"},
            [Attendance.date.desc()],
            sortable={"status": Attendance.status},
        )

        assert compile_sql(builder.build()).endswith("ORDER BY attendance.status DESC")

    def test_injection_attempt_uses_default(self) -> None:
        """Test that a hostile sort_by never reaches ORDER BY."""
        builder = attendance_builder().apply_sorting(
            {"sort_by": "id; DROP TABLE x", "order": "desc"}, [Attendance.date.desc()], SORTABLE
        )

        sql = compile_sql(builder.build())
        assert sql.endswith("ORDER BY attendance.date DESC")
        assert "DROP" not in sql

    def test_undeclared_name_uses_default(self) -> None:
        """Test that a clean but undeclared column name keeps the default order."""
        builder = attendance_builder().apply_sorting(
            {"sort_by": "remarks", "order": "asc"}, [Attendance.date.desc()], SORTABLE
        )

        assert compile_sql(builder.build()).endswith("ORDER BY attendance.date DESC")

    def test_sanitized_name_can_match_declared(self) -> None:
        """Test that stray punctuation around a declared name is dropped."""
        builder = attendance_builder().apply_sorting(
            {"sort_by": "status;", "order": "desc"}, [Attendance.date.desc()], SORTABLE
        )

        assert compile_sql(builder.build()).endswith("ORDER BY attendance.status DESC")

    def test_order_other_than_desc_sorts_ascending(self) -> None:
        """Test that any order value except desc means ascending."""
        builder = attendance_builder().apply_sorting(
            {"sort_by": "date", "order": "sideways"},
            [],
            sortable={"date": Attendance.date},
        )

        assert compile_sql(builder.build()).endswith("ORDER BY attendance.date ASC")

    def test_fully_stripped_sort_falls_back_to_default(self) -> None:
        """Test that a sort_by sanitized to nothing uses the default order."""
        builder = attendance_builder().apply_sorting(
            {"sort_by": "; -- '"}, [Attendance.date.desc()], SORTABLE
        )

        assert compile_sql(builder.build()).endswith("ORDER BY attendance.date DESC")


class TestApplyPagination:
    """Tests for LIMIT/OFFSET math."""

    def test_page_three_of_twenty(self) -> None:
        """Test that page=3, limit=20 skips 40 rows."""
        builder = attendance_builder()

        page = builder.apply_pagination({"page": "3", "limit": "20"})

        assert page == PageSpec(page=3, limit=20, offset=40)
        assert compile_sql(builder.build()).endswith("LIMIT 20 OFFSET 40")

    def test_missing_page_defaults_to_first(self) -> None:
        """Test that an omitted page starts at offset 0."""
        builder = attendance_builder()

        page = builder.apply_pagination({"limit": "20"})

        assert page.page == 1
        assert page.offset == 0
        assert compile_sql(builder.build()).endswith("LIMIT 20 OFFSET 0")

    def test_default_limit_used(self) -> None:
        """Test that the default page size applies without a limit."""
        page = attendance_builder().apply_pagination({}, default_limit=25)

        assert page.limit == 25

    def test_limit_capped(self) -> None:
        """Test that a client limit above the cap is reduced."""
        page = attendance_builder().apply_pagination({"limit": "5000"}, max_limit=100)

        assert page.limit == 100

    @pytest.mark.parametrize("raw", ["0", "-2", "abc", ""])
    def test_invalid_page_falls_back_to_first(self, raw: str) -> None:
        """Test that non-positive or unparsable pages mean page 1."""
        page = attendance_builder().apply_pagination({"page": raw, "limit": "10"})

        assert page.page == 1
        assert page.offset == 0


class TestBuild:
    """Tests for the final statement."""

    def test_clause_order(self) -> None:
        """Test that WHERE comes before ORDER BY before LIMIT."""
        builder = attendance_builder()
        builder.apply_pagination({"page": "2", "limit": "10"})
        builder.apply_sorting({}, [Attendance.date.desc()], SORTABLE)
        builder.apply_filters({"class_id": "3"}, FILTER_SPEC)

        sql = compile_sql(builder.build())

        assert sql.index("WHERE") < sql.index("ORDER BY") < sql.index("LIMIT")
        assert sql.endswith("LIMIT 10 OFFSET 10")

    def test_count_ignores_order_and_paging(self) -> None:
        """Test that build_count keeps filters only."""
        builder = attendance_builder()
        builder.apply_filters({"class_id": "3"}, FILTER_SPEC)
        builder.apply_sorting({}, [Attendance.date.desc()], SORTABLE)
        builder.apply_pagination({"page": "2", "limit": "10"})

        sql = compile_sql(builder.build_count())

        assert sql.startswith("SELECT count(*) AS count_1 FROM")
        assert "attendance.class_id = 3" in sql
        assert "LIMIT" not in sql
        assert "ORDER BY" not in sql

    def test_base_statement_unchanged(self) -> None:
        """Test that building does not mutate the base statement."""
        base = select(Attendance.id)
        builder = QueryBuilder(base).apply_filters({"class_id": "3"}, FILTER_SPEC)

        builder.build()

        assert "WHERE" not in compile_sql(base)


class TestHelpers:
    """Tests for the value helpers."""

    def test_first_value(self) -> None:
        """Test that lists collapse to their first element."""
        assert first_value(["a", "b"]) == "a"
        assert first_value([]) is None
        assert first_value("x") == "x"

    def test_coerce_bool(self) -> None:
        """Test boolean parsing of query-string flags."""
        assert coerce_value(Notification.is_read, "true") is True
        assert coerce_value(Notification.is_read, "0") is False

    def test_coerce_keeps_typed_values(self) -> None:
        """Test that values of the right type pass through."""
        assert coerce_value(Attendance.class_id, 7) == 7
