# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic result service.

This module provides the AcademicResultService that handles:
- Scoped, always paginated listings with month/year filters on the
  publication date
- Publishing a class's final grades for one subject and period
- Result deletion

Example:
    >>> service = AcademicResultService(db)
    >>> await service.publish_results(actor, batch_request)
"""

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import Select, extract, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from src.core.config.settings import QuerySettings, get_settings
from src.core.errors import AuthorizationError, NotFoundError, ValidationError
from src.domains.access import (
    BatchValidator,
    ScopedActor,
    ensure_class_in_school,
    ensure_subject_in_school,
    find_outside_school,
    find_unenrolled,
    load_in_scope,
    require_school_scope,
    require_teacher,
    scoped_params,
)
from src.infrastructure.database.bulk import bulk_upsert
from src.infrastructure.database.models import (
    AcademicResult,
    Class,
    Student,
    Subject,
    Teacher,
    User,
)
from src.infrastructure.database.query import QueryBuilder, coerce_value, first_value, is_present
from src.models.academic_result import AcademicResultBatchRequest, AcademicResultResponse
from src.models.attendance import BatchWriteResponse

logger = logging.getLogger(__name__)

RESULT_INSERT_COLUMNS = (
    "student_id",
    "class_id",
    "subject_id",
    "academic_period",
    "final_grade",
    "comments",
    "published_by_teacher_id",
)
RESULT_UPDATE_COLUMNS = ("final_grade", "comments", "published_by_teacher_id")

_publisher = aliased(Teacher, name="publisher")
_publisher_user = aliased(User, name="publisher_user")

_PUBLISHED_MONTH = extract("month", AcademicResult.published_at)
_PUBLISHED_YEAR = extract("year", AcademicResult.published_at)


class AcademicResultNotFoundError(NotFoundError):
    """Raised when an academic result does not exist."""

    def __init__(self) -> None:
        super().__init__("Academic result not found.")


class AcademicResultService:
    """Service for published final grades.

    Attributes:
        db: Async database session.
        query_settings: Paging defaults for listings.
    """

    def __init__(self, db: AsyncSession, query_settings: QuerySettings | None = None) -> None:
        self.db = db
        self.query_settings = query_settings or get_settings().query

    @staticmethod
    def _list_query() -> Select:
        return (
            select(
                AcademicResult.id,
                AcademicResult.student_id,
                (User.first_name + " " + User.last_name).label("student_name"),
                AcademicResult.class_id,
                Class.name.label("class_name"),
                AcademicResult.subject_id,
                Subject.name.label("subject_name"),
                AcademicResult.academic_period,
                AcademicResult.final_grade,
                AcademicResult.comments,
                AcademicResult.published_at,
                (_publisher_user.first_name + " " + _publisher_user.last_name).label(
                    "published_by"
                ),
            )
            .join(Student, AcademicResult.student_id == Student.id)
            .join(User, Student.user_id == User.id)
            .join(Class, AcademicResult.class_id == Class.id)
            .join(Subject, AcademicResult.subject_id == Subject.id)
            .outerjoin(_publisher, AcademicResult.published_by_teacher_id == _publisher.id)
            .outerjoin(_publisher_user, _publisher.user_id == _publisher_user.id)
        )

    async def list_results(
        self,
        actor: ScopedActor,
        params: Mapping[str, Any],
    ) -> list[AcademicResultResponse]:
        """List academic results visible to the actor, one page at a time.

        Args:
            actor: Requesting actor.
            params: Request query params (student_id, class_id, subject_id,
                academic_period, school_id, month, year, paging, sorting).

        Returns:
            One page of results, newest publication first by default.

        Raises:
            ValidationError: If month is outside 1-12 or a filter value has
                the wrong type.
        """
        scope = await actor.resolve_scope(self.db)
        if scope.is_empty:
            return []
        params = scoped_params(params, scope)

        builder = QueryBuilder(self._list_query())
        builder.apply_filters(
            params,
            {
                "student_id": AcademicResult.student_id,
                "class_id": AcademicResult.class_id,
                "subject_id": AcademicResult.subject_id,
                "academic_period": AcademicResult.academic_period,
                "school_id": Class.school_id,
            },
        )

        month = first_value(params.get("month"))
        if is_present(month):
            month = coerce_value(_PUBLISHED_MONTH, month, "month")
            if not 1 <= month <= 12:
                raise ValidationError("Invalid value for 'month'.", details={"month": month})
            builder.where(_PUBLISHED_MONTH == month)
        year = first_value(params.get("year"))
        if is_present(year):
            builder.where(_PUBLISHED_YEAR == coerce_value(_PUBLISHED_YEAR, year, "year"))

        builder.apply_sorting(
            params,
            [AcademicResult.published_at.desc(), User.first_name.asc()],
            sortable={
                "id": AcademicResult.id,
                "published_at": AcademicResult.published_at,
                "final_grade": AcademicResult.final_grade,
                "academic_period": AcademicResult.academic_period,
                "student_name": User.first_name,
                "subject_name": Subject.name,
            },
        )
        builder.apply_pagination(
            params, self.query_settings.default_limit, self.query_settings.max_limit
        )

        result = await self.db.execute(builder.build())
        return [AcademicResultResponse.model_validate(dict(row)) for row in result.mappings()]

    async def publish_results(
        self,
        actor: ScopedActor,
        request: AcademicResultBatchRequest,
    ) -> BatchWriteResponse:
        """Publish or update final grades for a class, subject and period.

        Args:
            actor: Requesting actor; must be a teacher.
            request: Class, subject, period and per-student grades.

        Returns:
            Confirmation with the number of rows written.

        Raises:
            AuthorizationError: If the class, subject or a student is
                missing or outside the teacher's school.
            ValidationError: If a student is not enrolled in the class or
                appears twice.
        """
        teacher = await require_teacher(actor, self.db)
        school_id = require_school_scope(await actor.resolve_scope(self.db))
        await ensure_class_in_school(self.db, request.class_id, school_id)
        await ensure_subject_in_school(self.db, request.subject_id, school_id)

        student_ids = [record.student_id for record in request.results]
        outside = await find_outside_school(self.db, student_ids, school_id)
        if outside:
            raise AuthorizationError(
                "Access denied. Some students are not in your school.",
                details={"student_ids": outside},
            )

        unenrolled = set(await find_unenrolled(self.db, request.class_id, student_ids))
        validator = BatchValidator()
        seen: set[int] = set()
        for index, record in enumerate(request.results):
            if record.student_id in unenrolled:
                validator.add(
                    index,
                    "student_id",
                    f"Student {record.student_id} is not enrolled in class {request.class_id}.",
                )
            if record.student_id in seen:
                validator.add(index, "student_id", "Student appears more than once.")
            seen.add(record.student_id)
        validator.raise_if_any("Some academic results are invalid.")

        rows = [
            (
                record.student_id,
                request.class_id,
                request.subject_id,
                request.academic_period,
                record.final_grade,
                record.comments,
                teacher.id,
            )
            for record in request.results
        ]
        await bulk_upsert(
            self.db,
            AcademicResult.__table__,
            RESULT_INSERT_COLUMNS,
            rows,
            RESULT_UPDATE_COLUMNS,
        )

        logger.info(
            "Teacher %s published %d results for class %s subject %s (%s)",
            teacher.id,
            len(rows),
            request.class_id,
            request.subject_id,
            request.academic_period,
        )
        return BatchWriteResponse(
            message="Academic results published successfully.", count=len(rows)
        )

    async def delete_result(self, actor: ScopedActor, result_id: int) -> None:
        """Delete an academic result in the actor's school.

        Raises:
            AcademicResultNotFoundError: If an admin names a result that does
                not exist.
            AuthorizationError: If no result with the id is in the actor's
                school.
        """
        school_id = require_school_scope(await actor.resolve_scope(self.db))
        record = await load_in_scope(
            self.db, AcademicResult, result_id, school_id, AcademicResultNotFoundError()
        )

        await self.db.delete(record)
        await self.db.flush()
        logger.info("Deleted academic result %s by user %s", result_id, actor.user_id)
