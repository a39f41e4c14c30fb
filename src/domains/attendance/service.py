# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance service.

This module provides the AttendanceService that handles:
- Scoped attendance listings (students only ever see their own rows)
- Recording a class's attendance for one day as a single upsert
- Notifying students marked absent, late or on permission

Example:
    >>> service = AttendanceService(db)
    >>> await service.record_attendance(actor, batch_request)
"""

import logging
from collections.abc import Mapping
from datetime import date
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import QuerySettings, get_settings
from src.core.errors import AuthorizationError
from src.domains.access import (
    BatchValidator,
    ScopedActor,
    StudentActor,
    ensure_class_in_school,
    ensure_teacher_assigned,
    find_unenrolled,
    require_school_scope,
    require_teacher,
    scoped_params,
)
from src.domains.notification import NotificationService
from src.infrastructure.database.bulk import bulk_upsert
from src.infrastructure.database.models import Attendance, Class, Student, User
from src.infrastructure.database.query import QueryBuilder, first_value, is_present
from src.models.attendance import (
    AttendanceBatchRequest,
    AttendanceResponse,
    BatchWriteResponse,
)

logger = logging.getLogger(__name__)

ATTENDANCE_INSERT_COLUMNS = (
    "student_id",
    "class_id",
    "date",
    "status",
    "remarks",
    "recorded_by_teacher_id",
)
ATTENDANCE_UPDATE_COLUMNS = ("status", "remarks", "recorded_by_teacher_id")

# Statuses that trigger a notification to the student
NOTIFIED_STATUSES = {
    "absent": "absent",
    "late": "late",
    "permission": "on permission",
}


def format_display_date(value: date) -> str:
    """Format a date the way notifications show it (dd/mm/yyyy)."""
    return value.strftime("%d/%m/%Y")


class AttendanceService:
    """Service for daily class attendance.

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
                Attendance.id,
                Attendance.date,
                Attendance.status,
                Attendance.remarks,
                Attendance.student_id,
                (User.first_name + " " + User.last_name).label("student_name"),
                Attendance.class_id,
                Class.name.label("class_name"),
            )
            .join(Student, Attendance.student_id == Student.id)
            .join(User, Student.user_id == User.id)
            .join(Class, Attendance.class_id == Class.id)
        )

    async def list_attendance(
        self,
        actor: ScopedActor,
        params: Mapping[str, Any],
    ) -> list[AttendanceResponse]:
        """List attendance visible to the actor.

        Results are paginated only when the request gives a limit.

        Args:
            actor: Requesting actor.
            params: Request query params (class_id, student_id, date,
                school_id, sort_by, order, page, limit).

        Returns:
            Matching attendance rows, newest first by default.
        """
        scope = await actor.resolve_scope(self.db)
        if scope.is_empty:
            return []
        params = scoped_params(params, scope)

        builder = QueryBuilder(self._list_query())
        builder.apply_filters(
            params,
            {
                "class_id": Attendance.class_id,
                "student_id": Attendance.student_id,
                "date": Attendance.date,
                "school_id": Class.school_id,
            },
        )
        builder.apply_sorting(
            params,
            [Attendance.date.desc(), User.first_name.asc()],
            sortable={
                "id": Attendance.id,
                "date": Attendance.date,
                "status": Attendance.status,
                "student_name": User.first_name,
                "class_name": Class.name,
            },
        )
        if is_present(first_value(params.get("limit"))):
            builder.apply_pagination(
                params, self.query_settings.default_limit, self.query_settings.max_limit
            )

        result = await self.db.execute(builder.build())
        return [AttendanceResponse.model_validate(dict(row)) for row in result.mappings()]

    async def my_attendance(
        self,
        actor: ScopedActor,
        params: Mapping[str, Any],
    ) -> list[AttendanceResponse]:
        """List the calling student's own attendance.

        Raises:
            AuthorizationError: If the actor is not a student.
        """
        if not isinstance(actor, StudentActor):
            raise AuthorizationError("Access denied. Only students have their own attendance.")
        return await self.list_attendance(actor, params)

    async def record_attendance(
        self,
        actor: ScopedActor,
        request: AttendanceBatchRequest,
    ) -> BatchWriteResponse:
        """Record a class's attendance for one day.

        Existing rows for the same student, class and date are updated.

        Args:
            actor: Requesting actor; must be a teacher.
            request: Class, date and per-student statuses.

        Returns:
            Confirmation with the number of rows written.

        Raises:
            AuthorizationError: If the actor is not a teacher, or the class
                is missing, in another school or not taught by them.
            ValidationError: If a student is not enrolled in the class or
                appears twice.
        """
        teacher = await require_teacher(actor, self.db)
        school_id = require_school_scope(await actor.resolve_scope(self.db))
        await ensure_class_in_school(self.db, request.class_id, school_id)
        await ensure_teacher_assigned(self.db, teacher.id, request.class_id)

        student_ids = [record.student_id for record in request.records]
        unenrolled = set(await find_unenrolled(self.db, request.class_id, student_ids))

        validator = BatchValidator()
        seen: set[int] = set()
        for index, record in enumerate(request.records):
            if record.student_id in unenrolled:
                validator.add(
                    index,
                    "student_id",
                    f"Student {record.student_id} is not enrolled in class {request.class_id}.",
                )
            if record.student_id in seen:
                validator.add(index, "student_id", "Student appears more than once.")
            seen.add(record.student_id)
        validator.raise_if_any("Some attendance records are invalid.")

        rows = [
            (
                record.student_id,
                request.class_id,
                request.date,
                record.status,
                record.remarks,
                teacher.id,
            )
            for record in request.records
        ]
        await bulk_upsert(
            self.db,
            Attendance.__table__,
            ATTENDANCE_INSERT_COLUMNS,
            rows,
            ATTENDANCE_UPDATE_COLUMNS,
        )
        await self._notify_students(request)

        logger.info(
            "Teacher %s recorded attendance for class %s on %s (%d rows)",
            teacher.id,
            request.class_id,
            request.date.isoformat(),
            len(rows),
        )
        return BatchWriteResponse(message="Attendance recorded successfully.", count=len(rows))

    async def _notify_students(self, request: AttendanceBatchRequest) -> None:
        flagged = [r for r in request.records if r.status in NOTIFIED_STATUSES]
        if not flagged:
            return

        result = await self.db.execute(
            select(Student.id, Student.user_id).where(
                Student.id.in_(sorted({r.student_id for r in flagged}))
            )
        )
        user_ids = {row.id: row.user_id for row in result}
        shown = format_display_date(request.date)
        messages = [
            (
                user_ids[record.student_id],
                f"You were marked {NOTIFIED_STATUSES[record.status]} on {shown}.",
            )
            for record in flagged
            if record.student_id in user_ids
        ]
        await NotificationService(self.db).notify_many(messages)
