# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Schedule service for single timetable slots.

Class create and update replace a class's whole timetable at once. This
service edits one slot at a time, with the same teacher and subject checks
against the class's school. The teacher to class mapping follows the
slots: a teacher is mapped to a class while they teach at least one slot
of it.
"""

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import delete, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import QuerySettings, get_settings
from src.core.errors import NotFoundError, ValidationError
from src.domains.access import (
    ScopedActor,
    load_in_scope,
    require_school_scope,
    resolve_schedule_teachers,
    scoped_params,
)
from src.domains.class_.service import (
    DAY_ORDER,
    SCHEDULE_ORDER,
    ClassNotFoundError,
    schedule_query,
)
from src.infrastructure.database.bulk import bulk_insert
from src.infrastructure.database.models import Class, StudySchedule, Teacher, TeacherClassMap
from src.infrastructure.database.query import QueryBuilder
from src.models.class_ import ScheduleInput
from src.models.common import PageResponse
from src.models.schedule import ScheduleCreateRequest, ScheduleDetail, ScheduleUpdateRequest

logger = logging.getLogger(__name__)


class ScheduleNotFoundError(NotFoundError):
    """Raised when a timetable slot does not exist."""

    def __init__(self) -> None:
        super().__init__("Study schedule not found.")


class ScheduleService:
    """Service for timetable slots.

    Attributes:
        db: Async database session.
        query_settings: Paging defaults for listings.
    """

    def __init__(self, db: AsyncSession, query_settings: QuerySettings | None = None) -> None:
        self.db = db
        self.query_settings = query_settings or get_settings().query

    async def list_schedules(
        self,
        actor: ScopedActor,
        params: Mapping[str, Any],
    ) -> PageResponse[ScheduleDetail]:
        """List slots of the classes visible to the actor.

        Args:
            actor: Requesting actor.
            params: Request query params. Filters: school_id, class_id,
                teacher_id (a user id), subject_id and day_of_week.

        Returns:
            One page of slots in weekday order unless sort_by is given.
        """
        builder = QueryBuilder(schedule_query())
        page = builder.apply_pagination(
            params, self.query_settings.default_limit, self.query_settings.max_limit
        )

        scope = await actor.resolve_scope(self.db)
        if scope.is_empty:
            return PageResponse(items=[], total=0, page=page.page, limit=page.limit)
        params = scoped_params(params, scope)

        builder.apply_filters(
            params,
            {
                "school_id": Class.school_id,
                "class_id": StudySchedule.class_id,
                "teacher_id": Teacher.user_id,
                "subject_id": StudySchedule.subject_id,
                "day_of_week": StudySchedule.day_of_week,
            },
        )
        builder.apply_sorting(
            params,
            SCHEDULE_ORDER,
            sortable={
                "id": StudySchedule.id,
                "day_of_week": DAY_ORDER,
                "start_time": StudySchedule.start_time,
                "class_id": StudySchedule.class_id,
            },
        )

        total = await self.db.scalar(builder.build_count())
        result = await self.db.execute(builder.build())
        return PageResponse(
            items=[ScheduleDetail.model_validate(dict(r)) for r in result.mappings()],
            total=total or 0,
            page=page.page,
            limit=page.limit,
        )

    async def get_schedule(self, actor: ScopedActor, schedule_id: int) -> ScheduleDetail:
        """Get one slot.

        Raises:
            ScheduleNotFoundError: If an admin names a slot that does not exist.
            AuthorizationError: If no slot with the id is in the actor's school.
        """
        schedule = await self._load_in_scope(actor, schedule_id)
        return await self._detail(schedule.id)

    async def create_schedule(
        self,
        actor: ScopedActor,
        request: ScheduleCreateRequest,
    ) -> ScheduleDetail:
        """Add a slot to a class and map its teacher to the class.

        Args:
            actor: Requesting actor.
            request: The slot and its class.

        Returns:
            The stored slot with display names.

        Raises:
            AuthorizationError: If the actor has no school, or the class is
                missing or in another school.
            ClassNotFoundError: If an admin names a class that does not exist.
            ValidationError: If the teacher or subject is unknown or belongs
                to another school than the class.
        """
        school_id = require_school_scope(await actor.resolve_scope(self.db))
        class_ = await load_in_scope(
            self.db, Class, request.class_id, school_id, ClassNotFoundError()
        )
        teacher_ids = await resolve_schedule_teachers(self.db, [request], class_.school_id)

        schedule = StudySchedule(
            class_id=class_.id,
            teacher_id=teacher_ids[request.teacher_id],
            subject_id=request.subject_id,
            day_of_week=request.day_of_week,
            start_time=request.start_time,
            end_time=request.end_time,
        )
        self.db.add(schedule)
        await self.db.flush()
        await self._map_teacher(schedule.teacher_id, schedule.class_id)

        logger.info(
            "Created schedule %s for class %s by user %s", schedule.id, class_.id, actor.user_id
        )
        return await self._detail(schedule.id)

    async def update_schedule(
        self,
        actor: ScopedActor,
        schedule_id: int,
        request: ScheduleUpdateRequest,
    ) -> ScheduleDetail:
        """Change the given fields of a slot.

        The resulting slot is checked as a whole: its teacher and subject
        must belong to the school of its (possibly new) class and it must
        end after it starts.

        Raises:
            ScheduleNotFoundError: If an admin names a slot that does not exist.
            ClassNotFoundError: If an admin moves the slot to a missing class.
            AuthorizationError: If the slot or the target class is not in
                the actor's school.
            ValidationError: If the resulting slot is invalid.
        """
        school_id = require_school_scope(await actor.resolve_scope(self.db))
        schedule = await load_in_scope(
            self.db, StudySchedule, schedule_id, school_id, ScheduleNotFoundError()
        )
        changes = request.model_dump(exclude_unset=True, exclude_none=True)

        class_ = await load_in_scope(
            self.db,
            Class,
            changes.get("class_id", schedule.class_id),
            school_id,
            ClassNotFoundError(),
        )
        teacher_user_id = changes.get("teacher_id")
        if teacher_user_id is None:
            teacher_user_id = await self.db.scalar(
                select(Teacher.user_id).where(Teacher.id == schedule.teacher_id)
            )
        # Skip model validation; times are checked below with the merged values
        merged = ScheduleInput.model_construct(
            subject_id=changes.get("subject_id", schedule.subject_id),
            teacher_id=teacher_user_id,
            day_of_week=changes.get("day_of_week", schedule.day_of_week),
            start_time=changes.get("start_time", schedule.start_time),
            end_time=changes.get("end_time", schedule.end_time),
        )
        if merged.end_time <= merged.start_time:
            raise ValidationError(
                "end_time must be after start_time.",
                details={"end_time": "must be after start_time"},
            )
        teacher_ids = await resolve_schedule_teachers(self.db, [merged], class_.school_id)

        previous = (schedule.teacher_id, schedule.class_id)
        schedule.class_id = class_.id
        schedule.teacher_id = teacher_ids[merged.teacher_id]
        schedule.subject_id = merged.subject_id
        schedule.day_of_week = merged.day_of_week
        schedule.start_time = merged.start_time
        schedule.end_time = merged.end_time
        await self.db.flush()

        current = (schedule.teacher_id, schedule.class_id)
        if current != previous:
            await self._map_teacher(*current)
            await self._unmap_if_unused(*previous)

        logger.info("Updated schedule %s by user %s", schedule_id, actor.user_id)
        return await self._detail(schedule.id)

    async def delete_schedule(self, actor: ScopedActor, schedule_id: int) -> None:
        """Delete a slot.

        Raises:
            ScheduleNotFoundError: If an admin names a slot that does not exist.
            AuthorizationError: If no slot with the id is in the actor's school.
        """
        schedule = await self._load_in_scope(actor, schedule_id)
        teacher_id, class_id = schedule.teacher_id, schedule.class_id

        await self.db.delete(schedule)
        await self.db.flush()
        await self._unmap_if_unused(teacher_id, class_id)
        logger.info("Deleted schedule %s by user %s", schedule_id, actor.user_id)

    # Helpers

    async def _load_in_scope(self, actor: ScopedActor, schedule_id: int) -> StudySchedule:
        school_id = require_school_scope(await actor.resolve_scope(self.db))
        return await load_in_scope(
            self.db, StudySchedule, schedule_id, school_id, ScheduleNotFoundError()
        )

    async def _detail(self, schedule_id: int) -> ScheduleDetail:
        result = await self.db.execute(schedule_query().where(StudySchedule.id == schedule_id))
        return ScheduleDetail.model_validate(dict(result.mappings().one()))

    async def _map_teacher(self, teacher_id: int, class_id: int) -> None:
        await bulk_insert(
            self.db,
            TeacherClassMap.__table__,
            ("teacher_id", "class_id"),
            [(teacher_id, class_id)],
            ignore_duplicates=True,
        )

    async def _unmap_if_unused(self, teacher_id: int, class_id: int) -> None:
        still_teaches = await self.db.scalar(
            select(
                exists().where(
                    StudySchedule.teacher_id == teacher_id,
                    StudySchedule.class_id == class_id,
                )
            )
        )
        if not still_teaches:
            await self.db.execute(
                delete(TeacherClassMap).where(
                    TeacherClassMap.teacher_id == teacher_id,
                    TeacherClassMap.class_id == class_id,
                )
            )
