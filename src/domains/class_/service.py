# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class service for managing classes, timetables and enrollment.

This module provides the ClassService class for:
- Scoped class listings and class details
- Class creation and partial updates with schedule replacement
- Class deletion
- Student enrollment and removal
- The caller's own classes (teachers and students)

A class's weekly schedule names teachers by user id. Each schedule row is
resolved to the teacher profile and checked against the class's school
before anything is written, and the teacher to class mapping is derived
from the schedule.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import Select, case, delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import QuerySettings, get_settings
from src.core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from src.domains.access import (
    ScopedActor,
    StudentActor,
    TeacherActor,
    TenantScope,
    find_student_by_user,
    load_in_scope,
    require_school_scope,
    resolve_schedule_teachers,
    scoped_params,
)
from src.domains.notification import NotificationService
from src.infrastructure.database.bulk import bulk_insert
from src.infrastructure.database.errors import IntegrityKind, classify_integrity_error
from src.infrastructure.database.models import (
    Class,
    School,
    Student,
    StudentClassMap,
    StudySchedule,
    Subject,
    Teacher,
    TeacherClassMap,
    User,
)
from src.infrastructure.database.query import QueryBuilder
from src.models.class_ import (
    AssignStudentRequest,
    ClassCreateRequest,
    ClassDetail,
    ClassStudent,
    ClassSummary,
    ClassUpdateRequest,
    ScheduleInput,
    ScheduleResponse,
)
from src.models.common import PageResponse

logger = logging.getLogger(__name__)

SCHEDULE_COLUMNS = ("class_id", "teacher_id", "subject_id", "day_of_week", "start_time", "end_time")

DAY_ORDER = case(
    {
        "Monday": 1,
        "Tuesday": 2,
        "Wednesday": 3,
        "Thursday": 4,
        "Friday": 5,
        "Saturday": 6,
        "Sunday": 7,
    },
    value=StudySchedule.day_of_week,
    else_=8,
)

# Weekday, then start time
SCHEDULE_ORDER = (DAY_ORDER, StudySchedule.start_time, StudySchedule.id)

_UPDATABLE_FIELDS = (
    "name",
    "academic_year",
    "start_time",
    "end_time",
    "start_date",
    "end_date",
)


def schedule_query() -> Select:
    """Timetable slots with class, subject and teacher names.

    teacher_id is reported as the teacher's user id, the same id requests
    use.
    """
    return (
        select(
            StudySchedule.id,
            StudySchedule.class_id,
            Class.name.label("class_name"),
            StudySchedule.subject_id,
            Subject.name.label("subject_name"),
            Teacher.user_id.label("teacher_id"),
            (User.first_name + " " + User.last_name).label("teacher_name"),
            StudySchedule.day_of_week,
            StudySchedule.start_time,
            StudySchedule.end_time,
        )
        .join(Class, StudySchedule.class_id == Class.id)
        .join(Subject, StudySchedule.subject_id == Subject.id)
        .join(Teacher, StudySchedule.teacher_id == Teacher.id)
        .join(User, Teacher.user_id == User.id)
    )


class ClassNotFoundError(NotFoundError):
    """Raised when a class does not exist."""

    def __init__(self) -> None:
        super().__init__("Class not found.")


class StudentAlreadyEnrolledError(ConflictError):
    """Raised when a student is enrolled in the same class twice."""

    def __init__(self) -> None:
        super().__init__("This student is already in the class.")


class ClassService:
    """Service for managing classes.

    Attributes:
        db: Async database session.
        query_settings: Paging defaults for listings.
    """

    def __init__(self, db: AsyncSession, query_settings: QuerySettings | None = None) -> None:
        self.db = db
        self.query_settings = query_settings or get_settings().query
        self.notifications = NotificationService(db)

    async def list_classes(
        self,
        actor: ScopedActor,
        params: Mapping[str, Any],
    ) -> PageResponse[ClassSummary]:
        """List classes visible to the actor.

        Args:
            actor: Requesting actor.
            params: Request query params (school_id, search, paging,
                sorting).

        Returns:
            One page of classes with the total number of matches.
        """
        builder = QueryBuilder(select(Class))
        page = builder.apply_pagination(
            params, self.query_settings.default_limit, self.query_settings.max_limit
        )

        scope = await actor.resolve_scope(self.db)
        if scope.is_empty:
            return PageResponse(items=[], total=0, page=page.page, limit=page.limit)
        params = scoped_params(params, scope)

        builder.apply_filters(params, {"school_id": Class.school_id})
        builder.apply_search(params, [Class.name, Class.academic_year])
        builder.apply_sorting(
            params,
            [Class.name.asc()],
            sortable={
                "id": Class.id,
                "name": Class.name,
                "academic_year": Class.academic_year,
                "start_date": Class.start_date,
            },
        )

        total = await self.db.scalar(builder.build_count())
        result = await self.db.execute(builder.build())
        return PageResponse(
            items=[ClassSummary.model_validate(c) for c in result.scalars().all()],
            total=total or 0,
            page=page.page,
            limit=page.limit,
        )

    async def get_class(self, actor: ScopedActor, class_id: int) -> ClassDetail:
        """Get a class with its timetable and enrolled students.

        Raises:
            ClassNotFoundError: If an admin names a class that does not exist.
            AuthorizationError: If no class with the id is in the actor's school.
        """
        class_, _ = await self._load_in_scope(actor, class_id)
        return await self._detail(class_)

    async def create_class(self, actor: ScopedActor, request: ClassCreateRequest) -> ClassDetail:
        """Create a class and its weekly schedule.

        Principals and teachers always create classes in their own school;
        admins must name the school.

        Args:
            actor: Requesting actor.
            request: Class fields and optional schedules.

        Returns:
            The created class with its schedule.

        Raises:
            AuthorizationError: If a restricted actor has no school.
            ValidationError: If no school is given, or a schedule row names
                an unknown teacher or subject or one from another school.
            NotFoundError: If the admin named a school that does not exist.
        """
        school_id = require_school_scope(await actor.resolve_scope(self.db))
        if school_id is None:
            school_id = request.school_id
            if school_id is None:
                raise ValidationError(
                    "Missing required fields: school_id.", details={"school_id": "required"}
                )
            await self._require_school(school_id)

        teacher_ids = await resolve_schedule_teachers(self.db, request.schedules, school_id)

        class_ = Class(
            name=request.name.strip(),
            school_id=school_id,
            academic_year=request.academic_year.strip(),
            start_time=request.start_time,
            end_time=request.end_time,
            start_date=request.start_date,
            end_date=request.end_date,
        )
        self.db.add(class_)
        await self.db.flush()

        await self._write_schedules(class_.id, request.schedules, teacher_ids)
        await self.notifications.notify_school(
            school_id,
            actor.user_id,
            f'New class "{class_.name}" has been created.',
            f'You created class "{class_.name}" successfully.',
        )

        logger.info("Created class %s in school %s by user %s", class_.id, school_id, actor.user_id)
        return await self._detail(class_)

    async def update_class(
        self,
        actor: ScopedActor,
        class_id: int,
        request: ClassUpdateRequest,
    ) -> ClassDetail:
        """Update the given fields of a class.

        When schedules is provided, the class's schedules and teacher
        mappings are replaced by the new set. Only admins may move a class
        to another school; school_id from anyone else is ignored.

        Raises:
            ClassNotFoundError: If an admin names a class that does not exist.
            AuthorizationError: If no class with the id is in the actor's school.
            ValidationError: If a schedule row is invalid.
        """
        class_, scope = await self._load_in_scope(actor, class_id)

        target_school_id = class_.school_id
        if not scope.restricted and request.school_id is not None:
            await self._require_school(request.school_id)
            target_school_id = request.school_id

        teacher_ids: dict[int, int] = {}
        if request.schedules is not None:
            teacher_ids = await resolve_schedule_teachers(
                self.db, request.schedules, target_school_id
            )

        changes = request.model_dump(include=set(_UPDATABLE_FIELDS), exclude_unset=True)
        for field, value in changes.items():
            if isinstance(value, str):
                value = value.strip()
            setattr(class_, field, value)
        class_.school_id = target_school_id
        await self.db.flush()

        if request.schedules is not None:
            await self.db.execute(delete(StudySchedule).where(StudySchedule.class_id == class_id))
            await self.db.execute(
                delete(TeacherClassMap).where(TeacherClassMap.class_id == class_id)
            )
            await self._write_schedules(class_id, request.schedules, teacher_ids)

        await self.notifications.notify_school(
            target_school_id,
            actor.user_id,
            f'Class "{class_.name}" has been updated.',
            f'You updated class "{class_.name}" successfully.',
        )

        logger.info("Updated class %s by user %s", class_id, actor.user_id)
        return await self._detail(class_)

    async def delete_class(self, actor: ScopedActor, class_id: int) -> None:
        """Delete a class with its schedules and teacher mappings.

        Raises:
            ClassNotFoundError: If an admin names a class that does not exist.
            AuthorizationError: If no class with the id is in the actor's school.
        """
        class_, _ = await self._load_in_scope(actor, class_id)

        name, school_id = class_.name, class_.school_id
        await self.db.execute(delete(StudySchedule).where(StudySchedule.class_id == class_id))
        await self.db.execute(delete(TeacherClassMap).where(TeacherClassMap.class_id == class_id))
        await self.db.delete(class_)
        await self.db.flush()

        await self.notifications.notify_school(
            school_id,
            actor.user_id,
            f'Class "{name}" has been deleted.',
            f'You deleted class "{name}" successfully.',
        )
        logger.info("Deleted class %s by user %s", class_id, actor.user_id)

    async def assign_student(
        self,
        actor: ScopedActor,
        class_id: int,
        request: AssignStudentRequest,
    ) -> ClassStudent:
        """Enroll a student, identified by user id, in a class.

        Raises:
            ClassNotFoundError: If an admin names a class that does not exist.
            NotFoundError: If an admin names a user with no student profile.
            AuthorizationError: If no class with the id is in the actor's
                school, or the student is not in the class's school. A
                restricted actor naming an unknown student gets this too.
            StudentAlreadyEnrolledError: If the student is already enrolled.
        """
        class_, scope = await self._load_in_scope(actor, class_id)

        student = await find_student_by_user(self.db, request.student_id)
        if student is None and not scope.restricted:
            raise NotFoundError("Student not found.")
        if student is None or student.school_id != class_.school_id:
            raise AuthorizationError("Access denied. The student is not in this class's school.")

        self.db.add(StudentClassMap(student_id=student.id, class_id=class_id))
        try:
            await self.db.flush()
        except IntegrityError as e:
            if classify_integrity_error(e) is IntegrityKind.DUPLICATE:
                raise StudentAlreadyEnrolledError() from e
            raise

        logger.info("Enrolled student %s in class %s", student.id, class_id)
        user = student.user
        return ClassStudent(
            student_id=student.id,
            user_id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
        )

    async def remove_student(self, actor: ScopedActor, class_id: int, student_user_id: int) -> None:
        """Remove a student, identified by user id, from a class.

        Raises:
            ClassNotFoundError: If an admin names a class that does not exist.
            AuthorizationError: If no class with the id is in the actor's school.
            NotFoundError: If the student is not enrolled in the class.
        """
        class_, _ = await self._load_in_scope(actor, class_id)

        student = await find_student_by_user(self.db, student_user_id)
        result = None
        if student is not None:
            result = await self.db.execute(
                delete(StudentClassMap).where(
                    StudentClassMap.class_id == class_id,
                    StudentClassMap.student_id == student.id,
                )
            )
        if result is None or result.rowcount == 0:
            raise NotFoundError("Student is not enrolled in this class.")
        logger.info("Removed student %s from class %s", student.id, class_id)

    async def my_classes(self, actor: ScopedActor) -> list[ClassSummary]:
        """List the classes a teacher teaches or a student attends.

        Raises:
            AuthorizationError: If the actor is neither teacher nor student.
        """
        if isinstance(actor, TeacherActor):
            query = (
                select(Class)
                .join(TeacherClassMap, TeacherClassMap.class_id == Class.id)
                .join(Teacher, TeacherClassMap.teacher_id == Teacher.id)
                .where(Teacher.user_id == actor.user_id)
            )
        elif isinstance(actor, StudentActor):
            query = (
                select(Class)
                .join(StudentClassMap, StudentClassMap.class_id == Class.id)
                .join(Student, StudentClassMap.student_id == Student.id)
                .where(Student.user_id == actor.user_id)
            )
        else:
            raise AuthorizationError("Only teachers and students have their own classes.")

        result = await self.db.execute(query.order_by(Class.name.asc()))
        return [ClassSummary.model_validate(c) for c in result.scalars().all()]

    # Helpers

    async def _load_in_scope(self, actor: ScopedActor, class_id: int) -> tuple[Class, TenantScope]:
        scope = await actor.resolve_scope(self.db)
        school_id = require_school_scope(scope)
        class_ = await load_in_scope(self.db, Class, class_id, school_id, ClassNotFoundError())
        return class_, scope

    async def _require_school(self, school_id: int) -> None:
        if await self.db.get(School, school_id) is None:
            raise NotFoundError("School not found.")

    async def _write_schedules(
        self,
        class_id: int,
        schedules: Sequence[ScheduleInput],
        teacher_ids: Mapping[int, int],
    ) -> None:
        if not schedules:
            return
        rows = [
            (
                class_id,
                teacher_ids[s.teacher_id],
                s.subject_id,
                s.day_of_week,
                s.start_time,
                s.end_time,
            )
            for s in schedules
        ]
        await bulk_insert(self.db, StudySchedule.__table__, SCHEDULE_COLUMNS, rows)

        mapped = list(dict.fromkeys(teacher_ids[s.teacher_id] for s in schedules))
        await bulk_insert(
            self.db,
            TeacherClassMap.__table__,
            ("teacher_id", "class_id"),
            [(teacher_id, class_id) for teacher_id in mapped],
            ignore_duplicates=True,
        )

    async def _detail(self, class_: Class) -> ClassDetail:
        schedules = await self.db.execute(
            schedule_query()
            .where(StudySchedule.class_id == class_.id)
            .order_by(*SCHEDULE_ORDER)
        )
        students = await self.db.execute(
            select(
                Student.id.label("student_id"),
                User.id.label("user_id"),
                User.first_name,
                User.last_name,
                User.email,
            )
            .join(StudentClassMap, StudentClassMap.student_id == Student.id)
            .join(User, Student.user_id == User.id)
            .where(StudentClassMap.class_id == class_.id)
            .order_by(User.last_name, User.first_name)
        )
        return ClassDetail(
            **ClassSummary.model_validate(class_).model_dump(),
            schedules=[ScheduleResponse.model_validate(dict(r)) for r in schedules.mappings()],
            students=[ClassStudent.model_validate(dict(r)) for r in students.mappings()],
        )
