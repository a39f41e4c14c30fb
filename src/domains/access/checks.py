# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cross-entity ownership checks used by write paths.

Client supplied ids are never trusted to belong together. Before a write,
services confirm that the class, subject, teacher and students named in
the request belong to the actor's school and, where it matters, that the
students are enrolled in the class.

Per-row problems in a batch are collected by BatchValidator so a rejected
batch reports every bad row at once.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass
from typing import Any

from sqlalchemy import select, tuple_
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import (
    AppError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from src.domains.access.actors import OUT_OF_SCOPE_MESSAGE
from src.infrastructure.database.models import (
    Class,
    Student,
    StudentClassMap,
    Subject,
    Teacher,
    TeacherClassMap,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RowViolation:
    """One problem with one row of a batch.

    Attributes:
        index: Position of the row in the request.
        field: Offending field.
        message: What is wrong.
    """

    index: int
    field: str
    message: str

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


class BatchValidator:
    """Collects row violations and raises them as one error."""

    def __init__(self) -> None:
        self._violations: list[RowViolation] = []

    @property
    def violations(self) -> list[RowViolation]:
        return list(self._violations)

    def add(self, index: int, field: str, message: str) -> None:
        self._violations.append(RowViolation(index=index, field=field, message=message))

    def raise_if_any(
        self,
        message: str,
        error_cls: type[AppError] = ValidationError,
    ) -> None:
        """Raise error_cls listing every violation, if there are any."""
        if self._violations:
            logger.info("Rejected batch with %d invalid rows", len(self._violations))
            raise error_cls(message, details=[v.as_dict() for v in self._violations])


def _unique(ids: Iterable[int]) -> list[int]:
    return list(dict.fromkeys(ids))


async def get_class(db: AsyncSession, class_id: int) -> Class:
    """Load a class.

    Raises:
        NotFoundError: If the class does not exist.
    """
    class_ = await db.get(Class, class_id)
    if class_ is None:
        raise NotFoundError("Class not found.")
    return class_


async def load_in_scope(
    db: AsyncSession,
    model: type[Any],
    entity_id: int,
    school_id: int | None,
    not_found: NotFoundError,
    key: Any = None,
) -> Any:
    """Load one school owned row by id, within a school when one is given.

    Rows without a school_id column (scores, results, schedules) are scoped
    through their class. For a restricted caller a missing row and a row of
    another school raise the same AuthorizationError, so the answer never
    tells the two apart.

    Args:
        db: Database session.
        model: Mapped class with a school_id or class_id column.
        entity_id: Value of key to look up.
        school_id: Required school, None for unrestricted callers.
        not_found: Raised when an unrestricted caller names a missing row.
        key: Lookup column, model.id when omitted. Profiles are addressed
            by user_id.

    Raises:
        NotFoundError: If school_id is None and the row does not exist.
        AuthorizationError: If school_id is set and no row of that school
            has the id.
    """
    column = model.id if key is None else key
    statement = select(model).where(column == entity_id)
    if school_id is not None:
        if hasattr(model, "school_id"):
            statement = statement.where(model.school_id == school_id)
        else:
            statement = statement.join(Class, model.class_id == Class.id).where(
                Class.school_id == school_id
            )
    entity = (await db.execute(statement)).scalar_one_or_none()
    if entity is not None:
        return entity
    if school_id is None:
        raise not_found
    logger.info("Denied %s %s outside school %s", model.__name__, entity_id, school_id)
    raise AuthorizationError(OUT_OF_SCOPE_MESSAGE)


async def ensure_class_in_school(
    db: AsyncSession,
    class_id: int,
    school_id: int | None,
) -> Class:
    """Load a class the given school owns.

    Args:
        db: Database session.
        class_id: Class to check.
        school_id: Required school, None to skip the ownership check.

    Raises:
        NotFoundError: If school_id is None and the class does not exist.
        AuthorizationError: If school_id is set and the class is missing or
            belongs to another school.
    """
    return await load_in_scope(db, Class, class_id, school_id, NotFoundError("Class not found."))


async def ensure_subject_in_school(
    db: AsyncSession,
    subject_id: int,
    school_id: int | None,
) -> Subject:
    """Load a subject the given school owns.

    Raises:
        NotFoundError: If school_id is None and the subject does not exist.
        AuthorizationError: If school_id is set and the subject is missing
            or belongs to another school.
    """
    return await load_in_scope(
        db, Subject, subject_id, school_id, NotFoundError("Subject not found.")
    )


async def ensure_teacher_assigned(db: AsyncSession, teacher_id: int, class_id: int) -> None:
    """Confirm a teacher teaches a class.

    Raises:
        AuthorizationError: If the teacher is not mapped to the class.
    """
    assigned = await db.scalar(
        select(TeacherClassMap.teacher_id).where(
            TeacherClassMap.teacher_id == teacher_id,
            TeacherClassMap.class_id == class_id,
        )
    )
    if assigned is None:
        raise AuthorizationError("Access denied. You are not assigned to this class.")


async def find_teacher_by_user(db: AsyncSession, user_id: int) -> Teacher | None:
    result = await db.execute(select(Teacher).where(Teacher.user_id == user_id))
    return result.scalar_one_or_none()


async def find_student_by_user(db: AsyncSession, user_id: int) -> Student | None:
    result = await db.execute(select(Student).where(Student.user_id == user_id))
    return result.scalar_one_or_none()


async def school_ids_of(
    db: AsyncSession,
    model: type[Class] | type[Subject],
    ids: Iterable[int],
) -> dict[int, int]:
    """Map each existing id of a school owned table to its school."""
    wanted = _unique(ids)
    if not wanted:
        return {}
    result = await db.execute(select(model.id, model.school_id).where(model.id.in_(wanted)))
    return {row.id: row.school_id for row in result}


async def resolve_schedule_teachers(
    db: AsyncSession,
    schedules: Sequence[Any],
    school_id: int,
) -> dict[int, int]:
    """Check timetable rows against a school and map teacher user ids.

    Each row names its teacher by user id and its subject by id; both must
    exist and belong to school_id.

    Args:
        db: Database session.
        schedules: Rows with teacher_id (a user id) and subject_id.
        school_id: School of the class the rows belong to.

    Returns:
        Teacher profile id for every teacher user id named.

    Raises:
        ValidationError: Listing every row with an unknown teacher or
            subject, or one that belongs to another school.
    """
    if not schedules:
        return {}

    user_ids = _unique(s.teacher_id for s in schedules)
    result = await db.execute(
        select(Teacher.user_id, Teacher.id, Teacher.school_id).where(Teacher.user_id.in_(user_ids))
    )
    teachers = {row.user_id: (row.id, row.school_id) for row in result}
    subject_schools = await school_ids_of(db, Subject, (s.subject_id for s in schedules))

    validator = BatchValidator()
    for index, schedule in enumerate(schedules):
        teacher = teachers.get(schedule.teacher_id)
        if teacher is None:
            validator.add(
                index, "teacher_id", f"Teacher with user id {schedule.teacher_id} not found."
            )
        elif teacher[1] != school_id:
            validator.add(
                index,
                "teacher_id",
                f"Teacher with user id {schedule.teacher_id} belongs to another school.",
            )
        subject_school = subject_schools.get(schedule.subject_id)
        if subject_school is None:
            validator.add(index, "subject_id", f"Subject {schedule.subject_id} not found.")
        elif subject_school != school_id:
            validator.add(
                index,
                "subject_id",
                f"Subject {schedule.subject_id} belongs to another school.",
            )
    validator.raise_if_any("Some schedules are invalid.")
    return {user_id: teacher[0] for user_id, teacher in teachers.items()}


async def find_unenrolled(
    db: AsyncSession,
    class_id: int,
    student_ids: Sequence[int],
) -> list[int]:
    """Return the student ids that are not enrolled in a class.

    The result keeps request order and lists each id once.
    """
    wanted = _unique(student_ids)
    if not wanted:
        return []
    result = await db.execute(
        select(StudentClassMap.student_id).where(
            StudentClassMap.class_id == class_id,
            StudentClassMap.student_id.in_(wanted),
        )
    )
    enrolled = set(result.scalars().all())
    return [student_id for student_id in wanted if student_id not in enrolled]


async def enrolled_pairs(
    db: AsyncSession,
    pairs: Iterable[tuple[int, int]],
) -> set[tuple[int, int]]:
    """Return which (student_id, class_id) pairs are enrollments."""
    wanted = list(dict.fromkeys(pairs))
    if not wanted:
        return set()
    result = await db.execute(
        select(StudentClassMap.student_id, StudentClassMap.class_id).where(
            tuple_(StudentClassMap.student_id, StudentClassMap.class_id).in_(wanted)
        )
    )
    return {(row.student_id, row.class_id) for row in result}


async def find_outside_school(
    db: AsyncSession,
    student_ids: Sequence[int],
    school_id: int | None,
) -> list[int]:
    """Return the student ids that do not belong to a school.

    Unknown ids count as outside. With school_id None nothing is outside.
    """
    wanted = _unique(student_ids)
    if not wanted or school_id is None:
        return []
    result = await db.execute(
        select(Student.id).where(Student.id.in_(wanted), Student.school_id == school_id)
    )
    inside = set(result.scalars().all())
    return [student_id for student_id in wanted if student_id not in inside]
