# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Score service.

This module provides the ScoreService that handles:
- Scoped, filtered score listings
- Batch upsert of assessment scores keyed on
  (student, subject, assessment type, date)
- Score deletion
- Ranked score reports for a class or a school

Example:
    >>> service = ScoreService(db)
    >>> await service.save_scores(actor, ScoreBatchRequest(scores=[...]))
    >>> report = await service.get_report(actor, {"class_id": "4"})
"""

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import GradingSettings, QuerySettings, get_settings
from src.core.errors import AuthorizationError, NotFoundError, ValidationError
from src.domains.access import (
    BatchValidator,
    ScopedActor,
    enrolled_pairs,
    ensure_class_in_school,
    get_class,
    load_in_scope,
    require_school_scope,
    require_teacher,
    school_ids_of,
    scoped_params,
)
from src.domains.scores.report import ReportStudent, ScoreEntry, build_score_report
from src.infrastructure.database.bulk import bulk_upsert
from src.infrastructure.database.models import (
    Class,
    Score,
    Student,
    StudentClassMap,
    Subject,
    User,
)
from src.infrastructure.database.query import (
    QueryBuilder,
    coerce_value,
    first_value,
    is_present,
)
from src.models.attendance import BatchWriteResponse
from src.models.score import ScoreBatchRequest, ScoreReport, ScoreResponse

logger = logging.getLogger(__name__)

SCORE_INSERT_COLUMNS = (
    "student_id",
    "class_id",
    "subject_id",
    "assessment_type",
    "score",
    "date_recorded",
    "recorded_by_teacher_id",
)
SCORE_UPDATE_COLUMNS = ("score", "recorded_by_teacher_id")

_SUBJECT_WILDCARDS = frozenset({"all", "undefined"})

_student_name = (User.first_name + " " + User.last_name).label("student_name")


class ScoreNotFoundError(NotFoundError):
    """Raised when a score does not exist."""

    def __init__(self) -> None:
        super().__init__("Score not found.")


def _date_range(builder: QueryBuilder, params: Mapping[str, Any]) -> None:
    date_from = first_value(params.get("date_from"))
    if is_present(date_from):
        builder.where(
            Score.date_recorded >= coerce_value(Score.date_recorded, date_from, "date_from")
        )
    date_to = first_value(params.get("date_to"))
    if is_present(date_to):
        builder.where(Score.date_recorded <= coerce_value(Score.date_recorded, date_to, "date_to"))


class ScoreService:
    """Service for assessment scores.

    Attributes:
        db: Async database session.
        query_settings: Paging defaults for listings.
        grading: Grade bands and pass mark for reports.
    """

    def __init__(
        self,
        db: AsyncSession,
        query_settings: QuerySettings | None = None,
        grading: GradingSettings | None = None,
    ) -> None:
        settings = get_settings()
        self.db = db
        self.query_settings = query_settings or settings.query
        self.grading = grading or settings.grading

    @staticmethod
    def _list_query() -> Select:
        return (
            select(
                Score.id,
                Score.student_id,
                _student_name,
                Score.class_id,
                Class.name.label("class_name"),
                Score.subject_id,
                Subject.name.label("subject_name"),
                Score.assessment_type,
                Score.score,
                Score.date_recorded,
            )
            .join(Student, Score.student_id == Student.id)
            .join(User, Student.user_id == User.id)
            .join(Class, Score.class_id == Class.id)
            .join(Subject, Score.subject_id == Subject.id)
        )

    async def list_scores(
        self,
        actor: ScopedActor,
        params: Mapping[str, Any],
    ) -> list[ScoreResponse]:
        """List scores visible to the actor.

        Students see only their own scores. Results are paginated only when
        the request gives a limit.

        Args:
            actor: Requesting actor.
            params: Request query params.

        Returns:
            Matching scores.
        """
        scope = await actor.resolve_scope(self.db)
        if scope.is_empty:
            return []
        params = scoped_params(params, scope)

        builder = QueryBuilder(self._list_query())
        builder.apply_filters(
            params,
            {
                "class_id": Score.class_id,
                "student_id": Score.student_id,
                "subject_id": Score.subject_id,
                "assessment_type": Score.assessment_type,
                "date_recorded": Score.date_recorded,
                "school_id": Class.school_id,
            },
        )
        _date_range(builder, params)
        builder.apply_sorting(
            params,
            [Score.date_recorded.desc(), User.first_name.asc()],
            sortable={
                "id": Score.id,
                "score": Score.score,
                "date_recorded": Score.date_recorded,
                "assessment_type": Score.assessment_type,
                "student_name": User.first_name,
                "subject_name": Subject.name,
                "class_name": Class.name,
            },
        )
        if is_present(first_value(params.get("limit"))):
            builder.apply_pagination(
                params, self.query_settings.default_limit, self.query_settings.max_limit
            )

        result = await self.db.execute(builder.build())
        return [ScoreResponse.model_validate(dict(row)) for row in result.mappings()]

    async def save_scores(
        self,
        actor: ScopedActor,
        request: ScoreBatchRequest,
    ) -> BatchWriteResponse:
        """Insert or update a batch of scores.

        Every class and subject must belong to the teacher's school and
        every student must be enrolled in the class of their row.

        Args:
            actor: Requesting actor; must be a teacher.
            request: Scores to save.

        Returns:
            Confirmation with the number of rows written.

        Raises:
            AuthorizationError: If the actor is not a teacher with a school,
                or a class or subject is missing or in another school.
            ValidationError: If rows reference students outside their
                class, exceed the maximum score or repeat a score key.
        """
        teacher = await require_teacher(actor, self.db)
        school_id = require_school_scope(await actor.resolve_scope(self.db))
        records = request.scores

        class_schools = await school_ids_of(self.db, Class, (r.class_id for r in records))
        subject_schools = await school_ids_of(self.db, Subject, (r.subject_id for r in records))
        # Unknown ids count as foreign
        foreign = [
            r
            for r in records
            if class_schools.get(r.class_id) != school_id
            or subject_schools.get(r.subject_id) != school_id
        ]
        if foreign:
            raise AuthorizationError(
                "Access denied. You can only record scores for classes and subjects in your school."
            )

        enrolled = await enrolled_pairs(self.db, ((r.student_id, r.class_id) for r in records))

        validator = BatchValidator()
        seen: set[tuple[int, int, str, Any]] = set()
        for index, record in enumerate(records):
            if (record.student_id, record.class_id) not in enrolled:
                validator.add(
                    index,
                    "student_id",
                    f"Student {record.student_id} is not enrolled in class {record.class_id}.",
                )
            if record.score > self.grading.max_score:
                validator.add(index, "score", f"Score cannot exceed {self.grading.max_score:g}.")
            key = (
                record.student_id,
                record.subject_id,
                record.assessment_type,
                record.date_recorded,
            )
            if key in seen:
                validator.add(index, "student_id", "Duplicate score in the same request.")
            seen.add(key)
        validator.raise_if_any("Some score records are invalid.")

        rows = [
            (
                r.student_id,
                r.class_id,
                r.subject_id,
                r.assessment_type,
                r.score,
                r.date_recorded,
                teacher.id,
            )
            for r in records
        ]
        await bulk_upsert(
            self.db, Score.__table__, SCORE_INSERT_COLUMNS, rows, SCORE_UPDATE_COLUMNS
        )

        logger.info("Teacher %s saved %d scores", teacher.id, len(rows))
        return BatchWriteResponse(message="Scores saved/updated successfully.", count=len(rows))

    async def delete_score(self, actor: ScopedActor, score_id: int) -> None:
        """Delete a score in the actor's school.

        Raises:
            ScoreNotFoundError: If an admin names a score that does not exist.
            AuthorizationError: If no score with the id is in the actor's
                school.
        """
        school_id = require_school_scope(await actor.resolve_scope(self.db))
        score = await load_in_scope(self.db, Score, score_id, school_id, ScoreNotFoundError())

        await self.db.delete(score)
        await self.db.flush()
        logger.info("Deleted score %s by user %s", score_id, actor.user_id)

    async def get_report(self, actor: ScopedActor, params: Mapping[str, Any]) -> ScoreReport:
        """Build the ranked score report for a class or a school.

        A class_id narrows the report to one class; otherwise the whole
        school is reported. Non-admins are locked to their own school.

        Args:
            actor: Requesting actor.
            params: class_id, school_id, subject_id, date_from, date_to.

        Returns:
            The score report.

        Raises:
            ValidationError: If neither class_id nor school_id can be
                determined.
            AuthorizationError: If a non-admin asks for another school or
                a class that is not in their school.
            NotFoundError: If an admin names a class that does not exist.
        """
        raw_class = first_value(params.get("class_id"))
        raw_school = first_value(params.get("school_id"))
        class_id = None
        if is_present(raw_class):
            class_id = coerce_value(Class.id, raw_class, "class_id")
        school_id = None
        if is_present(raw_school):
            school_id = coerce_value(Class.school_id, raw_school, "school_id")

        scope = await actor.resolve_scope(self.db)
        if scope.restricted:
            own_school = require_school_scope(scope)
            if school_id is not None and school_id != own_school:
                raise AuthorizationError(
                    "Access denied. You can only view reports for your own school."
                )
            if class_id is not None:
                await ensure_class_in_school(self.db, class_id, own_school)
            school_id = own_school
        elif class_id is not None:
            await get_class(self.db, class_id)

        if class_id is None and school_id is None:
            raise ValidationError("Either class_id or school_id is required.")

        students = await self._report_students(class_id, school_id)
        scores = await self._report_scores(class_id, school_id, params)
        return build_score_report(
            students,
            scores,
            self.grading,
            school_id=school_id,
            class_id=class_id,
        )

    async def _report_students(
        self,
        class_id: int | None,
        school_id: int | None,
    ) -> list[ReportStudent]:
        query = (
            select(Student.id, User.first_name, User.last_name)
            .join(User, Student.user_id == User.id)
            .join(StudentClassMap, StudentClassMap.student_id == Student.id)
        )
        if class_id is not None:
            query = query.where(StudentClassMap.class_id == class_id)
        else:
            query = query.join(Class, StudentClassMap.class_id == Class.id).where(
                Class.school_id == school_id
            )
        query = query.distinct().order_by(User.last_name, User.first_name, Student.id)

        result = await self.db.execute(query)
        return [
            ReportStudent(student_id=row.id, student_name=f"{row.first_name} {row.last_name}")
            for row in result
        ]

    async def _report_scores(
        self,
        class_id: int | None,
        school_id: int | None,
        params: Mapping[str, Any],
    ) -> list[ScoreEntry]:
        query = select(
            Score.student_id,
            Score.subject_id,
            Subject.name.label("subject_name"),
            Score.assessment_type,
            Score.score,
        ).join(Subject, Score.subject_id == Subject.id)

        builder = QueryBuilder(query)
        if class_id is not None:
            builder.where(Score.class_id == class_id)
        else:
            builder.where(
                Score.class_id.in_(select(Class.id).where(Class.school_id == school_id))
            )

        subject = first_value(params.get("subject_id"))
        if is_present(subject) and str(subject) not in _SUBJECT_WILDCARDS:
            builder.apply_filters({"subject_id": subject}, {"subject_id": Score.subject_id})
        _date_range(builder, params)

        result = await self.db.execute(builder.build())
        return [
            ScoreEntry(
                student_id=row.student_id,
                subject_id=row.subject_id,
                subject_name=row.subject_name,
                assessment_type=str(row.assessment_type).strip(),
                score=float(row.score),
            )
            for row in result
        ]
