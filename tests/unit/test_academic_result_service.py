# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for AcademicResultService."""

import pytest
import pytest_asyncio
from sqlalchemy import select

from src.core.errors import AuthorizationError, NotFoundError, ValidationError
from src.domains.academic_result import AcademicResultService
from src.domains.access import AdminActor, PrincipalActor, StudentActor, TeacherActor
from src.infrastructure.database.models import AcademicResult
from src.infrastructure.database.unit_of_work import UnitOfWork
from src.models.academic_result import AcademicResultBatchRequest, AcademicResultInput


def batch(*grades: tuple[int, str], class_id: int = 2, subject_id: int = 3):
    return AcademicResultBatchRequest(
        class_id=class_id,
        subject_id=subject_id,
        academic_period="2024-S1",
        results=[AcademicResultInput(student_id=sid, final_grade=grade) for sid, grade in grades],
    )


async def publish(session_factory, actor, request: AcademicResultBatchRequest):
    async with UnitOfWork(session_factory) as db:
        return await AcademicResultService(db).publish_results(actor, request)


async def stored(session_factory) -> list[tuple]:
    async with session_factory() as db:
        result = await db.execute(
            select(AcademicResult.student_id, AcademicResult.final_grade).order_by(
                AcademicResult.student_id
            )
        )
        return [tuple(row) for row in result]


@pytest.mark.integration
class TestPublishResults:
    """Tests for publishing final grades."""

    @pytest.mark.asyncio
    async def test_publishes_batch(self, session_factory, seeded) -> None:
        """Test that every grade is written."""
        result = await publish(
            session_factory,
            TeacherActor(seeded.teacher_a_user),
            batch((seeded.student_a1, "A"), (seeded.student_a2, "B+")),
        )

        assert result.message == "Academic results published successfully."
        assert result.count == 2
        assert await stored(session_factory) == [
            (seeded.student_a1, "A"),
            (seeded.student_a2, "B+"),
        ]

    @pytest.mark.asyncio
    async def test_republish_updates_grade(self, session_factory, seeded) -> None:
        """Test that publishing the same period again replaces the grade."""
        teacher = seeded.teacher_a_user
        await publish(session_factory, TeacherActor(teacher), batch((seeded.student_a1, "C")))
        await publish(session_factory, TeacherActor(teacher), batch((seeded.student_a1, "B")))

        assert await stored(session_factory) == [(seeded.student_a1, "B")]

    @pytest.mark.asyncio
    async def test_student_of_other_school(self, session_factory, seeded) -> None:
        """Test that students outside the school are listed in the error."""
        with pytest.raises(AuthorizationError) as exc_info:
            await publish(
                session_factory,
                TeacherActor(seeded.teacher_a_user),
                batch((seeded.student_a1, "A"), (seeded.student_b1, "A")),
            )

        assert exc_info.value.details == {"student_ids": [seeded.student_b1]}
        assert await stored(session_factory) == []

    @pytest.mark.asyncio
    async def test_unenrolled_student(self, session_factory, seeded) -> None:
        """Test that a school student outside the class is a validation error."""
        with pytest.raises(ValidationError) as exc_info:
            await publish(
                session_factory,
                TeacherActor(seeded.teacher_a_user),
                batch((seeded.student_a3, "A")),
            )

        assert exc_info.value.details[0]["index"] == 0

    @pytest.mark.asyncio
    async def test_subject_of_other_school(self, session_factory, seeded) -> None:
        """Test that a subject of another school is refused."""
        with pytest.raises(AuthorizationError):
            await publish(
                session_factory,
                TeacherActor(seeded.teacher_a_user),
                batch((seeded.student_a1, "A"), subject_id=seeded.chemistry_b),
            )

    @pytest.mark.asyncio
    async def test_principal_cannot_publish(self, session_factory, seeded) -> None:
        """Test that publishing is reserved for teachers."""
        with pytest.raises(AuthorizationError, match="Only teachers"):
            await publish(
                session_factory,
                PrincipalActor(seeded.principal_a_user),
                batch((seeded.student_a1, "A")),
            )


@pytest.mark.integration
class TestListAndDeleteResults:
    """Tests for result listings and deletion."""

    @pytest_asyncio.fixture
    async def published(self, session_factory, seeded):
        await publish(
            session_factory,
            TeacherActor(seeded.teacher_a_user),
            batch((seeded.student_a1, "A"), (seeded.student_a2, "B")),
        )
        return seeded

    @pytest.mark.asyncio
    async def test_student_sees_own(self, db_session, published) -> None:
        """Test that a student lists only their own results."""
        rows = await AcademicResultService(db_session).list_results(
            StudentActor(published.student_a1_user), {}
        )

        assert len(rows) == 1
        assert rows[0].student_name == "Alice Smith"
        assert rows[0].subject_name == "Mathematics"
        assert rows[0].published_by == "Tom Baker"
        assert rows[0].published_at is not None

    @pytest.mark.asyncio
    async def test_paginated_by_default(self, db_session, published) -> None:
        """Test that listings are always paged."""
        service = AcademicResultService(db_session)
        actor = PrincipalActor(published.principal_a_user)

        page_one = await service.list_results(actor, {"limit": "1", "sort_by": "student_name"})
        page_two = await service.list_results(
            actor, {"limit": "1", "page": "2", "sort_by": "student_name"}
        )

        assert [r.student_name for r in page_one + page_two] == ["Alice Smith", "Bob Jones"]

    @pytest.mark.asyncio
    async def test_other_school_sees_nothing(self, db_session, published) -> None:
        """Test tenant isolation of results."""
        rows = await AcademicResultService(db_session).list_results(
            TeacherActor(published.teacher_b_user), {"school_id": str(published.school_a)}
        )

        assert rows == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("month", ["0", "13"])
    async def test_month_out_of_range(self, db_session, published, month: str) -> None:
        """Test that the month filter must be a calendar month."""
        with pytest.raises(ValidationError, match="month"):
            await AcademicResultService(db_session).list_results(
                PrincipalActor(published.principal_a_user), {"month": month}
            )

    @pytest.mark.asyncio
    async def test_year_filter(self, db_session, published) -> None:
        """Test that the year filter applies to the publication date."""
        rows = await AcademicResultService(db_session).list_results(
            PrincipalActor(published.principal_a_user), {"year": "1999"}
        )

        assert rows == []

    @pytest.mark.asyncio
    async def test_delete(self, session_factory, published) -> None:
        """Test deleting a result of the actor's school."""
        async with session_factory() as db:
            result_id = await db.scalar(select(AcademicResult.id).limit(1))

        async with UnitOfWork(session_factory) as db:
            await AcademicResultService(db).delete_result(
                TeacherActor(published.teacher_a_user), result_id
            )

        assert len(await stored(session_factory)) == 1

    @pytest.mark.asyncio
    async def test_delete_other_school(self, session_factory, published) -> None:
        """Test that another school cannot delete the result."""
        async with session_factory() as db:
            result_id = await db.scalar(select(AcademicResult.id).limit(1))

        with pytest.raises(AuthorizationError):
            async with UnitOfWork(session_factory) as db:
                await AcademicResultService(db).delete_result(
                    PrincipalActor(published.principal_b_user), result_id
                )

        assert len(await stored(session_factory)) == 2

    @pytest.mark.asyncio
    async def test_delete_missing_as_admin(self, session_factory, published) -> None:
        """Test that an admin deleting an unknown result gets not found."""
        with pytest.raises(NotFoundError, match="Academic result not found"):
            async with UnitOfWork(session_factory) as db:
                await AcademicResultService(db).delete_result(AdminActor(published.admin_user), 404)

    @pytest.mark.asyncio
    async def test_delete_missing_matches_foreign(self, session_factory, published) -> None:
        """Test that a missing id and another school's id are refused alike."""
        async with session_factory() as db:
            result_id = await db.scalar(select(AcademicResult.id).limit(1))
        actor = PrincipalActor(published.principal_b_user)

        errors = []
        for target in (result_id, 404):
            with pytest.raises(AuthorizationError) as caught:
                async with UnitOfWork(session_factory) as db:
                    await AcademicResultService(db).delete_result(actor, target)
            errors.append((caught.value.status_code, caught.value.message))

        assert errors[0] == errors[1]
