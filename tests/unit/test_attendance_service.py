# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for AttendanceService."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from src.core.errors import AuthorizationError, ValidationError
from src.domains.access import PrincipalActor, StudentActor, TeacherActor
from src.domains.attendance import AttendanceService
from src.domains.attendance.service import format_display_date
from src.infrastructure.database.models import Attendance, Class, Notification, StudentClassMap
from src.infrastructure.database.unit_of_work import UnitOfWork
from src.models.attendance import AttendanceBatchRequest, AttendanceRecordInput

DAY = date(2024, 5, 1)


@pytest.fixture
def mock_db() -> AsyncMock:
    """Create a mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    return db


def batch(class_id: int, *records: tuple[int, str]) -> AttendanceBatchRequest:
    return AttendanceBatchRequest(
        class_id=class_id,
        date=DAY,
        records=[AttendanceRecordInput(student_id=sid, status=status) for sid, status in records],
    )


async def record(session_factory, actor, request: AttendanceBatchRequest):
    async with UnitOfWork(session_factory) as db:
        return await AttendanceService(db).record_attendance(actor, request)


async def count(session_factory, model) -> int:
    async with session_factory() as db:
        return await db.scalar(select(func.count()).select_from(model))


class TestAttendanceServiceRejections:
    """Tests for writes refused before touching the database."""

    @pytest.mark.asyncio
    async def test_student_cannot_record(self, mock_db: AsyncMock) -> None:
        """Test that a student is refused without any query."""
        service = AttendanceService(mock_db)

        with pytest.raises(AuthorizationError, match="Only teachers"):
            await service.record_attendance(StudentActor(30), batch(2, (1, "present")))

        mock_db.execute.assert_not_awaited()
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_my_attendance_is_for_students(self, mock_db: AsyncMock) -> None:
        """Test that non-students have no own attendance."""
        service = AttendanceService(mock_db)

        with pytest.raises(AuthorizationError):
            await service.my_attendance(PrincipalActor(10), {})

    def test_display_date(self) -> None:
        """Test the dd/mm/yyyy notification date."""
        assert format_display_date(DAY) == "01/05/2024"


@pytest.mark.integration
class TestRecordAttendance:
    """Tests for recording a day of attendance."""

    @pytest.mark.asyncio
    async def test_records_batch(self, session_factory, seeded) -> None:
        """Test that every row of the batch is written."""
        result = await record(
            session_factory,
            TeacherActor(seeded.teacher_a_user),
            batch(seeded.class_a, (seeded.student_a1, "present"), (seeded.student_a2, "absent")),
        )

        assert result.count == 2
        assert result.message == "Attendance recorded successfully."
        async with session_factory() as db:
            rows = (
                await db.execute(
                    select(
                        Attendance.student_id,
                        Attendance.status,
                        Attendance.recorded_by_teacher_id,
                    ).order_by(Attendance.student_id)
                )
            ).all()
        assert [tuple(r) for r in rows] == [
            (seeded.student_a1, "present", seeded.teacher_a),
            (seeded.student_a2, "absent", seeded.teacher_a),
        ]

    @pytest.mark.asyncio
    async def test_absent_student_notified(self, session_factory, seeded) -> None:
        """Test that flagged statuses notify the student in the same write."""
        await record(
            session_factory,
            TeacherActor(seeded.teacher_a_user),
            batch(seeded.class_a, (seeded.student_a1, "present"), (seeded.student_a2, "late")),
        )

        async with session_factory() as db:
            notes = (await db.execute(select(Notification.user_id, Notification.message))).all()
        assert [tuple(n) for n in notes] == [
            (seeded.student_a2_user, "You were marked late on 01/05/2024.")
        ]

    @pytest.mark.asyncio
    async def test_rerecording_updates_status(self, session_factory, seeded) -> None:
        """Test that the same day recorded twice keeps one row per student."""
        teacher = seeded.teacher_a_user
        await record(
            session_factory,
            TeacherActor(teacher),
            batch(seeded.class_a, (seeded.student_a1, "absent")),
        )
        await record(
            session_factory,
            TeacherActor(teacher),
            batch(seeded.class_a, (seeded.student_a1, "present")),
        )

        async with session_factory() as db:
            rows = (await db.execute(select(Attendance.status))).scalars().all()
        assert rows == ["present"]

    @pytest.mark.asyncio
    async def test_student_rejected_with_no_side_effects(self, session_factory, seeded) -> None:
        """Test that a student's attempt writes nothing at all."""
        with pytest.raises(AuthorizationError):
            await record(
                session_factory,
                StudentActor(seeded.student_a1_user),
                batch(seeded.class_a, (seeded.student_a1, "present")),
            )

        assert await count(session_factory, Attendance) == 0
        assert await count(session_factory, Notification) == 0

    @pytest.mark.asyncio
    async def test_other_school_class_refused(self, session_factory, seeded) -> None:
        """Test that a teacher cannot record for another school's class."""
        with pytest.raises(AuthorizationError):
            await record(
                session_factory,
                TeacherActor(seeded.teacher_b_user),
                batch(seeded.class_a, (seeded.student_a1, "present")),
            )

        assert await count(session_factory, Attendance) == 0

    @pytest.mark.asyncio
    async def test_unknown_class_refused_like_foreign(self, session_factory, seeded) -> None:
        """Test that a missing class and another school's class are refused alike."""
        actor = TeacherActor(seeded.teacher_a_user)

        errors = []
        for class_id in (seeded.class_b, 404):
            with pytest.raises(AuthorizationError) as caught:
                await record(
                    session_factory, actor, batch(class_id, (seeded.student_a1, "present"))
                )
            errors.append((caught.value.status_code, caught.value.message))

        assert errors[0] == errors[1]

    @pytest.mark.asyncio
    async def test_teacher_not_teaching_class_refused(self, session_factory, seeded) -> None:
        """Test that a teacher of the school must also teach the class."""
        async with session_factory() as db:
            db.add(Class(id=50, name="9Z", school_id=seeded.school_a, academic_year="2024-2025"))
            await db.flush()
            db.add(StudentClassMap(student_id=seeded.student_a1, class_id=50))
            await db.commit()

        with pytest.raises(AuthorizationError, match="not assigned to this class"):
            await record(
                session_factory,
                TeacherActor(seeded.teacher_a_user),
                batch(50, (seeded.student_a1, "absent")),
            )

        assert await count(session_factory, Attendance) == 0
        assert await count(session_factory, Notification) == 0

    @pytest.mark.asyncio
    async def test_unassigned_teacher_refused(self, session_factory, seeded) -> None:
        """Test that a teacher without a school cannot write."""
        with pytest.raises(AuthorizationError, match="not assigned"):
            await record(
                session_factory,
                TeacherActor(seeded.unassigned_teacher_user),
                batch(seeded.class_a, (seeded.student_a1, "present")),
            )

    @pytest.mark.asyncio
    async def test_unenrolled_student_rejects_batch(self, session_factory, seeded) -> None:
        """Test that one non-member invalidates the whole batch."""
        with pytest.raises(ValidationError) as exc_info:
            await record(
                session_factory,
                TeacherActor(seeded.teacher_a_user),
                batch(
                    seeded.class_a,
                    (seeded.student_a1, "present"),
                    (seeded.student_a3, "absent"),
                ),
            )

        assert exc_info.value.details == [
            {
                "index": 1,
                "field": "student_id",
                "message": "Student 4 is not enrolled in class 2.",
            }
        ]
        assert await count(session_factory, Attendance) == 0

    @pytest.mark.asyncio
    async def test_duplicate_student_rejected(self, session_factory, seeded) -> None:
        """Test that a student listed twice is reported."""
        with pytest.raises(ValidationError) as exc_info:
            await record(
                session_factory,
                TeacherActor(seeded.teacher_a_user),
                batch(
                    seeded.class_a,
                    (seeded.student_a1, "present"),
                    (seeded.student_a1, "absent"),
                ),
            )

        assert exc_info.value.details[0]["index"] == 1


@pytest.mark.integration
class TestListAttendance:
    """Tests for scoped attendance listings."""

    @pytest_asyncio.fixture
    async def recorded(self, session_factory, seeded):
        await record(
            session_factory,
            TeacherActor(seeded.teacher_a_user),
            batch(seeded.class_a, (seeded.student_a1, "present"), (seeded.student_a2, "absent")),
        )
        await record(
            session_factory,
            TeacherActor(seeded.teacher_b_user),
            batch(seeded.class_b, (seeded.student_b1, "present")),
        )
        return seeded

    @pytest.mark.asyncio
    async def test_teacher_sees_own_school_only(self, db_session, recorded) -> None:
        """Test that school 9 rows never reach a school 5 teacher."""
        rows = await AttendanceService(db_session).list_attendance(
            TeacherActor(recorded.teacher_a_user), {"school_id": str(recorded.school_b)}
        )

        assert {row.class_id for row in rows} == {recorded.class_a}
        assert len(rows) == 2

    @pytest.mark.asyncio
    async def test_student_sees_only_self(self, db_session, recorded) -> None:
        """Test that a student asking for a classmate gets their own rows."""
        rows = await AttendanceService(db_session).my_attendance(
            StudentActor(recorded.student_a1_user), {"student_id": str(recorded.student_a2)}
        )

        assert [row.student_id for row in rows] == [recorded.student_a1]
        assert rows[0].student_name == "Alice Smith"
        assert rows[0].class_name == "10A"

    @pytest.mark.asyncio
    async def test_unassigned_teacher_sees_nothing(self, db_session, recorded) -> None:
        """Test that an empty scope lists nothing."""
        rows = await AttendanceService(db_session).list_attendance(
            TeacherActor(recorded.unassigned_teacher_user), {}
        )

        assert rows == []

    @pytest.mark.asyncio
    async def test_other_principal_sees_other_school(self, db_session, recorded) -> None:
        """Test that the school 9 principal sees only school 9 rows."""
        rows = await AttendanceService(db_session).list_attendance(
            PrincipalActor(recorded.principal_b_user), {}
        )

        assert [row.student_id for row in rows] == [recorded.student_b1]

    @pytest.mark.asyncio
    async def test_paginates_when_limit_given(self, db_session, recorded) -> None:
        """Test that limit and page slice the listing."""
        service = AttendanceService(db_session)
        actor = TeacherActor(recorded.teacher_a_user)

        first = await service.list_attendance(actor, {"limit": "1", "sort_by": "student_name"})
        second = await service.list_attendance(
            actor, {"limit": "1", "page": "2", "sort_by": "student_name"}
        )

        assert [row.student_name for row in first + second] == ["Alice Smith", "Bob Jones"]
