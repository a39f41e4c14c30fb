# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic records written in batches by teachers.

Each table carries the natural unique key that the bulk upsert writer
conflicts on, so saving the same batch twice updates rows in place.
"""

import datetime
from typing import Optional

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, IdMixin

ATTENDANCE_STATUSES = ("present", "absent", "late", "permission")


class Attendance(IdMixin, Base):
    """Daily attendance of one student in one class."""

    __tablename__ = "attendance"
    __table_args__ = (UniqueConstraint("student_id", "class_id", "date"),)

    student_id: Mapped[int] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"), nullable=False
    )
    class_id: Mapped[int] = mapped_column(
        ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    recorded_by_teacher_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("teachers.id", ondelete="SET NULL"), nullable=True
    )


class Score(IdMixin, Base):
    """One assessment score of a student in a subject."""

    __tablename__ = "scores"
    __table_args__ = (
        UniqueConstraint("student_id", "subject_id", "assessment_type", "date_recorded"),
    )

    student_id: Mapped[int] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"), nullable=False
    )
    class_id: Mapped[int] = mapped_column(
        ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    subject_id: Mapped[int] = mapped_column(ForeignKey("subjects.id"), nullable=False)
    assessment_type: Mapped[str] = mapped_column(String(50), nullable=False)
    score: Mapped[float] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=False)
    date_recorded: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    recorded_by_teacher_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("teachers.id", ondelete="SET NULL"), nullable=True
    )


class AcademicResult(IdMixin, Base):
    """A published final grade for a subject and academic period."""

    __tablename__ = "academic_results"
    __table_args__ = (
        UniqueConstraint(
            "student_id",
            "class_id",
            "subject_id",
            "academic_period",
            name="uq_academic_results_student_class_subject_period",
        ),
    )

    student_id: Mapped[int] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"), nullable=False
    )
    class_id: Mapped[int] = mapped_column(
        ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    subject_id: Mapped[int] = mapped_column(ForeignKey("subjects.id"), nullable=False)
    academic_period: Mapped[str] = mapped_column(String(50), nullable=False)
    final_grade: Mapped[str] = mapped_column(String(20), nullable=False)
    comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    published_by_teacher_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("teachers.id", ondelete="SET NULL"), nullable=True
    )
    published_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
