# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial school management schema.

Revision ID: 001_initial
Revises: None
Create Date: 2025-01-15

This migration creates all tables based on the SQLAlchemy models in
src/infrastructure/database/models/.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def _profile_table(name: str, *extra: sa.Column) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.Integer,
            sa.ForeignKey("users.id", ondelete="CASCADE", name=f"fk_{name}_user_id_users"),
            nullable=False,
        ),
        sa.Column(
            "school_id",
            sa.Integer,
            sa.ForeignKey(
                "schools.id", ondelete="SET NULL", name=f"fk_{name}_school_id_schools"
            ),
            nullable=True,
        ),
        *extra,
        sa.UniqueConstraint("user_id", name=f"uq_{name}_user_id"),
    )
    op.create_index(f"ix_{name}_school_id", name, ["school_id"])


def upgrade() -> None:
    """Create all tables."""
    # ==========================================================================
    # 1. schools and users
    # ==========================================================================
    op.create_table(
        "schools",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone_number", sa.String(50), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_role", "users", ["role"])

    # ==========================================================================
    # 2. role profiles
    # ==========================================================================
    _profile_table("principals")
    _profile_table("teachers", sa.Column("specialization", sa.String(100), nullable=True))
    _profile_table("students", sa.Column("date_of_birth", sa.Date, nullable=True))

    # ==========================================================================
    # 3. subjects, classes and timetables
    # ==========================================================================
    op.create_table(
        "subjects",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column(
            "school_id",
            sa.Integer,
            sa.ForeignKey("schools.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )
    op.create_index("ix_subjects_school_id", "subjects", ["school_id"])

    op.create_table(
        "classes",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column(
            "school_id",
            sa.Integer,
            sa.ForeignKey("schools.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("academic_year", sa.String(20), nullable=False),
        sa.Column("start_time", sa.Time, nullable=True),
        sa.Column("end_time", sa.Time, nullable=True),
        sa.Column("start_date", sa.Date, nullable=True),
        sa.Column("end_date", sa.Date, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_classes_school_id", "classes", ["school_id"])

    op.create_table(
        "study_schedules",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "class_id",
            sa.Integer,
            sa.ForeignKey("classes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("teacher_id", sa.Integer, sa.ForeignKey("teachers.id"), nullable=False),
        sa.Column("subject_id", sa.Integer, sa.ForeignKey("subjects.id"), nullable=False),
        sa.Column("day_of_week", sa.String(10), nullable=False),
        sa.Column("start_time", sa.Time, nullable=False),
        sa.Column("end_time", sa.Time, nullable=False),
    )
    op.create_index("ix_study_schedules_class_id", "study_schedules", ["class_id"])

    op.create_table(
        "teacher_class_map",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "teacher_id",
            sa.Integer,
            sa.ForeignKey("teachers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "class_id",
            sa.Integer,
            sa.ForeignKey("classes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.UniqueConstraint(
            "teacher_id", "class_id", name="uq_teacher_class_map_teacher_id_class_id"
        ),
    )
    op.create_index("ix_teacher_class_map_class_id", "teacher_class_map", ["class_id"])

    op.create_table(
        "student_class_map",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "student_id",
            sa.Integer,
            sa.ForeignKey("students.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "class_id",
            sa.Integer,
            sa.ForeignKey("classes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.UniqueConstraint(
            "student_id", "class_id", name="uq_student_class_map_student_id_class_id"
        ),
    )
    op.create_index("ix_student_class_map_class_id", "student_class_map", ["class_id"])

    # ==========================================================================
    # 4. academic records
    # ==========================================================================
    op.create_table(
        "attendance",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "student_id",
            sa.Integer,
            sa.ForeignKey("students.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "class_id",
            sa.Integer,
            sa.ForeignKey("classes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("remarks", sa.Text, nullable=True),
        sa.Column(
            "recorded_by_teacher_id",
            sa.Integer,
            sa.ForeignKey("teachers.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.UniqueConstraint(
            "student_id", "class_id", "date", name="uq_attendance_student_id_class_id_date"
        ),
    )
    op.create_index("ix_attendance_class_id", "attendance", ["class_id"])

    op.create_table(
        "scores",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "student_id",
            sa.Integer,
            sa.ForeignKey("students.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "class_id",
            sa.Integer,
            sa.ForeignKey("classes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("subject_id", sa.Integer, sa.ForeignKey("subjects.id"), nullable=False),
        sa.Column("assessment_type", sa.String(50), nullable=False),
        sa.Column("score", sa.Numeric(5, 2), nullable=False),
        sa.Column("date_recorded", sa.Date, nullable=False),
        sa.Column(
            "recorded_by_teacher_id",
            sa.Integer,
            sa.ForeignKey("teachers.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.UniqueConstraint(
            "student_id",
            "subject_id",
            "assessment_type",
            "date_recorded",
            name="uq_scores_student_id_subject_id_assessment_type_date_recorded",
        ),
    )
    op.create_index("ix_scores_class_id", "scores", ["class_id"])

    op.create_table(
        "academic_results",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "student_id",
            sa.Integer,
            sa.ForeignKey("students.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "class_id",
            sa.Integer,
            sa.ForeignKey("classes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("subject_id", sa.Integer, sa.ForeignKey("subjects.id"), nullable=False),
        sa.Column("academic_period", sa.String(50), nullable=False),
        sa.Column("final_grade", sa.String(20), nullable=False),
        sa.Column("comments", sa.Text, nullable=True),
        sa.Column(
            "published_by_teacher_id",
            sa.Integer,
            sa.ForeignKey("teachers.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "published_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint(
            "student_id",
            "class_id",
            "subject_id",
            "academic_period",
            name="uq_academic_results_student_class_subject_period",
        ),
    )
    op.create_index("ix_academic_results_class_id", "academic_results", ["class_id"])

    # ==========================================================================
    # 5. notifications
    # ==========================================================================
    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.Integer,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    for table in (
        "notifications",
        "academic_results",
        "scores",
        "attendance",
        "student_class_map",
        "teacher_class_map",
        "study_schedules",
        "classes",
        "subjects",
        "students",
        "teachers",
        "principals",
        "users",
        "schools",
    ):
        op.drop_table(table)
