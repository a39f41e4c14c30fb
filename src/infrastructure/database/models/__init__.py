# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models for the school database.

Importing this package registers every table on Base.metadata, which the
bulk writer uses to look tables up by name.
"""

from src.infrastructure.database.models.base import Base, IdMixin, TimestampMixin
from src.infrastructure.database.models.notification import Notification
from src.infrastructure.database.models.records import (
    ATTENDANCE_STATUSES,
    AcademicResult,
    Attendance,
    Score,
)
from src.infrastructure.database.models.school import (
    Class,
    School,
    StudentClassMap,
    StudySchedule,
    Subject,
    TeacherClassMap,
)
from src.infrastructure.database.models.user import Principal, Student, Teacher, User

__all__ = [
    "Base",
    "IdMixin",
    "TimestampMixin",
    # Accounts
    "User",
    "Principal",
    "Teacher",
    "Student",
    # Organization
    "School",
    "Subject",
    "Class",
    "StudySchedule",
    "TeacherClassMap",
    "StudentClassMap",
    # Records
    "Attendance",
    "Score",
    "AcademicResult",
    "ATTENDANCE_STATUSES",
    # Notifications
    "Notification",
]
