# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    attendance: Daily class attendance.
    scores: Assessment scores and score reports.
    academic_results: Published final grades.
    classes: Classes, their timetables and enrollment.
    schedules: Single timetable slots.
    subjects: Subjects of a school.
    teachers, students, principals: Scoped people directories.
    notifications: In-app notifications of the caller.
    schools: School lookup.
"""

from fastapi import APIRouter

from src.api.v1 import (
    academic_results,
    attendance,
    classes,
    notifications,
    principals,
    schedules,
    schools,
    scores,
    students,
    subjects,
    teachers,
)

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(attendance.router, prefix="/attendance", tags=["Attendance"])
router.include_router(scores.router, prefix="/scores", tags=["Scores"])
router.include_router(
    academic_results.router, prefix="/academic-results", tags=["Academic Results"]
)
router.include_router(classes.router, prefix="/classes", tags=["Classes"])
router.include_router(schedules.router, prefix="/schedules", tags=["Schedules"])
router.include_router(subjects.router, prefix="/subjects", tags=["Subjects"])
router.include_router(teachers.router, prefix="/teachers", tags=["Teachers"])
router.include_router(students.router, prefix="/students", tags=["Students"])
router.include_router(principals.router, prefix="/principals", tags=["Principals"])
router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
router.include_router(schools.router, prefix="/schools", tags=["Schools"])

__all__ = ["router"]
