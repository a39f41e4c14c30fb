# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer.

This package contains domain services that encapsulate business logic.
Services receive the session of the caller's unit of work, flush their
changes and never commit.

Domains:
    access: Scoped actors, tenant scope and ownership checks.
    auth: Access token verification.
    attendance: Daily class attendance.
    scores: Assessment scores and score reports.
    academic_result: Published final grades.
    class_: Classes, their timetables and enrollment.
    schedule: Single timetable slots.
    subject: Subjects of a school.
    people: Teacher, student and principal directories.
    notification: In-app notifications.
    school: School lookup.
"""
