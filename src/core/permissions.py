# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Roles and the role permission table.

Permission checks are coarse: they decide whether a role may call an
endpoint at all. Which rows the caller may see or change is decided later
by the scoped access resolver in src.domains.access.
"""

from enum import Enum


class Role(str, Enum):
    """Roles carried in access tokens."""

    ADMIN = "admin"
    PRINCIPAL = "principal"
    TEACHER = "teacher"
    STUDENT = "student"


class Permission(str, Enum):
    """Named capabilities checked by API dependencies."""

    VIEW_SCHOOLS = "view_schools"
    MANAGE_CLASSES = "manage_classes"
    VIEW_CLASSES = "view_classes"
    DELETE_CLASSES = "delete_classes"
    MANAGE_CLASS_STUDENTS = "manage_class_students"
    RECORD_ATTENDANCE = "record_attendance"
    VIEW_ATTENDANCE = "view_attendance"
    MANAGE_SCORES = "manage_scores"
    VIEW_SCORES = "view_scores"
    VIEW_SCORE_REPORTS = "view_score_reports"
    MANAGE_ACADEMIC_RESULTS = "manage_academic_results"
    VIEW_ACADEMIC_RESULTS = "view_academic_results"
    VIEW_SUBJECTS = "view_subjects"
    MANAGE_SUBJECTS = "manage_subjects"
    VIEW_SCHEDULES = "view_schedules"
    MANAGE_SCHEDULES = "manage_schedules"
    VIEW_TEACHERS = "view_teachers"
    VIEW_STUDENTS = "view_students"
    VIEW_PRINCIPALS = "view_principals"


ROLE_PERMISSIONS: dict[Permission, frozenset[Role]] = {
    Permission.VIEW_SCHOOLS: frozenset({Role.ADMIN, Role.PRINCIPAL, Role.TEACHER}),
    Permission.MANAGE_CLASSES: frozenset({Role.ADMIN, Role.PRINCIPAL, Role.TEACHER}),
    Permission.VIEW_CLASSES: frozenset({Role.ADMIN, Role.PRINCIPAL, Role.TEACHER}),
    Permission.DELETE_CLASSES: frozenset({Role.ADMIN, Role.PRINCIPAL}),
    Permission.MANAGE_CLASS_STUDENTS: frozenset({Role.ADMIN, Role.PRINCIPAL, Role.TEACHER}),
    Permission.RECORD_ATTENDANCE: frozenset({Role.TEACHER}),
    Permission.VIEW_ATTENDANCE: frozenset(
        {Role.ADMIN, Role.PRINCIPAL, Role.TEACHER, Role.STUDENT}
    ),
    Permission.MANAGE_SCORES: frozenset({Role.ADMIN, Role.PRINCIPAL, Role.TEACHER}),
    Permission.VIEW_SCORES: frozenset({Role.ADMIN, Role.PRINCIPAL, Role.TEACHER, Role.STUDENT}),
    Permission.VIEW_SCORE_REPORTS: frozenset({Role.ADMIN, Role.PRINCIPAL, Role.TEACHER}),
    Permission.MANAGE_ACADEMIC_RESULTS: frozenset({Role.TEACHER}),
    Permission.VIEW_ACADEMIC_RESULTS: frozenset(
        {Role.ADMIN, Role.PRINCIPAL, Role.TEACHER, Role.STUDENT}
    ),
    Permission.VIEW_SUBJECTS: frozenset({Role.ADMIN, Role.PRINCIPAL, Role.TEACHER, Role.STUDENT}),
    Permission.MANAGE_SUBJECTS: frozenset({Role.ADMIN, Role.PRINCIPAL}),
    Permission.VIEW_SCHEDULES: frozenset(
        {Role.ADMIN, Role.PRINCIPAL, Role.TEACHER, Role.STUDENT}
    ),
    Permission.MANAGE_SCHEDULES: frozenset({Role.ADMIN, Role.PRINCIPAL}),
    Permission.VIEW_TEACHERS: frozenset({Role.ADMIN, Role.PRINCIPAL, Role.TEACHER}),
    Permission.VIEW_STUDENTS: frozenset({Role.ADMIN, Role.PRINCIPAL, Role.TEACHER}),
    Permission.VIEW_PRINCIPALS: frozenset({Role.ADMIN, Role.PRINCIPAL}),
}


def has_permission(role: str, permission: Permission) -> bool:
    """Check whether a role holds a permission.

    Args:
        role: Role name from the access token.
        permission: Permission to check.

    Returns:
        True if the role is allowed, False for unknown roles.
    """
    try:
        return Role(role) in ROLE_PERMISSIONS[permission]
    except ValueError:
        return False
