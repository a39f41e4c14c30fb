# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Access domain package.

This package decides which rows an authenticated actor may reach:
- Role specific ScopedActor variants resolving a TenantScope
- Scope enforcement helpers for reads and writes
- Cross-entity ownership checks and the batch validator
"""

from src.domains.access.actors import (
    AdminActor,
    PrincipalActor,
    ProfileActor,
    ScopedActor,
    StudentActor,
    TeacherActor,
    TenantScope,
    actor_for,
    ensure_in_scope,
    require_school_scope,
    require_teacher,
    scoped_params,
)
from src.domains.access.checks import (
    BatchValidator,
    RowViolation,
    ensure_class_in_school,
    ensure_subject_in_school,
    ensure_teacher_assigned,
    enrolled_pairs,
    find_outside_school,
    find_student_by_user,
    find_teacher_by_user,
    find_unenrolled,
    get_class,
    load_in_scope,
    resolve_schedule_teachers,
    school_ids_of,
)

__all__ = [
    # Actors
    "ScopedActor",
    "ProfileActor",
    "AdminActor",
    "PrincipalActor",
    "TeacherActor",
    "StudentActor",
    "TenantScope",
    "actor_for",
    "ensure_in_scope",
    "require_school_scope",
    "require_teacher",
    "scoped_params",
    # Checks
    "BatchValidator",
    "RowViolation",
    "get_class",
    "ensure_class_in_school",
    "ensure_subject_in_school",
    "ensure_teacher_assigned",
    "load_in_scope",
    "resolve_schedule_teachers",
    "find_teacher_by_user",
    "find_student_by_user",
    "school_ids_of",
    "find_unenrolled",
    "enrolled_pairs",
    "find_outside_school",
]
