# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the role permission table."""

import pytest

from src.core.permissions import ROLE_PERMISSIONS, Permission, Role, has_permission


class TestRolePermissions:
    """Tests for has_permission()."""

    def test_every_permission_is_mapped(self) -> None:
        """Test that no permission is missing from the table."""
        assert set(ROLE_PERMISSIONS) == set(Permission)

    @pytest.mark.parametrize("role", ["admin", "principal", "student"])
    def test_only_teachers_record_attendance(self, role: str) -> None:
        """Test that attendance writes are reserved for teachers."""
        assert has_permission(role, Permission.RECORD_ATTENDANCE) is False
        assert has_permission("teacher", Permission.RECORD_ATTENDANCE) is True

    def test_students_read_their_records(self) -> None:
        """Test that students can read attendance, scores and results."""
        for permission in (
            Permission.VIEW_ATTENDANCE,
            Permission.VIEW_SCORES,
            Permission.VIEW_ACADEMIC_RESULTS,
        ):
            assert has_permission(Role.STUDENT, permission) is True

    def test_students_cannot_manage(self) -> None:
        """Test that students hold no write permission."""
        writes = [p for p in Permission if p.value.startswith(("manage_", "record_", "delete_"))]

        assert writes
        assert not any(has_permission("student", p) for p in writes)

    def test_only_admin_and_principal_delete_classes(self) -> None:
        """Test the class deletion permission."""
        allowed = {r for r in Role if has_permission(r, Permission.DELETE_CLASSES)}

        assert allowed == {Role.ADMIN, Role.PRINCIPAL}

    def test_unknown_role_has_nothing(self) -> None:
        """Test that an unrecognized role string is refused."""
        assert has_permission("janitor", Permission.VIEW_CLASSES) is False

    def test_schedule_and_subject_management(self) -> None:
        """Test that timetable slots and subjects are managed by admins and principals."""
        for permission in (Permission.MANAGE_SCHEDULES, Permission.MANAGE_SUBJECTS):
            allowed = {r for r in Role if has_permission(r, permission)}

            assert allowed == {Role.ADMIN, Role.PRINCIPAL}

    def test_directories(self) -> None:
        """Test who may browse the people directories."""
        assert has_permission("teacher", Permission.VIEW_STUDENTS) is True
        assert has_permission("student", Permission.VIEW_TEACHERS) is False
        assert has_permission("teacher", Permission.VIEW_PRINCIPALS) is False
        assert has_permission("principal", Permission.VIEW_PRINCIPALS) is True
