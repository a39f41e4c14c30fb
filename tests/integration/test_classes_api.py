# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for Classes API endpoints."""

import pytest

URL = "/api/v1/classes"


@pytest.mark.integration
class TestClassesListAPI:
    """Tests for class listings."""

    @pytest.mark.asyncio
    async def test_page_envelope(self, client, auth_headers, seeded) -> None:
        """Test the paged success envelope."""
        response = await client.get(
            URL, params={"limit": 1}, headers=auth_headers(seeded.admin_user, "admin")
        )

        assert response.status_code == 200
        payload = response.json()
        assert payload["success"] is True
        assert payload["data"]["total"] == 2
        assert payload["data"]["page"] == 1
        assert payload["data"]["limit"] == 1
        assert [c["name"] for c in payload["data"]["items"]] == ["10A"]

    @pytest.mark.asyncio
    async def test_principal_cannot_see_other_school(self, client, auth_headers, seeded) -> None:
        """Test that school_id cannot widen a principal's listing."""
        response = await client.get(
            URL,
            params={"school_id": seeded.school_a},
            headers=auth_headers(seeded.principal_b_user, "principal"),
        )

        assert [c["id"] for c in response.json()["data"]["items"]] == [seeded.class_b]

    @pytest.mark.asyncio
    async def test_sort_injection_ignored(self, client, auth_headers, seeded) -> None:
        """Test that a hostile sort_by falls back to the default order."""
        response = await client.get(
            URL,
            params={"sort_by": "name; DROP TABLE classes", "order": "desc"},
            headers=auth_headers(seeded.admin_user, "admin"),
        )

        assert response.status_code == 200
        assert response.json()["data"]["total"] == 2
        assert [c["name"] for c in response.json()["data"]["items"]] == ["10A", "11B"]

    @pytest.mark.asyncio
    async def test_missing_and_foreign_class_look_alike(self, client, auth_headers, seeded) -> None:
        """Test that a principal gets the same answer for a missing and a foreign class."""
        headers = auth_headers(seeded.principal_a_user, "principal")

        foreign = await client.get(f"{URL}/{seeded.class_b}", headers=headers)
        missing = await client.get(f"{URL}/99999", headers=headers)

        assert foreign.status_code == missing.status_code == 403
        assert foreign.json() == missing.json()

    @pytest.mark.asyncio
    async def test_my_classes(self, client, auth_headers, seeded) -> None:
        """Test /classes/mine for a student."""
        response = await client.get(
            f"{URL}/mine", headers=auth_headers(seeded.student_a2_user, "student")
        )

        assert response.status_code == 200
        assert [c["name"] for c in response.json()["data"]] == ["10A"]


@pytest.mark.integration
class TestClassesWriteAPI:
    """Tests for class writes."""

    @pytest.mark.asyncio
    async def test_create_class(self, client, auth_headers, seeded) -> None:
        """Test creating a class with a schedule."""
        response = await client.post(
            URL,
            json={
                "name": "9C",
                "academic_year": "2024-2025",
                "schedules": [
                    {
                        "subject_id": seeded.physics_a,
                        "teacher_id": seeded.teacher_a_user,
                        "day_of_week": "Friday",
                        "start_time": "10:00:00",
                        "end_time": "11:00:00",
                    }
                ],
            },
            headers=auth_headers(seeded.principal_a_user, "principal"),
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["school_id"] == seeded.school_a
        assert data["schedules"][0]["teacher_name"] == "Tom Baker"
        assert data["schedules"][0]["start_time"] == "10:00:00"

    @pytest.mark.asyncio
    async def test_schedule_end_before_start(self, client, auth_headers, seeded) -> None:
        """Test that an inverted schedule slot is a 400."""
        response = await client.post(
            URL,
            json={
                "name": "9C",
                "academic_year": "2024-2025",
                "schedules": [
                    {
                        "subject_id": seeded.physics_a,
                        "teacher_id": seeded.teacher_a_user,
                        "day_of_week": "Friday",
                        "start_time": "11:00:00",
                        "end_time": "10:00:00",
                    }
                ],
            },
            headers=auth_headers(seeded.principal_a_user, "principal"),
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, client, auth_headers, seeded) -> None:
        """Test that whitespace-only names and years are a 400."""
        headers = auth_headers(seeded.principal_a_user, "principal")

        created = await client.post(
            URL, json={"name": "   ", "academic_year": "2024-2025"}, headers=headers
        )
        updated = await client.put(
            f"{URL}/{seeded.class_a}", json={"academic_year": " \t "}, headers=headers
        )
        listing = await client.get(URL, headers=headers)

        assert created.status_code == 400
        assert updated.status_code == 400
        assert [c["name"] for c in listing.json()["data"]["items"]] == ["10A"]
        assert listing.json()["data"]["items"][0]["academic_year"] == "2024-2025"

    @pytest.mark.asyncio
    async def test_student_cannot_create(self, client, auth_headers, seeded) -> None:
        """Test that students lack the permission."""
        response = await client.post(
            URL,
            json={"name": "9C", "academic_year": "2024-2025"},
            headers=auth_headers(seeded.student_a1_user, "student"),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_update_class(self, client, auth_headers, seeded) -> None:
        """Test a partial update."""
        response = await client.put(
            f"{URL}/{seeded.class_a}",
            json={"name": "10A Science"},
            headers=auth_headers(seeded.teacher_a_user, "teacher"),
        )

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "10A Science"

    @pytest.mark.asyncio
    async def test_delete_then_missing(self, client, auth_headers, seeded) -> None:
        """Test deleting a class and the 404 envelope an admin gets afterwards."""
        headers = auth_headers(seeded.admin_user, "admin")

        deleted = await client.delete(f"{URL}/{seeded.class_a}", headers=headers)
        missing = await client.get(f"{URL}/{seeded.class_a}", headers=headers)

        assert deleted.status_code == 204
        assert deleted.content == b""
        assert missing.status_code == 404
        assert missing.json() == {"success": False, "error": {"message": "Class not found."}}

    @pytest.mark.asyncio
    async def test_teacher_cannot_delete(self, client, auth_headers, seeded) -> None:
        """Test that deleting classes is reserved to admins and principals."""
        response = await client.delete(
            f"{URL}/{seeded.class_a}", headers=auth_headers(seeded.teacher_a_user, "teacher")
        )

        assert response.status_code == 403


@pytest.mark.integration
class TestClassStudentsAPI:
    """Tests for enrollment endpoints."""

    @pytest.mark.asyncio
    async def test_assign_and_conflict(self, client, auth_headers, seeded) -> None:
        """Test enrolling a student and the 409 on a repeat."""
        headers = auth_headers(seeded.principal_a_user, "principal")
        url = f"{URL}/{seeded.class_a}/students"

        first = await client.post(url, json={"student_id": seeded.student_a3_user}, headers=headers)
        again = await client.post(url, json={"student_id": seeded.student_a3_user}, headers=headers)

        assert first.status_code == 201
        assert first.json()["data"]["student_id"] == seeded.student_a3
        assert again.status_code == 409
        assert again.json() == {
            "success": False,
            "error": {"message": "This student is already in the class."},
        }

    @pytest.mark.asyncio
    async def test_assign_other_school_student(self, client, auth_headers, seeded) -> None:
        """Test that a student of another school is refused."""
        response = await client.post(
            f"{URL}/{seeded.class_a}/students",
            json={"student_id": seeded.student_b1_user},
            headers=auth_headers(seeded.admin_user, "admin"),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_remove_student(self, client, auth_headers, seeded) -> None:
        """Test removal and the 404 for a second removal."""
        headers = auth_headers(seeded.teacher_a_user, "teacher")
        url = f"{URL}/{seeded.class_a}/students/{seeded.student_a1_user}"

        removed = await client.delete(url, headers=headers)
        again = await client.delete(url, headers=headers)

        assert removed.status_code == 204
        assert again.status_code == 404
