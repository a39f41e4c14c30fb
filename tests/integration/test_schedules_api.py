# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for Schedules API endpoints."""

import pytest

URL = "/api/v1/schedules"


def slot_body(seeded, **overrides) -> dict:
    body = {
        "class_id": seeded.class_a,
        "teacher_id": seeded.teacher_a_user,
        "subject_id": seeded.physics_a,
        "day_of_week": "Wednesday",
        "start_time": "10:00",
        "end_time": "11:00",
    }
    body.update(overrides)
    return body


async def seeded_slot_id(client, headers) -> int:
    response = await client.get(URL, headers=headers)
    return response.json()["data"]["items"][0]["id"]


@pytest.mark.integration
class TestSchedulesAPI:
    """Tests for timetable slot endpoints."""

    @pytest.mark.asyncio
    async def test_list(self, client, auth_headers, seeded) -> None:
        response = await client.get(URL, headers=auth_headers(seeded.student_a2_user, "student"))

        assert response.status_code == 200
        items = response.json()["data"]["items"]
        assert [(s["class_name"], s["day_of_week"], s["start_time"]) for s in items] == [
            ("10A", "Monday", "08:00:00")
        ]

    @pytest.mark.asyncio
    async def test_create(self, client, auth_headers, seeded) -> None:
        headers = auth_headers(seeded.principal_a_user, "principal")

        response = await client.post(URL, json=slot_body(seeded), headers=headers)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["subject_name"] == "Physics"
        assert data["teacher_id"] == seeded.teacher_a_user
        listing = await client.get(URL, headers=headers)
        assert [s["day_of_week"] for s in listing.json()["data"]["items"]] == [
            "Monday",
            "Wednesday",
        ]

    @pytest.mark.asyncio
    async def test_other_school_teacher_rejected(self, client, auth_headers, seeded) -> None:
        response = await client.post(
            URL,
            json=slot_body(seeded, teacher_id=seeded.teacher_b_user),
            headers=auth_headers(seeded.admin_user, "admin"),
        )

        assert response.status_code == 400
        assert "another school" in str(response.json()["error"]["details"])

    @pytest.mark.asyncio
    async def test_teacher_cannot_manage(self, client, auth_headers, seeded) -> None:
        response = await client.post(
            URL, json=slot_body(seeded), headers=auth_headers(seeded.teacher_a_user, "teacher")
        )

        assert response.status_code == 403
        assert "permission" in response.json()["error"]["message"]

    @pytest.mark.asyncio
    async def test_update_and_delete(self, client, auth_headers, seeded) -> None:
        headers = auth_headers(seeded.principal_a_user, "principal")
        slot_id = await seeded_slot_id(client, headers)

        updated = await client.put(
            f"{URL}/{slot_id}", json={"start_time": "08:30"}, headers=headers
        )
        deleted = await client.delete(f"{URL}/{slot_id}", headers=headers)

        assert updated.status_code == 200
        assert updated.json()["data"]["start_time"] == "08:30:00"
        assert deleted.status_code == 204
        assert (await client.get(URL, headers=headers)).json()["data"]["total"] == 0

    @pytest.mark.asyncio
    async def test_inverted_update_rejected(self, client, auth_headers, seeded) -> None:
        headers = auth_headers(seeded.principal_a_user, "principal")
        slot_id = await seeded_slot_id(client, headers)

        response = await client.put(
            f"{URL}/{slot_id}", json={"end_time": "07:00"}, headers=headers
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_and_foreign_look_alike(self, client, auth_headers, seeded) -> None:
        slot_id = await seeded_slot_id(client, auth_headers(seeded.admin_user, "admin"))
        headers = auth_headers(seeded.principal_b_user, "principal")

        foreign = await client.get(f"{URL}/{slot_id}", headers=headers)
        missing = await client.get(f"{URL}/99999", headers=headers)

        assert foreign.status_code == missing.status_code == 403
        assert foreign.json() == missing.json()
