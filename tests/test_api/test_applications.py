"""Application endpoint tests — apply, list, approve, reject."""

import uuid

from httpx import AsyncClient


async def _apply(client: AsyncClient, make_headers, student_id: str, bed_id: uuid.UUID):
    return await client.post(
        "/api/v1/applications",
        json={"bed_id": str(bed_id)},
        headers=make_headers(student_id, "student"),
    )


class TestCreateApplication:
    """Test POST /api/v1/applications."""

    async def test_student_applies(self, client: AsyncClient, make_headers, dorm):
        response = await _apply(client, make_headers, dorm.student_ids[0], dorm.bed_ids[0])

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["student_id"] == dorm.student_ids[0]
        assert data["bed_id"] == str(dorm.bed_ids[0])
        assert data["decided_at"] is None

    async def test_bed_taken(self, client: AsyncClient, make_headers, dorm):
        await _apply(client, make_headers, dorm.student_ids[0], dorm.bed_ids[0])

        response = await _apply(client, make_headers, dorm.student_ids[1], dorm.bed_ids[0])

        assert response.status_code == 409
        assert response.json() == {
            "detail": "This bed was just taken, please pick another",
            "code": "BED_NOT_AVAILABLE",
        }

    async def test_duplicate_pending(self, client: AsyncClient, make_headers, dorm):
        await _apply(client, make_headers, dorm.student_ids[0], dorm.bed_ids[0])

        response = await _apply(client, make_headers, dorm.student_ids[0], dorm.bed_ids[1])

        assert response.status_code == 409
        assert response.json()["code"] == "DUPLICATE_PENDING_APPLICATION"

    async def test_unknown_bed(self, client: AsyncClient, make_headers, dorm):
        response = await _apply(client, make_headers, dorm.student_ids[0], uuid.uuid4())
        assert response.status_code == 404
        assert response.json()["code"] == "BED_NOT_FOUND"

    async def test_manager_cannot_apply(self, client: AsyncClient, manager_headers, dorm):
        response = await client.post(
            "/api/v1/applications",
            json={"bed_id": str(dorm.bed_ids[0])},
            headers=manager_headers,
        )
        assert response.status_code == 403

    async def test_invalid_bed_id(self, client: AsyncClient, make_headers, dorm):
        response = await client.post(
            "/api/v1/applications",
            json={"bed_id": "not-a-uuid"},
            headers=make_headers(dorm.student_ids[0], "student"),
        )
        assert response.status_code == 422


class TestReadApplications:
    """Test GET endpoints."""

    async def test_list_with_status_filter(self, client: AsyncClient, make_headers, manager_headers, dorm):
        await _apply(client, make_headers, dorm.student_ids[0], dorm.bed_ids[0])
        await _apply(client, make_headers, dorm.student_ids[1], dorm.bed_ids[1])

        response = await client.get("/api/v1/applications", params={"status": "pending"}, headers=manager_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert {item["student_id"] for item in data["items"]} == set(dorm.student_ids[:2])

    async def test_pending_count(self, client: AsyncClient, make_headers, manager_headers, dorm):
        await _apply(client, make_headers, dorm.student_ids[0], dorm.bed_ids[0])

        response = await client.get("/api/v1/applications/pending-count", headers=manager_headers)

        assert response.json() == {"count": 1}

    async def test_student_reads_own_application(self, client: AsyncClient, make_headers, dorm):
        created = (await _apply(client, make_headers, dorm.student_ids[0], dorm.bed_ids[0])).json()

        own = await client.get(
            f"/api/v1/applications/{created['id']}",
            headers=make_headers(dorm.student_ids[0], "student"),
        )
        other = await client.get(
            f"/api/v1/applications/{created['id']}",
            headers=make_headers(dorm.student_ids[1], "student"),
        )

        assert own.status_code == 200
        assert own.json()["id"] == created["id"]
        assert other.status_code == 404
        assert other.json()["code"] == "APPLICATION_NOT_FOUND"

    async def test_student_cannot_list(self, client: AsyncClient, make_headers, dorm):
        response = await client.get("/api/v1/applications", headers=make_headers(dorm.student_ids[0], "student"))
        assert response.status_code == 403


class TestDecideApplication:
    """Test approve and reject."""

    async def test_approve(self, client: AsyncClient, make_headers, manager_headers, dorm):
        created = (await _apply(client, make_headers, dorm.student_ids[0], dorm.bed_ids[0])).json()

        response = await client.post(f"/api/v1/applications/{created['id']}/approve", headers=manager_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["student_id"] == dorm.student_ids[0]
        assert data["building_name"] == "North Hall"
        assert data["room_label"] == "101"
        assert data["bed_label"] == "1"
        assert data["application_id"] == created["id"]
        assert data["notification_status"] == "simulated"

        detail = await client.get(f"/api/v1/applications/{created['id']}", headers=manager_headers)
        assert detail.json()["status"] == "approved"
        assert detail.json()["decided_by"] == "mgr-001"

    async def test_approve_twice(self, client: AsyncClient, make_headers, manager_headers, dorm):
        created = (await _apply(client, make_headers, dorm.student_ids[0], dorm.bed_ids[0])).json()
        await client.post(f"/api/v1/applications/{created['id']}/approve", headers=manager_headers)

        response = await client.post(f"/api/v1/applications/{created['id']}/approve", headers=manager_headers)

        assert response.status_code == 400
        assert response.json()["code"] == "ALREADY_PROCESSED"

    async def test_approve_unknown(self, client: AsyncClient, manager_headers, dorm):
        response = await client.post(f"/api/v1/applications/{uuid.uuid4()}/approve", headers=manager_headers)
        assert response.status_code == 404

    async def test_student_cannot_approve(self, client: AsyncClient, make_headers, dorm):
        created = (await _apply(client, make_headers, dorm.student_ids[0], dorm.bed_ids[0])).json()

        response = await client.post(
            f"/api/v1/applications/{created['id']}/approve",
            headers=make_headers(dorm.student_ids[0], "student"),
        )

        assert response.status_code == 403

    async def test_reject_with_reason(self, client: AsyncClient, make_headers, manager_headers, dorm):
        created = (await _apply(client, make_headers, dorm.student_ids[0], dorm.bed_ids[0])).json()

        response = await client.post(
            f"/api/v1/applications/{created['id']}/reject",
            json={"reason": "Wrong building for your major"},
            headers=manager_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "rejected"
        assert data["rejection_reason"] == "Wrong building for your major"

        # Bed is free again
        retry = await _apply(client, make_headers, dorm.student_ids[1], dorm.bed_ids[0])
        assert retry.status_code == 201

    async def test_reject_without_body(self, client: AsyncClient, make_headers, manager_headers, dorm):
        created = (await _apply(client, make_headers, dorm.student_ids[0], dorm.bed_ids[0])).json()

        response = await client.post(f"/api/v1/applications/{created['id']}/reject", headers=manager_headers)

        assert response.status_code == 200
        assert response.json()["rejection_reason"] == "Application rejected by manager"
