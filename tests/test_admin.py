"""Tests for admin endpoints."""

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.models import expeditions
from app.schemas.admin import EventSeverity, EventType
from app.schemas.expeditions import AdminExpeditionUpdate, ExpeditionStatus
from app.services.enrollment_service import EnrollmentService
from app.services.event_service import EventService
from app.services.expedition_service import ExpeditionService


@pytest.mark.asyncio
class TestAdminMetrics:
    """Dashboard counters."""

    async def test_metrics(
        self,
        client: AsyncClient,
        admin_headers: dict,
        db_session: AsyncSession,
        make_expedition,
        trekker,
    ):
        open_one = await make_expedition(status="published")
        await make_expedition(status="draft")
        await make_expedition(status="completed", price=Decimal("200.00"))
        await make_expedition(status="completed", price=Decimal("150.50"))
        await make_expedition(status="completed", price=None)
        await EnrollmentService(db_session).enroll(open_one["id"], trekker["id"])

        response = await client.get("/api/v1/admin/metrics", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total_trails"] == 1
        assert data["open_expeditions"] == 1
        assert data["draft_expeditions"] == 1
        assert data["total_guides"] == 1
        assert data["active_reservations"] == 1
        assert Decimal(str(data["revenue"])) == Decimal("350.50")

    async def test_metrics_empty(self, client: AsyncClient, admin_headers: dict):
        response = await client.get("/api/v1/admin/metrics", headers=admin_headers)

        assert response.status_code == 200
        assert Decimal(str(response.json()["revenue"])) == Decimal("0")

    async def test_metrics_unauthorized(self, client: AsyncClient, auth_headers: dict):
        response = await client.get("/api/v1/admin/metrics", headers=auth_headers)
        assert response.status_code == 403


@pytest.mark.asyncio
class TestAdminEvents:
    """System event feed."""

    async def test_events_newest_first(
        self, client: AsyncClient, admin_headers: dict, db_session: AsyncSession, admin
    ):
        events = EventService(db_session)
        await events.record(EventType.TRAIL_CREATED, "first", actor_id=admin["id"])
        await events.record(
            EventType.EXPEDITION_DELETED, "second", severity=EventSeverity.WARNING
        )

        response = await client.get(
            "/api/v1/admin/events", params={"limit": 10}, headers=admin_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert {event["message"] for event in data} == {"first", "second"}
        severities = {event["message"]: event["severity"] for event in data}
        assert severities == {"first": "info", "second": "warning"}

    async def test_events_limit(
        self, client: AsyncClient, admin_headers: dict, db_session: AsyncSession
    ):
        events = EventService(db_session)
        for i in range(5):
            await events.record(EventType.TRAIL_CREATED, f"event {i}")

        response = await client.get(
            "/api/v1/admin/events", params={"limit": 3}, headers=admin_headers
        )

        assert len(response.json()) == 3

    async def test_events_unauthorized(self, client: AsyncClient, guide_headers: dict):
        response = await client.get("/api/v1/admin/events", headers=guide_headers)
        assert response.status_code == 403


@pytest.mark.asyncio
class TestAdminExpeditions:
    """Expedition moderation."""

    async def test_list_all_statuses(
        self, client: AsyncClient, admin_headers: dict, make_expedition, trail, guide
    ):
        await make_expedition(status="draft")
        await make_expedition(status="cancelled")

        response = await client.get("/api/v1/admin/expeditions", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["total_pages"] == 1
        assert {item["trail_name"] for item in data["expeditions"]} == {trail["name"]}
        assert {item["guide_name"] for item in data["expeditions"]} == {guide["name"]}

    async def test_complete_expedition(
        self, client: AsyncClient, admin_headers: dict, expedition
    ):
        response = await client.patch(
            f"/api/v1/admin/expeditions/{expedition['id']}",
            json={"status": "completed"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "completed"

        events = await client.get("/api/v1/admin/events", headers=admin_headers)
        assert "EXPEDITION_UPDATED" in {event["type"] for event in events.json()}

    async def test_status_change_on_vanished_expedition(
        self, db_session: AsyncSession, admin, expedition
    ):
        service = ExpeditionService(db_session)
        # Deleted after the existence check but before the update
        stale_row = SimpleNamespace(status="published")
        await db_session.execute(delete(expeditions).where(expeditions.c.id == expedition["id"]))
        await db_session.commit()

        with patch.object(service, "_get_row", new=AsyncMock(return_value=stale_row)):
            with pytest.raises(NotFoundException):
                await service.admin_update_status(
                    expedition["id"],
                    admin,
                    AdminExpeditionUpdate(status=ExpeditionStatus.COMPLETED),
                )

        assert await EventService(db_session).list_recent() == []

    async def test_status_must_be_settable(
        self, client: AsyncClient, admin_headers: dict, expedition
    ):
        response = await client.patch(
            f"/api/v1/admin/expeditions/{expedition['id']}",
            json={"status": "full"},
            headers=admin_headers,
        )
        assert response.status_code == 422

    async def test_delete_expedition(
        self, client: AsyncClient, admin_headers: dict, expedition
    ):
        response = await client.delete(
            f"/api/v1/admin/expeditions/{expedition['id']}", headers=admin_headers
        )

        assert response.status_code == 204
        assert (await client.get(f"/api/v1/expeditions/{expedition['id']}")).status_code == 404

    async def test_guide_cannot_moderate(
        self, client: AsyncClient, guide_headers: dict, expedition
    ):
        response = await client.patch(
            f"/api/v1/admin/expeditions/{expedition['id']}",
            json={"status": "cancelled"},
            headers=guide_headers,
        )
        assert response.status_code == 403


@pytest.mark.asyncio
class TestAdminTrails:
    """Trail catalogue management."""

    async def test_create_trail(self, client: AsyncClient, admin_headers: dict):
        response = await client.post(
            "/api/v1/admin/trails",
            json={
                "name": "Pedra do Baú",
                "uf": "sp",
                "city": "São Bento do Sapucaí",
                "distance_km": "4.2",
                "difficulty": "moderate",
            },
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["uf"] == "SP"

        ufs = await client.get("/api/v1/trails/ufs")
        assert ufs.json() == ["SP"]

    async def test_create_trail_unauthorized(self, client: AsyncClient, auth_headers: dict):
        response = await client.post(
            "/api/v1/admin/trails", json={"name": "X", "uf": "SP"}, headers=auth_headers
        )
        assert response.status_code == 403
