"""Tests for account registration, login and guide promotion."""

from datetime import date
from unittest.mock import AsyncMock, patch
from uuid import UUID

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    CertificateAlreadyClaimedException,
    CertificateExpiredException,
    CertificateNotFoundException,
    EmailTakenException,
    MissingCertificateException,
)
from app.models import guide_profiles, system_events, users
from app.services.user_service import UserService


def register_payload(**overrides) -> dict:
    payload = {
        "name": "Fernanda Trilhas",
        "email": "fernanda@example.com",
        "password": "senha-forte-1",
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
class TestTrekkerRegistration:
    """Plain account registration."""

    async def test_register_trekker(self, client: AsyncClient, db_session: AsyncSession):
        response = await client.post("/api/v1/auth/register", json=register_payload())

        assert response.status_code == 201
        data = response.json()
        assert data["access_token"]
        assert data["refresh_token"]
        assert data["user"]["user_type"] == "trekker"
        assert data["user"]["role"] == "user"
        assert data["user"]["certificate_number"] is None

        events = (await db_session.execute(select(system_events.c.type))).scalars().all()
        assert "USER_REGISTERED" in events

    async def test_email_is_case_insensitive(self, client: AsyncClient, trekker):
        response = await client.post(
            "/api/v1/auth/register", json=register_payload(email="TREKKER@example.com")
        )

        assert response.status_code == 409
        assert response.json()["error"] == "EmailTakenException"

    async def test_short_password_rejected(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/register", json=register_payload(password="short")
        )
        assert response.status_code == 422


@pytest.mark.asyncio
class TestGuideRegistration:
    """Guide registration backed by the CADASTUR registry."""

    async def test_register_guide(
        self, client: AsyncClient, db_session: AsyncSession, registry_record
    ):
        response = await client.post(
            "/api/v1/auth/register",
            json=register_payload(user_type="guide", certificate_number=" 211 234 567 89 "),
        )

        assert response.status_code == 201
        user = response.json()["user"]
        assert user["user_type"] == "guide"
        assert user["certificate_number"] == "21123456789"
        assert user["certificate_validated"] is True

        result = await db_session.execute(
            select(guide_profiles).where(guide_profiles.c.user_id == UUID(user["id"]))
        )
        profile = result.mappings().first()
        assert profile["uf"] == "MG"
        assert profile["languages"] == ["Português", "Inglês"]
        assert profile["contact_phone"] == registry_record["phone"]

    async def test_guide_requires_certificate(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/register", json=register_payload(user_type="guide")
        )
        assert response.status_code == 422

    async def test_unknown_certificate(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/register/guide",
            json=register_payload(certificate_number="404404"),
        )

        assert response.status_code == 404
        assert response.json()["error"] == "CertificateNotFoundException"

    async def test_expired_certificate(self, client: AsyncClient, make_registry_record):
        await make_registry_record(certificate_number="EXP1", valid_until=date(2021, 12, 31))

        response = await client.post(
            "/api/v1/auth/register/guide", json=register_payload(certificate_number="exp1")
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "CertificateExpiredException"
        assert data["details"]["record"]["certificate_number"] == "EXP1"

    async def test_certificate_claimed_by_another_account(
        self, client: AsyncClient, make_user, registry_record
    ):
        await make_user(user_type="guide", certificate_number="21123456789")

        response = await client.post(
            "/api/v1/auth/register/guide",
            json=register_payload(certificate_number="21123456789"),
        )

        assert response.status_code == 409
        assert response.json()["error"] == "CertificateAlreadyClaimedException"


@pytest.mark.asyncio
class TestUserServiceRegistration:
    """Service-level registration errors."""

    async def test_missing_certificate(self, db_session: AsyncSession):
        with pytest.raises(MissingCertificateException):
            await UserService().register_guide(
                db_session, "Guia", "g@example.com", "senha-forte-1", "   "
            )

    async def test_claim_is_checked_before_registry(
        self, db_session: AsyncSession, make_user
    ):
        # Claimed but not in the registry: the claim wins
        await make_user(user_type="guide", certificate_number="ORPHAN1")

        with pytest.raises(CertificateAlreadyClaimedException):
            await UserService().register_guide(
                db_session, "Guia", "g@example.com", "senha-forte-1", "orphan1"
            )

    async def test_unique_index_reports_claim(
        self, db_session: AsyncSession, make_user, registry_record
    ):
        # Another account takes the certificate after both claim checks ran
        await make_user(user_type="guide", certificate_number="21123456789")

        with patch.object(UserService, "check_certificate_available", new=AsyncMock()):
            with pytest.raises(CertificateAlreadyClaimedException):
                await UserService().register_guide(
                    db_session, "Guia", "g@example.com", "senha-forte-1", "21123456789"
                )

        holders = await db_session.execute(
            select(func.count())
            .select_from(users)
            .where(users.c.certificate_number == "21123456789")
        )
        assert holders.scalar() == 1
        profiles = await db_session.execute(select(func.count()).select_from(guide_profiles))
        assert profiles.scalar() == 0

    async def test_not_found(self, db_session: AsyncSession):
        with pytest.raises(CertificateNotFoundException):
            await UserService().register_guide(
                db_session, "Guia", "g@example.com", "senha-forte-1", "NOPE"
            )

    async def test_email_taken(self, db_session: AsyncSession, trekker, registry_record):
        with pytest.raises(EmailTakenException):
            await UserService().register_guide(
                db_session, "Guia", trekker["email"], "senha-forte-1", "21123456789"
            )

    async def test_expired(self, db_session: AsyncSession, make_registry_record):
        await make_registry_record(certificate_number="EXP2", valid_until=date(2000, 1, 1))

        with pytest.raises(CertificateExpiredException):
            await UserService().register_guide(
                db_session, "Guia", "g@example.com", "senha-forte-1", "EXP2"
            )


@pytest.mark.asyncio
class TestLogin:
    """Email and password login."""

    async def test_login(self, client: AsyncClient, trekker, default_password):
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": trekker["email"], "password": default_password},
        )

        assert response.status_code == 200
        assert response.json()["user"]["id"] == str(trekker["id"])

    async def test_wrong_password_and_unknown_email_look_the_same(
        self, client: AsyncClient, trekker, default_password
    ):
        wrong = await client.post(
            "/api/v1/auth/login", json={"email": trekker["email"], "password": "nope-nope"}
        )
        unknown = await client.post(
            "/api/v1/auth/login",
            json={"email": "ghost@example.com", "password": default_password},
        )

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json()["message"] == unknown.json()["message"]

    async def test_refresh(self, client: AsyncClient, trekker, default_password):
        login = await client.post(
            "/api/v1/auth/login",
            json={"email": trekker["email"], "password": default_password},
        )

        response = await client.post(
            "/api/v1/auth/refresh", json={"refresh_token": login.json()["refresh_token"]}
        )

        assert response.status_code == 200
        assert response.json()["access_token"]

    async def test_refresh_rejects_access_token(
        self, client: AsyncClient, trekker, default_password
    ):
        login = await client.post(
            "/api/v1/auth/login",
            json={"email": trekker["email"], "password": default_password},
        )

        response = await client.post(
            "/api/v1/auth/refresh", json={"refresh_token": login.json()["access_token"]}
        )

        assert response.status_code == 401


@pytest.mark.asyncio
class TestProfile:
    """Own profile and guide promotion."""

    async def test_get_me(self, client: AsyncClient, auth_headers: dict, trekker):
        response = await client.get("/api/v1/users/me", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["email"] == trekker["email"]
        assert data["guide_profile"] is None

    async def test_requires_token(self, client: AsyncClient):
        response = await client.get("/api/v1/users/me")
        assert response.status_code in (401, 403)

    async def test_patch_cannot_change_certificate(
        self, client: AsyncClient, guide_headers: dict, guide
    ):
        response = await client.patch(
            "/api/v1/users/me",
            json={
                "bio": "Guia há 10 anos",
                "certificate_number": "HIJACK",
                "user_type": "trekker",
            },
            headers=guide_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["bio"] == "Guia há 10 anos"
        assert data["certificate_number"] == guide["certificate_number"]
        assert data["user_type"] == "guide"

    async def test_become_guide(
        self, client: AsyncClient, auth_headers: dict, db_session: AsyncSession, registry_record
    ):
        response = await client.post(
            "/api/v1/users/me/become-guide",
            json={"certificate_number": "21123456789"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["user_type"] == "guide"

        me = await client.get("/api/v1/users/me", headers=auth_headers)
        assert me.json()["guide_profile"]["certificate_number"] == "21123456789"

    async def test_become_guide_twice(
        self, client: AsyncClient, make_user, make_registry_record, headers_for
    ):
        await make_registry_record(certificate_number="GUIA0001")
        guide = await make_user(user_type="guide", certificate_number="GUIA0001")

        response = await client.post(
            "/api/v1/users/me/become-guide",
            json={"certificate_number": "GUIA0001"},
            headers=headers_for(guide),
        )

        assert response.status_code == 409

    async def test_become_guide_with_claimed_certificate(
        self, client: AsyncClient, auth_headers: dict, make_user, registry_record
    ):
        await make_user(user_type="guide", certificate_number="21123456789")

        response = await client.post(
            "/api/v1/users/me/become-guide",
            json={"certificate_number": "21123456789"},
            headers=auth_headers,
        )

        assert response.status_code == 409

    async def test_guide_profile_update_requires_guide(
        self, client: AsyncClient, auth_headers: dict
    ):
        response = await client.patch(
            "/api/v1/users/me/guide-profile", json={"city": "Lima Duarte"}, headers=auth_headers
        )
        assert response.status_code == 403
