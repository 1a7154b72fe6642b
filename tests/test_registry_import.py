"""Tests for the registry export import."""

from datetime import date
from unittest.mock import MagicMock

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.redis_client import CacheManager
from app.models import cadastur_registry
from app.services.registry_service import RegistryService, parse_registry_lines

HEADER = (
    "Atividade;UF;Município;Nome;Telefone;E-mail;Website;Número do Certificado;"
    "Validade do Certificado;Idiomas;Municípios de Atuação;Categorias;Segmentos;Guia Motorista"
)


def export_row(
    certificate="21.123",
    name="Lucia Pereira",
    uf="mg",
    valid_until="2028-05-29 10:49:49,387",
    languages="Português | Espanhol",
    email="LUCIA@EXAMPLE.COM",
    driver="1",
) -> str:
    return ";".join(
        [
            "Guia de Turismo",
            uf,
            "Ouro Preto",
            name,
            "-",
            email,
            "",
            certificate,
            valid_until,
            languages,
            "-",
            "Regional|Atrativo Natural",
            "",
            driver,
        ]
    )


class TestParseRegistryLines:
    """Row parsing rules."""

    def test_parses_fields(self):
        rows, result = parse_registry_lines([HEADER, export_row()])

        assert result.read == 1
        assert result.skipped == 0
        assert result.errored == 0
        row = rows["21.123"]
        assert row.full_name == "Lucia Pereira"
        assert row.uf == "MG"
        assert row.valid_until == date(2028, 5, 29)
        assert row.languages == ["Português", "Espanhol"]
        assert row.categories == ["Regional", "Atrativo Natural"]
        assert row.operating_cities is None
        assert row.segments is None
        assert row.phone is None
        assert row.website is None
        assert row.email == "lucia@example.com"
        assert row.is_driver_guide is True

    def test_header_and_blank_lines_are_ignored(self):
        rows, result = parse_registry_lines([HEADER, "", export_row(), ""])

        assert result.read == 1
        assert len(rows) == 1

    def test_short_rows_are_skipped(self):
        _, result = parse_registry_lines([HEADER, "Guia de Turismo;MG;Ouro Preto"])

        assert result.read == 1
        assert result.skipped == 1

    @pytest.mark.parametrize("certificate", ["", "  ", "-"])
    def test_rows_without_certificate_are_skipped(self, certificate):
        rows, result = parse_registry_lines([HEADER, export_row(certificate=certificate)])

        assert rows == {}
        assert result.skipped == 1

    def test_invalid_rows_are_counted_as_errored(self):
        lines = [HEADER, export_row(certificate="E1", uf="Minas"), export_row(certificate="E2")]

        rows, result = parse_registry_lines(lines)

        assert result.read == 2
        assert result.errored == 1
        assert list(rows) == ["E2"]

    def test_unparseable_date_becomes_null(self):
        rows, _ = parse_registry_lines([HEADER, export_row(valid_until="29/05/2028")])
        assert rows["21.123"].valid_until is None

    def test_driver_flag_only_for_one(self):
        rows, _ = parse_registry_lines([HEADER, export_row(driver="S")])
        assert rows["21.123"].is_driver_guide is False

    def test_duplicate_certificate_keeps_last_row(self):
        lines = [
            HEADER,
            export_row(certificate="D 1", name="First"),
            export_row(certificate="d1", name="Second"),
        ]

        rows, result = parse_registry_lines(lines)

        assert result.read == 2
        assert list(rows) == ["D1"]
        assert rows["D1"].full_name == "Second"


@pytest.mark.asyncio
class TestImportBatch:
    """Registry replacement."""

    async def _count(self, db_session: AsyncSession) -> int:
        result = await db_session.execute(select(func.count()).select_from(cadastur_registry))
        return result.scalar()

    async def test_import_replaces_registry(
        self, db_session: AsyncSession, make_registry_record
    ):
        await make_registry_record(certificate_number="STALE1")

        result = await RegistryService(db_session).import_batch(
            [HEADER, export_row(certificate="N1"), export_row(certificate="N2")]
        )

        assert result.imported == 2
        assert await self._count(db_session) == 2
        service = RegistryService(db_session)
        assert await service.lookup("STALE1") is None
        assert (await service.lookup("n1")).uf == "MG"

    async def test_import_counts(self, db_session: AsyncSession):
        lines = [
            HEADER,
            export_row(certificate="C1"),
            export_row(certificate="C1", name="Duplicate"),
            export_row(certificate="-"),
            export_row(certificate="C2", uf="XYZ"),
            "too;short",
        ]

        result = await RegistryService(db_session).import_batch(lines)

        assert result.read == 5
        assert result.imported == 1
        assert result.skipped == 2
        assert result.errored == 1

    async def test_dash_certificate_is_skipped(self, db_session: AsyncSession):
        result = await RegistryService(db_session).import_batch(
            [HEADER, export_row(certificate="OK1"), export_row(certificate="-")]
        )

        assert (result.imported, result.skipped, result.errored) == (1, 1, 0)

    async def test_import_clears_lookup_cache(self, db_session: AsyncSession):
        mock_redis = MagicMock()
        mock_redis.scan_iter.return_value = iter(["registry:N1", "registry:N2"])
        mock_redis.delete.return_value = 2

        await RegistryService(db_session, CacheManager(mock_redis)).import_batch(
            [HEADER, export_row(certificate="N1")]
        )

        mock_redis.scan_iter.assert_called_once_with(match="registry:*", count=500)
        mock_redis.delete.assert_called_once_with("registry:N1", "registry:N2")


@pytest.mark.asyncio
class TestImportEndpoint:
    """Admin import endpoint."""

    async def test_import_requires_admin(self, client: AsyncClient, auth_headers: dict):
        response = await client.post(
            "/api/v1/admin/registry/import",
            content="\n".join([HEADER, export_row()]).encode(),
            headers=auth_headers,
        )

        assert response.status_code == 403

    async def test_import_as_admin(self, client: AsyncClient, admin_headers: dict):
        body = "\n".join([HEADER, export_row(certificate="API1"), export_row(certificate="")])

        response = await client.post(
            "/api/v1/admin/registry/import",
            content=body.encode("utf-8"),
            headers={**admin_headers, "Content-Type": "text/csv"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["imported"] == 1
        assert data["skipped"] == 1

        stats = await client.get("/api/v1/admin/registry/stats", headers=admin_headers)
        assert stats.json()["total"] == 1

    async def test_import_empty_body(self, client: AsyncClient, admin_headers: dict):
        response = await client.post(
            "/api/v1/admin/registry/import", content=b"", headers=admin_headers
        )

        assert response.status_code == 400
