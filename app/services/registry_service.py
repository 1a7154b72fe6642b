"""CADASTUR registry service: lookup, validation and bulk import."""

import csv
import re
from collections.abc import Iterable
from datetime import UTC, date, datetime, time
from typing import Any

import structlog
from pydantic import ValidationError
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import (
    CertificateExpiredException,
    CertificateNotFoundException,
    MissingCertificateException,
)
from app.core.redis_client import CacheManager
from app.database import upsert
from app.models.registry import cadastur_registry
from app.schemas.registry import (
    RegistryImportResult,
    RegistryImportRow,
    RegistryRecord,
    RegistryStatsResponse,
    UFCount,
)

logger = structlog.get_logger(__name__)

# Registry export layout (semicolon separated, one header line)
REGISTRY_COLUMNS = (
    "activity_type",
    "uf",
    "city",
    "full_name",
    "phone",
    "email",
    "website",
    "certificate_number",
    "valid_until",
    "languages",
    "operating_cities",
    "categories",
    "segments",
    "is_driver_guide",
)

LIST_FIELDS = ("languages", "operating_cities", "categories", "segments")
CONTACT_FIELDS = ("activity_type", "city", "phone", "email", "website")

# Rows with a validation error that are logged individually
MAX_LOGGED_ERRORS = 10

_WHITESPACE = re.compile(r"\s+")
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def normalize_certificate_number(raw: str | None) -> str:
    """
    Normalize a certificate number for storage and comparison.

    Args:
        raw: Certificate number as typed or exported

    Returns:
        Certificate number without whitespace, upper-cased

    Raises:
        MissingCertificateException: If nothing remains after normalization
    """
    normalized = _WHITESPACE.sub("", raw or "").upper()
    if not normalized:
        raise MissingCertificateException()
    return normalized


def registry_expiry(valid_until: date) -> datetime:
    """Instant a certificate stops being valid: 00:00 UTC of its valid-until date."""
    return datetime.combine(valid_until, time.min, tzinfo=UTC)


def is_expired(record: RegistryRecord, now: datetime | None = None) -> bool:
    """Whether a record's validity has lapsed; no valid-until date never expires."""
    if record.valid_until is None:
        return False
    return registry_expiry(record.valid_until) < (now or datetime.now(UTC))


def _optional(value: str) -> str | None:
    value = value.strip()
    if not value or value == "-":
        return None
    return value


def _split_list(value: str) -> list[str] | None:
    if _optional(value) is None:
        return None
    items = [item.strip() for item in value.split("|")]
    return [item for item in items if item] or None


def _parse_valid_until(value: str) -> str | None:
    # Exported as "2028-05-29 10:49:49,387"; only the date part matters
    value = value.strip()
    if not value or value == "-":
        return None
    date_part = value.split(" ")[0]
    return date_part if _ISO_DATE.match(date_part) else None


def parse_registry_row(fields: list[str]) -> dict[str, Any]:
    """
    Map one registry export row to column values.

    Args:
        fields: Raw fields of a row with at least 14 columns

    Returns:
        Unvalidated column values
    """
    raw = dict(zip(REGISTRY_COLUMNS, fields, strict=False))
    row: dict[str, Any] = {
        "certificate_number": _WHITESPACE.sub("", raw["certificate_number"]).upper(),
        "full_name": raw["full_name"].strip(),
        "uf": raw["uf"].strip(),
        "valid_until": _parse_valid_until(raw["valid_until"]),
        "is_driver_guide": raw["is_driver_guide"].strip() == "1",
    }
    for field in CONTACT_FIELDS:
        row[field] = _optional(raw[field])
    if row["email"]:
        row["email"] = row["email"].lower()
    for field in LIST_FIELDS:
        row[field] = _split_list(raw[field])
    return row


def parse_registry_lines(
    lines: Iterable[str],
) -> tuple[dict[str, RegistryImportRow], RegistryImportResult]:
    """
    Parse a registry export.

    The first line is a header. Rows with fewer than 14 fields or without a
    certificate number are skipped. Rows that fail validation are counted as
    errored. Duplicate certificate numbers keep the last row.

    Args:
        lines: Lines of the export, header included

    Returns:
        Valid rows keyed by certificate number, and the counters so far
        (``imported`` is left at zero)
    """
    result = RegistryImportResult()
    rows: dict[str, RegistryImportRow] = {}

    reader = csv.reader(lines, delimiter=";", quoting=csv.QUOTE_NONE)
    for line_number, fields in enumerate(reader, start=1):
        if line_number == 1:
            continue
        if not fields:
            continue

        result.read += 1

        if len(fields) < len(REGISTRY_COLUMNS):
            result.skipped += 1
            continue

        certificate = fields[7].strip()
        if not certificate or certificate == "-":
            result.skipped += 1
            continue

        try:
            row = RegistryImportRow.model_validate(parse_registry_row(fields))
        except ValidationError as e:
            result.errored += 1
            if result.errored <= MAX_LOGGED_ERRORS:
                logger.warning(
                    "registry_row_invalid",
                    line=line_number,
                    certificate_number=certificate,
                    errors=e.errors(include_url=False, include_input=False),
                )
            continue

        rows[row.certificate_number] = row

    return rows, result


class RegistryService:
    """Service for the CADASTUR registry."""

    CACHE_PREFIX = "registry:"

    def __init__(self, db: AsyncSession, cache_manager: CacheManager | None = None):
        """Initialize service with database session and optional cache."""
        self.db = db
        self.cache = cache_manager

    @classmethod
    def _cache_key(cls, certificate_number: str) -> str:
        return f"{cls.CACHE_PREFIX}{certificate_number}"

    async def lookup(self, certificate_number: str) -> RegistryRecord | None:
        """
        Find a registry record by certificate number.

        Args:
            certificate_number: Raw certificate number

        Returns:
            Registry record, or None if the number is not registered
        """
        normalized = normalize_certificate_number(certificate_number)

        if self.cache:
            cached = self.cache.get_json(self._cache_key(normalized))
            if cached:
                return RegistryRecord.model_validate(cached)

        stmt = select(cadastur_registry).where(
            cadastur_registry.c.certificate_number == normalized
        )
        result = await self.db.execute(stmt)
        row = result.fetchone()
        if not row:
            return None

        record = RegistryRecord.model_validate(dict(row._mapping))

        if self.cache:
            self.cache.set_json(
                self._cache_key(normalized),
                record.model_dump(mode="json"),
                ttl=settings.registry_cache_ttl_seconds,
            )

        return record

    async def validate(
        self, certificate_number: str, now: datetime | None = None
    ) -> RegistryRecord:
        """
        Validate that a certificate exists and has not expired.

        Whether an account already holds the certificate is not checked here.

        Args:
            certificate_number: Raw certificate number
            now: Reference instant (defaults to current time)

        Returns:
            Registry record

        Raises:
            MissingCertificateException: If the number is empty
            CertificateNotFoundException: If the number is not registered
            CertificateExpiredException: If the certificate has expired
        """
        record = await self.lookup(certificate_number)
        if record is None:
            raise CertificateNotFoundException()

        if is_expired(record, now):
            raise CertificateExpiredException(record.model_dump(mode="json"))

        return record

    async def import_batch(self, lines: Iterable[str]) -> RegistryImportResult:
        """
        Replace the registry with the contents of an export.

        Old contents are deleted and the new rows written in the same
        transaction, so readers see either the previous registry or the new
        one. Database failures roll back and propagate.

        Args:
            lines: Lines of the export, header included

        Returns:
            Import counters
        """
        rows, result = parse_registry_lines(lines)
        values = [row.model_dump() for row in rows.values()]

        stmt = upsert(self.db, cadastur_registry)
        stmt = stmt.on_conflict_do_update(
            index_elements=[cadastur_registry.c.certificate_number],
            set_={
                **{
                    column: stmt.excluded[column]
                    for column in REGISTRY_COLUMNS
                    if column != "certificate_number"
                },
                "updated_at": func.now(),
            },
        )

        chunk_size = settings.registry_import_chunk_size
        try:
            await self.db.execute(delete(cadastur_registry))
            for start in range(0, len(values), chunk_size):
                await self.db.execute(stmt, values[start : start + chunk_size])
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.exception("registry_import_failed", rows=len(values))
            raise

        result.imported = len(values)

        if self.cache:
            self.cache.delete_pattern(f"{self.CACHE_PREFIX}*")

        logger.info(
            "registry_import_completed",
            read=result.read,
            imported=result.imported,
            skipped=result.skipped,
            errored=result.errored,
        )
        return result

    async def search_by_name(self, name: str, limit: int = 20) -> list[RegistryRecord]:
        """Find registry records whose name contains the given text."""
        stmt = (
            select(cadastur_registry)
            .where(cadastur_registry.c.full_name.ilike(f"%{name.strip()}%"))
            .order_by(cadastur_registry.c.full_name)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return [RegistryRecord.model_validate(dict(row._mapping)) for row in result.fetchall()]

    async def list_by_uf(self, uf: str, page: int = 1, page_size: int = 20) -> list[RegistryRecord]:
        """List registry records of one state, ordered by name."""
        stmt = (
            select(cadastur_registry)
            .where(cadastur_registry.c.uf == uf.upper())
            .order_by(cadastur_registry.c.full_name, cadastur_registry.c.id)
            .limit(page_size)
            .offset((page - 1) * page_size)
        )
        result = await self.db.execute(stmt)
        return [RegistryRecord.model_validate(dict(row._mapping)) for row in result.fetchall()]

    async def stats(self) -> RegistryStatsResponse:
        """Registry size overall and per state."""
        stmt = (
            select(cadastur_registry.c.uf, func.count().label("entries"))
            .group_by(cadastur_registry.c.uf)
            .order_by(func.count().desc(), cadastur_registry.c.uf)
        )
        result = await self.db.execute(stmt)
        by_uf = [UFCount(uf=row.uf, count=row.entries) for row in result.fetchall()]
        return RegistryStatsResponse(total=sum(item.count for item in by_uf), by_uf=by_uf)
