"""Enrollment service: capacity-bounded enroll and cancel."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import and_, exists, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenException, NotFoundException
from app.core.permissions import can_manage_expedition
from app.database import upsert
from app.models.expedition_participants import expedition_participants
from app.models.expeditions import expeditions
from app.models.users import users
from app.schemas.admin import EventType
from app.schemas.enrollment import (
    EnrollmentFailure,
    EnrollmentResult,
    ParticipantResponse,
    ParticipantStatus,
)
from app.schemas.expeditions import OPEN_STATUSES
from app.services.event_service import EventService

logger = structlog.get_logger(__name__)

CANCELLED = ParticipantStatus.CANCELLED.value
CONFIRMED = ParticipantStatus.CONFIRMED.value


class EnrollmentService:
    """
    Service for expedition enrollment.

    ``enrolled_count`` is only ever changed here, by conditional UPDATE
    statements that re-check capacity and status in the database, so
    concurrent requests cannot overbook an expedition.
    """

    # Attempts when a failed conditional update finds no reason on re-read
    MAX_ENROLL_ATTEMPTS = 3

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    @staticmethod
    def _active_participation(expedition_id: UUID, user_id: UUID) -> Any:
        return and_(
            expedition_participants.c.expedition_id == expedition_id,
            expedition_participants.c.user_id == user_id,
            expedition_participants.c.status != CANCELLED,
        )

    async def _reserve_spot(self, expedition_id: UUID, user_id: UUID) -> bool:
        """Increment enrolled_count if the expedition can take this user."""
        stmt = (
            update(expeditions)
            .where(
                and_(
                    expeditions.c.id == expedition_id,
                    expeditions.c.status.in_(OPEN_STATUSES),
                    expeditions.c.enrolled_count < expeditions.c.capacity,
                    ~exists().where(self._active_participation(expedition_id, user_id)),
                )
            )
            .values(
                enrolled_count=expeditions.c.enrolled_count + 1,
                updated_at=datetime.now(UTC),
            )
        )
        result = await self.db.execute(stmt)
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def _activate_participant(self, expedition_id: UUID, user_id: UUID) -> bool:
        """Insert the participant row, or re-activate a cancelled one."""
        now = datetime.now(UTC)
        stmt = upsert(self.db, expedition_participants).values(
            expedition_id=expedition_id,
            user_id=user_id,
            status=CONFIRMED,
            enrolled_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[
                expedition_participants.c.expedition_id,
                expedition_participants.c.user_id,
            ],
            set_={
                "status": CONFIRMED,
                "enrolled_at": now,
                "cancelled_at": None,
                "updated_at": now,
            },
            where=expedition_participants.c.status == CANCELLED,
        ).returning(expedition_participants.c.id)

        result = await self.db.execute(stmt)
        return result.first() is not None

    async def _diagnose(self, expedition_id: UUID, user_id: UUID) -> EnrollmentFailure | None:
        """Explain why an enrollment could not happen, from a fresh read."""
        result = await self.db.execute(
            select(
                expeditions.c.status,
                expeditions.c.capacity,
                expeditions.c.enrolled_count,
            ).where(expeditions.c.id == expedition_id)
        )
        expedition = result.fetchone()

        if not expedition:
            return EnrollmentFailure.NOT_FOUND
        if expedition.status not in OPEN_STATUSES:
            return EnrollmentFailure.NOT_OPEN
        if expedition.enrolled_count >= expedition.capacity:
            return EnrollmentFailure.FULL
        if await self.is_enrolled(expedition_id, user_id):
            return EnrollmentFailure.ALREADY_ENROLLED
        return None

    async def enroll(self, expedition_id: UUID, user_id: UUID | str) -> EnrollmentResult:
        """
        Enroll a user in an expedition.

        Failures are checked in order: not found, not open, full, already
        enrolled. Counter increment and participant row are written in one
        transaction.

        Args:
            expedition_id: Expedition ID
            user_id: Enrolling account ID

        Returns:
            Enrollment result
        """
        user_id = UUID(str(user_id))

        for attempt in range(1, self.MAX_ENROLL_ATTEMPTS + 1):
            try:
                reserved = await self._reserve_spot(expedition_id, user_id)
                if reserved:
                    if not await self._activate_participant(expedition_id, user_id):
                        # Same user enrolled concurrently between our check and insert
                        await self.db.rollback()
                        return self._failure(
                            EnrollmentFailure.ALREADY_ENROLLED, expedition_id, user_id
                        )
                    await self.db.commit()
                else:
                    await self.db.rollback()
            except Exception:
                await self.db.rollback()
                raise

            if reserved:
                logger.info(
                    "enrollment_confirmed",
                    expedition_id=str(expedition_id),
                    user_id=str(user_id),
                )
                await EventService(self.db).record(
                    EventType.EXPEDITION_ENROLLMENT,
                    "Trekker enrolled in expedition",
                    actor_id=user_id,
                    metadata={"expedition_id": str(expedition_id)},
                )
                return EnrollmentResult.ok()

            reason = await self._diagnose(expedition_id, user_id)
            if reason is not None:
                return self._failure(reason, expedition_id, user_id)

            logger.info("enrollment_retry", expedition_id=str(expedition_id), attempt=attempt)

        # Kept losing the race without a stable reason; treat as full
        return self._failure(EnrollmentFailure.FULL, expedition_id, user_id)

    async def cancel(self, expedition_id: UUID, user_id: UUID | str) -> EnrollmentResult:
        """
        Cancel a user's enrollment.

        Args:
            expedition_id: Expedition ID
            user_id: Account ID

        Returns:
            Enrollment result; ``not_enrolled`` if there is no active enrollment
        """
        user_id = UUID(str(user_id))
        now = datetime.now(UTC)

        try:
            result = await self.db.execute(
                update(expedition_participants)
                .where(self._active_participation(expedition_id, user_id))
                .values(status=CANCELLED, cancelled_at=now, updated_at=now)
            )
            if result.rowcount == 0:  # type: ignore[attr-defined]
                await self.db.rollback()
                return self._failure(EnrollmentFailure.NOT_ENROLLED, expedition_id, user_id)

            await self.db.execute(
                update(expeditions)
                .where(and_(expeditions.c.id == expedition_id, expeditions.c.enrolled_count > 0))
                .values(enrolled_count=expeditions.c.enrolled_count - 1, updated_at=now)
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("enrollment_cancelled", expedition_id=str(expedition_id), user_id=str(user_id))
        await EventService(self.db).record(
            EventType.EXPEDITION_ENROLLMENT_CANCELLED,
            "Trekker cancelled expedition enrollment",
            actor_id=user_id,
            metadata={"expedition_id": str(expedition_id)},
        )
        return EnrollmentResult.ok()

    async def is_enrolled(self, expedition_id: UUID, user_id: UUID | str) -> bool:
        """Whether the user holds an active enrollment."""
        stmt = select(expedition_participants.c.id).where(
            self._active_participation(expedition_id, UUID(str(user_id)))
        )
        result = await self.db.execute(stmt)
        return result.first() is not None

    async def list_participants(
        self, expedition_id: UUID, requester: dict[str, Any]
    ) -> list[ParticipantResponse]:
        """
        List active participants with their display fields.

        Args:
            expedition_id: Expedition ID
            requester: Requesting account

        Returns:
            Participants ordered by enrollment time

        Raises:
            NotFoundException: If the expedition does not exist
            ForbiddenException: If requester is neither the guide nor an admin
        """
        result = await self.db.execute(
            select(expeditions.c.id, expeditions.c.guide_id).where(
                expeditions.c.id == expedition_id
            )
        )
        expedition = result.fetchone()
        if not expedition:
            raise NotFoundException("Expedition not found")

        if not can_manage_expedition(requester, dict(expedition._mapping)):
            raise ForbiddenException("Only the expedition guide can view participants")

        stmt = (
            select(
                expedition_participants.c.id,
                expedition_participants.c.user_id,
                expedition_participants.c.status,
                expedition_participants.c.enrolled_at,
                users.c.name,
                users.c.email,
                users.c.photo_url,
            )
            .select_from(
                expedition_participants.join(users, users.c.id == expedition_participants.c.user_id)
            )
            .where(
                and_(
                    expedition_participants.c.expedition_id == expedition_id,
                    expedition_participants.c.status != CANCELLED,
                )
            )
            .order_by(expedition_participants.c.enrolled_at, expedition_participants.c.id)
        )
        result = await self.db.execute(stmt)
        return [ParticipantResponse.model_validate(dict(row._mapping)) for row in result.fetchall()]

    @staticmethod
    def _failure(
        reason: EnrollmentFailure, expedition_id: UUID, user_id: UUID
    ) -> EnrollmentResult:
        logger.info(
            "enrollment_rejected",
            reason=reason.value,
            expedition_id=str(expedition_id),
            user_id=str(user_id),
        )
        return EnrollmentResult.fail(reason)
