"""System event recording for the admin audit trail."""

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.system_events import system_events
from app.schemas.admin import EventSeverity, EventType, SystemEventResponse

logger = structlog.get_logger(__name__)


class EventService:
    """Service for recording and listing system events."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def record(
        self,
        event_type: EventType,
        message: str,
        actor_id: UUID | str | None = None,
        metadata: dict[str, Any] | None = None,
        severity: EventSeverity = EventSeverity.INFO,
    ) -> None:
        """
        Record an event in its own small transaction.

        Events are informational. A failure is logged and never propagated to
        the operation that triggered it.

        Args:
            event_type: Event type
            message: Human readable description
            actor_id: Account that caused the event
            metadata: Extra JSON context
            severity: Event severity
        """
        try:
            stmt = insert(system_events).values(
                type=event_type.value,
                message=message,
                severity=severity.value,
                actor_id=UUID(str(actor_id)) if actor_id else None,
                metadata=metadata,
            )
            await self.db.execute(stmt)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.warning("system_event_record_failed", event_type=event_type.value, error=str(e))

    async def list_recent(self, limit: int = 50) -> list[SystemEventResponse]:
        """List the most recent events, newest first."""
        stmt = (
            select(system_events)
            .order_by(system_events.c.created_at.desc(), system_events.c.id)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return [SystemEventResponse.model_validate(dict(row._mapping)) for row in result.fetchall()]
