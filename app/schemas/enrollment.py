"""Enrollment schemas."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel


class ParticipantStatus(str, Enum):
    """Participant row status."""

    INTERESTED = "interested"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class EnrollmentFailure(str, Enum):
    """Expected, recoverable reasons an enroll or cancel did not happen."""

    NOT_FOUND = "not_found"
    NOT_OPEN = "not_open"
    FULL = "full"
    ALREADY_ENROLLED = "already_enrolled"
    NOT_ENROLLED = "not_enrolled"


FAILURE_MESSAGES: dict[EnrollmentFailure, str] = {
    EnrollmentFailure.NOT_FOUND: "Expedition not found",
    EnrollmentFailure.NOT_OPEN: "Expedition is not open for enrollment",
    EnrollmentFailure.FULL: "Expedition is full",
    EnrollmentFailure.ALREADY_ENROLLED: "You are already enrolled in this expedition",
    EnrollmentFailure.NOT_ENROLLED: "You are not enrolled in this expedition",
}


class EnrollmentResult(BaseModel):
    """Outcome of an enroll or cancel request."""

    success: bool
    reason: EnrollmentFailure | None = None
    message: str | None = None

    @classmethod
    def ok(cls) -> "EnrollmentResult":
        """Successful outcome."""
        return cls(success=True)

    @classmethod
    def fail(cls, reason: EnrollmentFailure) -> "EnrollmentResult":
        """Failed outcome carrying its reason and a user-facing message."""
        return cls(success=False, reason=reason, message=FAILURE_MESSAGES[reason])


class EnrollmentStatusResponse(BaseModel):
    """Whether the current user is enrolled."""

    enrolled: bool


class ParticipantResponse(BaseModel):
    """Active participant with minimal account display fields."""

    id: UUID
    user_id: UUID
    status: ParticipantStatus
    enrolled_at: datetime | None = None
    name: str | None = None
    email: str | None = None
    photo_url: str | None = None

    model_config = {"from_attributes": True}
