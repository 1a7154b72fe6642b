"""Guide directory schemas."""

from pydantic import BaseModel

from app.schemas.expeditions import ExpeditionResponse
from app.schemas.users import GuideProfileResponse, UserSummary


class GuideDetailResponse(BaseModel):
    """Platform guide with certification snapshot and expeditions."""

    guide: UserSummary
    profile: GuideProfileResponse | None = None
    expeditions: list[ExpeditionResponse]
