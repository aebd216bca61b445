# This project was developed with assistance from AI tools.
"""Activity timeline schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class PerformedBy(BaseModel):
    id: str
    name: str
    role: str


class ActivityEntry(BaseModel):
    """Single activity log entry as shown on the timeline."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    activity_type: str
    description: str
    details: dict | None = None
    performed_by: PerformedBy
    submission_id: int
    quote_id: int | None = None
    created_at: datetime

    @classmethod
    def from_log(cls, log) -> "ActivityEntry":
        return cls(
            id=log.id,
            activity_type=log.activity_type,
            description=log.description,
            details=log.details,
            performed_by=PerformedBy(
                id=log.performed_by_id,
                name=log.performed_by_name,
                role=log.performed_by_role,
            ),
            submission_id=log.submission_id,
            quote_id=log.quote_id,
            created_at=log.created_at,
        )


class ActivityTimelineResponse(BaseModel):
    submission_id: int
    count: int
    entries: list[ActivityEntry]


class ActivityChainVerifyResponse(BaseModel):
    """Result of walking the activity hash chain."""

    status: str
    entries_checked: int
    first_break_id: int | None = None
