from datetime import date, datetime, timezone
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class DocumentExpiring(BaseModel):
    """SNS event: an approved driver document is about to expire."""

    model_config = ConfigDict(extra="forbid")

    event_type: str = "driver_document.expiring"
    document_id: UUID
    driver_id: UUID
    document_type: str
    expiry_date: date
    days_until_expiry: int
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
