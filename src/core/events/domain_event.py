"""
DomainEvent — immutable record of something that happened to an aggregate

Events are appended by aggregate operations, held in the aggregate's
DomainEventBuffer and published by command handlers after a successful save.
"""

from datetime import datetime, timezone
from typing import Any, ClassVar
from uuid import uuid4

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class DomainEvent(BaseModel):
    """
    Base domain event.

    Subclasses set ``event_type`` (dotted name, e.g. ``afe.submitted``) and add
    their payload fields.
    """

    event_type: ClassVar[str] = "domain.event"

    event_id: str = Field(default_factory=lambda: str(uuid4()), description="Unique event id")
    aggregate_id: str = Field(..., min_length=1, description="Id of the emitting aggregate")
    organization_id: str = Field(..., min_length=1, description="Owning organization (tenant)")
    occurred_at: datetime = Field(default_factory=utc_now, description="Emission time (UTC)")

    model_config = {"frozen": True}

    def to_message(self) -> dict[str, Any]:
        """Envelope for an event bus: type plus JSON-compatible payload."""
        return {"event_type": self.event_type, "payload": self.model_dump(mode="json")}
