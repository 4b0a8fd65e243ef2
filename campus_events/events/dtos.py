from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from campus_events.utils.timezone import to_utc_aware

if TYPE_CHECKING:
    from campus_events.models.event import Event


class EventVisibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


@dataclass(frozen=True)
class EventDTO:
    """DTO for event data."""

    id: UUID
    title: str
    start_at: datetime
    visibility: EventVisibility
    is_active: bool
    active_registrations: int = 0
    capacity: int | None = None
    end_at: datetime | None = None
    description: str | None = None
    venue: str | None = None
    organizer: str | None = None

    @property
    def is_full(self) -> bool:
        return self.capacity is not None and self.active_registrations >= self.capacity

    @classmethod
    def from_event(cls, event: "Event") -> "EventDTO":
        """Create EventDTO from Event ORM model."""
        return cls(
            id=event.uuid,
            title=event.title,
            start_at=to_utc_aware(event.start_at),
            visibility=EventVisibility(event.visibility),
            is_active=event.is_active,
            active_registrations=event.active_registrations or 0,
            capacity=event.capacity,
            end_at=to_utc_aware(event.end_at),
            description=event.description,
            venue=event.venue,
            organizer=event.organizer,
        )
