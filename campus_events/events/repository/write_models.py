"""Organizer-side event operations. Returns DTOs, never ORM models."""

from abc import ABC, abstractmethod
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from campus_events.config.database import async_session_manager
from campus_events.events.dtos import EventDTO, EventVisibility
from campus_events.models.event import Event
from campus_events.registrations.dtos import NotFoundError
from campus_events.utils.timezone import to_utc_aware


class EventWriteModel(ABC):
    @abstractmethod
    async def create_event(
        self,
        title: str,
        start_at: datetime,
        end_at: datetime | None = None,
        capacity: int | None = None,
        visibility: EventVisibility = EventVisibility.PUBLIC,
        description: str | None = None,
        venue: str | None = None,
        organizer: str | None = None,
        created_by: UUID | None = None,
    ) -> EventDTO:
        raise NotImplementedError

    @abstractmethod
    async def deactivate_event(self, event_id: UUID) -> EventDTO:
        """Soft-delete an event; its registrations stay untouched."""
        raise NotImplementedError


class SqlEventWriteModel(EventWriteModel):
    def __init__(self, session_overwrite: AsyncSession | None = None) -> None:
        self.session_overwrite = session_overwrite

    async def create_event(
        self,
        title: str,
        start_at: datetime,
        end_at: datetime | None = None,
        capacity: int | None = None,
        visibility: EventVisibility = EventVisibility.PUBLIC,
        description: str | None = None,
        venue: str | None = None,
        organizer: str | None = None,
        created_by: UUID | None = None,
    ) -> EventDTO:
        if capacity is not None and capacity < 1:
            raise ValueError("Capacity must be at least 1")
        start_at = to_utc_aware(start_at)
        end_at = to_utc_aware(end_at)
        if end_at is not None and end_at < start_at:
            raise ValueError("Event cannot end before it starts")

        async with async_session_manager(session_overwrite=self.session_overwrite) as session:
            event = Event(
                title=title,
                start_at=start_at,
                end_at=end_at,
                capacity=capacity,
                visibility=visibility,
                description=description,
                venue=venue,
                organizer=organizer,
                created_by=created_by,
                is_active=True,
                active_registrations=0,
            )
            session.add(event)
            await session.flush()
            await session.refresh(event)
            return EventDTO.from_event(event)

    async def deactivate_event(self, event_id: UUID) -> EventDTO:
        async with async_session_manager(session_overwrite=self.session_overwrite) as session:
            result = await session.execute(select(Event).where(Event.uuid == event_id))
            event = result.scalar_one_or_none()
            if event is None:
                raise NotFoundError(f"Event {event_id} not found")
            event.is_active = False
            await session.flush()
            return EventDTO.from_event(event)
