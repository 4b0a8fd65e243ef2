"""Request / response bodies shared by the registration endpoints."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from campus_events.events.dtos import EventDTO, EventVisibility
from campus_events.registrations.dtos import (
    RegisteredEventDTO,
    RegistrationDTO,
    RegistrationStatus,
    RegistrationStatusDTO,
)


class ReminderMarkerResponse(BaseModel):
    sent: bool
    sent_at: datetime | None = None


class RegistrationResponse(BaseModel):
    id: UUID
    event_id: UUID
    subject_id: UUID
    status: RegistrationStatus
    registered_at: datetime
    reminders: dict[str, ReminderMarkerResponse] = {}
    notes: str | None = None

    @classmethod
    def from_dto(cls, registration: RegistrationDTO) -> "RegistrationResponse":
        return cls(
            id=registration.id,
            event_id=registration.event_id,
            subject_id=registration.subject_id,
            status=registration.status,
            registered_at=registration.registered_at,
            reminders={
                tier: ReminderMarkerResponse(sent=marker.sent, sent_at=marker.sent_at)
                for tier, marker in registration.reminders.items()
            },
            notes=registration.notes,
        )


class RegistrationResultResponse(BaseModel):
    message: str
    registration: RegistrationResponse


class RegistrationStatusResponse(BaseModel):
    is_registered: bool
    registration: RegistrationResponse | None = None

    @classmethod
    def from_dto(cls, status: RegistrationStatusDTO) -> "RegistrationStatusResponse":
        return cls(
            is_registered=status.is_registered,
            registration=(
                RegistrationResponse.from_dto(status.registration) if status.registration else None
            ),
        )


class EventSummaryResponse(BaseModel):
    id: UUID
    title: str
    start_at: datetime
    end_at: datetime | None = None
    venue: str | None = None
    organizer: str | None = None
    visibility: EventVisibility
    capacity: int | None = None
    active_registrations: int

    @classmethod
    def from_dto(cls, event: EventDTO) -> "EventSummaryResponse":
        return cls(
            id=event.id,
            title=event.title,
            start_at=event.start_at,
            end_at=event.end_at,
            venue=event.venue,
            organizer=event.organizer,
            visibility=event.visibility,
            capacity=event.capacity,
            active_registrations=event.active_registrations,
        )


class RegisteredEventResponse(BaseModel):
    registration: RegistrationResponse
    event: EventSummaryResponse

    @classmethod
    def from_dto(cls, item: RegisteredEventDTO) -> "RegisteredEventResponse":
        return cls(
            registration=RegistrationResponse.from_dto(item.registration),
            event=EventSummaryResponse.from_dto(item.event),
        )
