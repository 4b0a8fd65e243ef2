from uuid import UUID

from fastapi import APIRouter, Depends

from campus_events.registrations.dtos import RegistrationError, RegistrationStatus
from campus_events.registrations.http_errors import to_http_exception
from campus_events.registrations.repository.read_models import (
    RegistrationReadModel,
    SqlRegistrationReadModel,
)
from campus_events.registrations.schemas import RegisteredEventResponse, RegistrationResponse
from campus_events.registrations.urls import EVENT_REGISTRATIONS_URL, SUBJECT_REGISTRATIONS_URL

router = APIRouter()


def get_list_read_model() -> RegistrationReadModel:
    return SqlRegistrationReadModel()


@router.get(EVENT_REGISTRATIONS_URL, response_model=list[RegistrationResponse])
async def list_event_registrations(
    event_id: UUID,
    status: RegistrationStatus | None = None,
    read_model: RegistrationReadModel = Depends(get_list_read_model),
) -> list[RegistrationResponse]:
    """
    Attendee list of an event, newest registration first.
    Only registered / checked-in registrations unless a status is given.
    """
    try:
        registrations = await read_model.list_for_event(event_id=event_id, status=status)
    except RegistrationError as e:
        raise to_http_exception(e) from e
    return [RegistrationResponse.from_dto(registration) for registration in registrations]


@router.get(SUBJECT_REGISTRATIONS_URL, response_model=list[RegisteredEventResponse])
async def list_subject_registrations(
    subject_id: UUID,
    upcoming_only: bool = True,
    read_model: RegistrationReadModel = Depends(get_list_read_model),
) -> list[RegisteredEventResponse]:
    """Events a subject is registered for, soonest first."""
    items = await read_model.list_for_subject(subject_id=subject_id, upcoming_only=upcoming_only)
    return [RegisteredEventResponse.from_dto(item) for item in items]
