from uuid import UUID

from fastapi import APIRouter, Depends, status

from campus_events.registrations.dtos import RegistrationError
from campus_events.registrations.http_errors import to_http_exception
from campus_events.registrations.repository.write_models import (
    RegistrationWriteModel,
    SqlRegistrationWriteModel,
)
from campus_events.registrations.schemas import RegistrationResponse, RegistrationResultResponse
from campus_events.registrations.urls import REGISTRATION_URL

router = APIRouter()


def get_register_write_model() -> RegistrationWriteModel:
    """Dependency to get registration write model instance."""
    return SqlRegistrationWriteModel()


@router.post(
    REGISTRATION_URL,
    response_model=RegistrationResultResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_for_event(
    event_id: UUID,
    subject_id: UUID,
    write_model: RegistrationWriteModel = Depends(get_register_write_model),
) -> RegistrationResultResponse:
    """
    Register a subject for an event.

    Fails with 404 for unknown or inactive events, 400 once the event has
    started and 409 when already registered or the event is full.
    A cancelled registration is reactivated.
    """
    try:
        registration = await write_model.register(event_id=event_id, subject_id=subject_id)
    except RegistrationError as e:
        raise to_http_exception(e) from e

    return RegistrationResultResponse(
        message="Successfully registered for event",
        registration=RegistrationResponse.from_dto(registration),
    )
