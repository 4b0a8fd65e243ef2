from uuid import UUID

from fastapi import APIRouter, Depends

from campus_events.registrations.dtos import RegistrationError
from campus_events.registrations.http_errors import to_http_exception
from campus_events.registrations.repository.write_models import (
    RegistrationWriteModel,
    SqlRegistrationWriteModel,
)
from campus_events.registrations.schemas import RegistrationResponse, RegistrationResultResponse
from campus_events.registrations.urls import REGISTRATION_URL

router = APIRouter()


def get_cancel_write_model() -> RegistrationWriteModel:
    """Dependency to get registration write model instance."""
    return SqlRegistrationWriteModel()


@router.delete(REGISTRATION_URL, response_model=RegistrationResultResponse)
async def cancel_registration(
    event_id: UUID,
    subject_id: UUID,
    write_model: RegistrationWriteModel = Depends(get_cancel_write_model),
) -> RegistrationResultResponse:
    """Cancel a registration. The record is kept with status cancelled."""
    try:
        registration = await write_model.cancel(event_id=event_id, subject_id=subject_id)
    except RegistrationError as e:
        raise to_http_exception(e) from e

    return RegistrationResultResponse(
        message="Registration cancelled successfully",
        registration=RegistrationResponse.from_dto(registration),
    )
