from uuid import UUID

from fastapi import APIRouter, Depends

from campus_events.registrations.dtos import RegistrationError
from campus_events.registrations.http_errors import to_http_exception
from campus_events.registrations.repository.read_models import (
    RegistrationReadModel,
    SqlRegistrationReadModel,
)
from campus_events.registrations.repository.write_models import (
    RegistrationWriteModel,
    SqlRegistrationWriteModel,
)
from campus_events.registrations.schemas import (
    RegistrationResponse,
    RegistrationResultResponse,
    RegistrationStatusResponse,
)
from campus_events.registrations.urls import CHECK_IN_URL, REGISTRATION_URL

router = APIRouter()


def get_status_read_model() -> RegistrationReadModel:
    return SqlRegistrationReadModel()


def get_check_in_write_model() -> RegistrationWriteModel:
    return SqlRegistrationWriteModel()


@router.get(REGISTRATION_URL, response_model=RegistrationStatusResponse)
async def check_registration(
    event_id: UUID,
    subject_id: UUID,
    read_model: RegistrationReadModel = Depends(get_status_read_model),
) -> RegistrationStatusResponse:
    status = await read_model.check_status(event_id=event_id, subject_id=subject_id)
    return RegistrationStatusResponse.from_dto(status)


@router.post(CHECK_IN_URL, response_model=RegistrationResultResponse)
async def check_in(
    event_id: UUID,
    subject_id: UUID,
    write_model: RegistrationWriteModel = Depends(get_check_in_write_model),
) -> RegistrationResultResponse:
    try:
        registration = await write_model.check_in(event_id=event_id, subject_id=subject_id)
    except RegistrationError as e:
        raise to_http_exception(e) from e

    return RegistrationResultResponse(
        message="Checked in",
        registration=RegistrationResponse.from_dto(registration),
    )
