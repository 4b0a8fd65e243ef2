from fastapi import HTTPException, status

from campus_events.registrations.dtos import (
    AlreadyCancelledError,
    AlreadyCheckedInError,
    AlreadyRegisteredError,
    CapacityExceededError,
    NotFoundError,
    RegistrationClosedError,
    RegistrationError,
    StoreConflictError,
)

ERROR_STATUS_CODES: dict[type[RegistrationError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    RegistrationClosedError: status.HTTP_400_BAD_REQUEST,
    AlreadyRegisteredError: status.HTTP_409_CONFLICT,
    AlreadyCancelledError: status.HTTP_409_CONFLICT,
    AlreadyCheckedInError: status.HTTP_409_CONFLICT,
    CapacityExceededError: status.HTTP_409_CONFLICT,
    StoreConflictError: status.HTTP_409_CONFLICT,
}


def to_http_exception(error: RegistrationError) -> HTTPException:
    status_code = ERROR_STATUS_CODES.get(type(error), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=status_code, detail=str(error))
