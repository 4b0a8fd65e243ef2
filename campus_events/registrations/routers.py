from fastapi import APIRouter

from .features.cancel_registration.router import router as cancel_registration_router
from .features.check_registration.router import router as check_registration_router
from .features.list_registrations.router import router as list_registrations_router
from .features.register_for_event.router import router as register_for_event_router

router = APIRouter()

router.include_router(register_for_event_router)
router.include_router(cancel_registration_router)
router.include_router(check_registration_router)
router.include_router(list_registrations_router)
