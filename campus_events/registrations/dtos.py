from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from campus_events.events.dtos import EventDTO
from campus_events.utils.timezone import to_utc_aware

if TYPE_CHECKING:
    from campus_events.models.registration import Registration, ReminderDelivery


class RegistrationError(Exception):
    """Base class for registration lifecycle errors."""


class NotFoundError(RegistrationError):
    """Raised when the event or registration does not exist (or the event is inactive)."""


class RegistrationClosedError(RegistrationError):
    """Raised when registering for an event that has already started."""

    def __init__(self, event_id: UUID) -> None:
        self.event_id = event_id
        super().__init__("Registration is closed. This event has already started.")


class AlreadyRegisteredError(RegistrationError):
    def __init__(self, event_id: UUID, subject_id: UUID) -> None:
        self.event_id = event_id
        self.subject_id = subject_id
        super().__init__(f"Subject '{subject_id}' is already registered for event '{event_id}'")


class AlreadyCancelledError(RegistrationError):
    def __init__(self, event_id: UUID, subject_id: UUID) -> None:
        self.event_id = event_id
        self.subject_id = subject_id
        super().__init__("Registration already cancelled")


class AlreadyCheckedInError(RegistrationError):
    def __init__(self, event_id: UUID, subject_id: UUID) -> None:
        self.event_id = event_id
        self.subject_id = subject_id
        super().__init__("Registration already checked in")


class CapacityExceededError(RegistrationError):
    def __init__(self, event_id: UUID, capacity: int | None) -> None:
        self.event_id = event_id
        self.capacity = capacity
        super().__init__(f"Event '{event_id}' is full")


class StoreConflictError(RegistrationError):
    """Raised when a concurrent write won the conditional update first."""


class RegistrationStatus(str, Enum):
    REGISTERED = "registered"
    CHECKED_IN = "checked_in"
    CANCELLED = "cancelled"


# Statuses that count towards capacity
ACTIVE_STATUSES = (RegistrationStatus.REGISTERED, RegistrationStatus.CHECKED_IN)


@dataclass(frozen=True)
class DeliveryMarkerDTO:
    """Whether a tier's reminder went out for a registration."""

    sent: bool = False
    sent_at: datetime | None = None


@dataclass(frozen=True)
class RegistrationDTO:
    """DTO for registration data."""

    id: UUID
    event_id: UUID
    subject_id: UUID
    status: RegistrationStatus
    registered_at: datetime
    reminders: dict[str, DeliveryMarkerDTO] = field(default_factory=dict)
    notes: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @classmethod
    def from_registration(
        cls,
        registration: "Registration",
        deliveries: Iterable["ReminderDelivery"] = (),
        tier_names: Iterable[str] = (),
    ) -> "RegistrationDTO":
        """Create RegistrationDTO from the ORM model and its delivery markers.

        Every name in ``tier_names`` gets an entry, unsent unless a delivery
        row exists for it.
        """
        reminders = {name: DeliveryMarkerDTO() for name in tier_names}
        for delivery in deliveries:
            reminders[delivery.tier] = DeliveryMarkerDTO(
                sent=True, sent_at=to_utc_aware(delivery.sent_at)
            )
        return cls(
            id=registration.uuid,
            event_id=registration.event_id,
            subject_id=registration.subject_id,
            status=RegistrationStatus(registration.status),
            registered_at=to_utc_aware(registration.registered_at),
            reminders=reminders,
            notes=registration.notes,
        )


@dataclass(frozen=True)
class RegistrationStatusDTO:
    """DTO for the check-status read."""

    is_registered: bool
    registration: RegistrationDTO | None = None


@dataclass(frozen=True)
class RegisteredEventDTO:
    """A subject's registration together with the event it is for."""

    registration: RegistrationDTO
    event: EventDTO
