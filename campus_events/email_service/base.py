from abc import ABC, abstractmethod

from campus_events.events.dtos import EventDTO
from campus_events.reminders.dtos import RecipientDTO


class EmailServiceBase(ABC):
    @abstractmethod
    async def send_event_reminder(
        self,
        recipient: RecipientDTO,
        event: EventDTO,
        time_until_event: str,
    ) -> None:
        """Send a reminder for ``event``; raises when the message was not accepted."""
        pass

    @abstractmethod
    async def verify_connection(self) -> bool:
        """Check the transport is usable before reminders get scheduled."""
        pass
