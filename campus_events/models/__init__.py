from .base import Base, BaseModel
from .email_log import EmailLog
from .event import Event
from .registration import Registration, ReminderDelivery
from .user import User

__all__ = [
    "Base",
    "BaseModel",
    "User",
    "EmailLog",
    "Event",
    "Registration",
    "ReminderDelivery",
]
