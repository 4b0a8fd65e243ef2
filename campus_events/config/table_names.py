from enum import Enum


class TableNames(str, Enum):
    USERS = "users"
    EVENTS = "events"
    REGISTRATIONS = "registrations"
    REMINDER_DELIVERIES = "reminder_deliveries"
    EMAIL_LOGS = "email_logs"
