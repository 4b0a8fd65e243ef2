REMINDERS_STATUS_URL = "/reminders/status"
REMINDERS_RUN_URL = "/reminders/run"
