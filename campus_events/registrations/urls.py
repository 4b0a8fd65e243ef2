EVENT_REGISTRATIONS_URL = "/events/{event_id}/registrations"
REGISTRATION_URL = "/events/{event_id}/registrations/{subject_id}"
CHECK_IN_URL = "/events/{event_id}/registrations/{subject_id}/check-in"
SUBJECT_REGISTRATIONS_URL = "/subjects/{subject_id}/registrations"
