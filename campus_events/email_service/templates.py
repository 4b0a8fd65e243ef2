from campus_events.events.dtos import EventDTO
from campus_events.reminders.dtos import RecipientDTO


class EmailTemplates:
    """Email templates for event reminders."""

    REMINDER_SUBJECT = "Reminder: {event_title} {time_until_event}"

    REMINDER_HTML = """
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Event Reminder - {event_title}</title>
</head>
<body style="font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; color: #333;">
    <h1>Event Reminder</h1>
    <p>Hi <strong>{recipient_name}</strong>,</p>
    <p>This is a friendly reminder that you're registered for an event happening
    <strong>{time_until_event}</strong>!</p>
    <h2>{event_title}</h2>
    <p><strong>When:</strong> {event_date}</p>
    <p><strong>Where:</strong> {event_venue}</p>
    {organizer_html}
    {description_html}
    <p><a href="{event_url}">View event details</a></p>
    <p style="font-size: 0.8rem; color: #777;">
        You're receiving this because you registered for this event.
        <a href="{preferences_url}">Update your notification preferences</a>
    </p>
</body>
</html>
"""

    REMINDER_TEXT = """
Hi {recipient_name},

This is a reminder that you're registered for "{event_title}" happening {time_until_event}.

When: {event_date}
Where: {event_venue}
{organizer_text}
{description_text}

View full details: {event_url}

Update your notification preferences: {preferences_url}
"""

    @classmethod
    def render_reminder(
        cls,
        recipient: RecipientDTO,
        event: EventDTO,
        time_until_event: str,
        frontend_url: str,
    ) -> tuple[str, str, str]:
        """Return (subject, html_body, text_body) for a reminder email."""
        context = {
            "recipient_name": recipient.name,
            "event_title": event.title,
            "time_until_event": time_until_event,
            "event_date": event.start_at.strftime("%A, %B %d, %Y at %H:%M UTC"),
            "event_venue": event.venue or "To be announced",
            "event_url": f"{frontend_url}/events/{event.id}",
            "preferences_url": f"{frontend_url}/profile",
            "organizer_html": f"<p><strong>Organizer:</strong> {event.organizer}</p>"
            if event.organizer
            else "",
            "description_html": f"<p>{event.description}</p>" if event.description else "",
            "organizer_text": f"Organizer: {event.organizer}" if event.organizer else "",
            "description_text": f"About: {event.description}" if event.description else "",
        }
        subject = cls.REMINDER_SUBJECT.format(**context)
        return subject, cls.REMINDER_HTML.format(**context), cls.REMINDER_TEXT.format(**context)
