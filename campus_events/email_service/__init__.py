from campus_events.config.settings import settings
from campus_events.email_service.base import EmailServiceBase
from campus_events.email_service.email_logger import SQLEmailLogger
from campus_events.email_service.resend_service import ResendEmailService
from campus_events.email_service.smtp_service import SMTPEmailService


def get_email_service() -> EmailServiceBase:
    """Resend when an API key is configured, plain SMTP otherwise."""
    if settings.resend_api_key:
        return ResendEmailService(config=settings, email_logger=SQLEmailLogger())
    return SMTPEmailService()


__all__ = ["get_email_service"]
