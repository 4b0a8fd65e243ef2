import asyncio
import logging
from typing import Protocol

import httpx

from campus_events.email_service.base import EmailServiceBase
from campus_events.email_service.email_logger import EmailLogger, NoOpEmailLogger
from campus_events.email_service.templates import EmailTemplates
from campus_events.events.dtos import EventDTO
from campus_events.reminders.dtos import RecipientDTO

logger = logging.getLogger(__name__)

RESEND_EMAILS_URL = "https://api.resend.com/emails"


class ResendEmailConfig(Protocol):
    resend_api_key: str
    emails_from: str
    emails_from_name: str
    frontend_url: str


class ResendEmailService(EmailServiceBase):
    def __init__(
        self,
        config: ResendEmailConfig,
        email_logger: EmailLogger | None = None,
        http_client_class: type[httpx.AsyncClient] = httpx.AsyncClient,
    ):
        self._config = config
        self.email_logger = email_logger or NoOpEmailLogger()
        self._http_client_class = http_client_class

    async def _send(
        self,
        to_address: str,
        subject: str,
        html_body: str,
        text_body: str,
        email_type: str,
        **context,
    ) -> str | None:
        """Send email via Resend and log via injected logger."""
        log_uuid = await self.email_logger.log_email_attempt(
            to_address=to_address,
            from_address=self._config.emails_from,
            subject=subject,
            html_body=html_body,
            text_body=text_body,
            email_type=email_type,
            **context,
        )

        try:
            async with self._http_client_class() as client:
                response = await client.post(
                    RESEND_EMAILS_URL,
                    headers={
                        "Authorization": f"Bearer {self._config.resend_api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "from": f"{self._config.emails_from_name} <{self._config.emails_from}>",
                        "to": [to_address],
                        "subject": subject,
                        "html": html_body,
                        "text": text_body,
                    },
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            await self.email_logger.log_email_failure(
                log_uuid=log_uuid,
                error_message=str(e),
            )
            raise
        except asyncio.CancelledError:
            # timed out by the caller, the provider may or may not have accepted it
            await self.email_logger.log_email_failure(
                log_uuid=log_uuid,
                error_message="cancelled before the provider answered",
            )
            raise

        message_id = response.json().get("id")
        await self.email_logger.log_email_success(
            log_uuid=log_uuid,
            provider_message_id=message_id,
        )
        logger.info("Reminder email sent to %s (id=%s)", to_address, message_id)
        return message_id

    async def verify_connection(self) -> bool:
        if not self._config.resend_api_key:
            logger.error("Resend API key is not configured")
            return False
        return True

    async def send_event_reminder(
        self,
        recipient: RecipientDTO,
        event: EventDTO,
        time_until_event: str,
    ) -> None:
        subject, html_body, text_body = EmailTemplates.render_reminder(
            recipient=recipient,
            event=event,
            time_until_event=time_until_event,
            frontend_url=self._config.frontend_url,
        )
        await self._send(
            to_address=recipient.email,
            subject=subject,
            html_body=html_body,
            text_body=text_body,
            email_type="reminder",
            user_id=recipient.user_id,
            event_id=event.id,
        )
