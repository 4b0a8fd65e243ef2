import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

from campus_events.config.settings import settings
from campus_events.email_service.base import EmailServiceBase
from campus_events.email_service.templates import EmailTemplates
from campus_events.events.dtos import EventDTO
from campus_events.reminders.dtos import RecipientDTO

logger = logging.getLogger(__name__)


class SMTPEmailService(EmailServiceBase):
    def __init__(self, timeout: float | None = None):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.username = settings.smtp_user
        self.password = settings.smtp_password
        self.from_address = formataddr((settings.emails_from_name, settings.emails_from))
        self.frontend_url = settings.frontend_url
        self.timeout = timeout or settings.reminder_send_timeout_seconds

    def _create_message(
        self,
        to_address: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_address
        msg["To"] = to_address

        part1 = MIMEText(text_body, "plain")
        part2 = MIMEText(html_body, "html")
        msg.attach(part1)
        msg.attach(part2)

        return msg

    def _connect(self) -> smtplib.SMTP:
        server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        try:
            if self.username and self.password:
                server.starttls()
                server.login(self.username, self.password)
        except Exception:
            server.close()
            raise
        return server

    def _send(self, msg: MIMEMultipart) -> None:
        with self._connect() as server:
            server.send_message(msg)

    def _noop(self) -> None:
        with self._connect() as server:
            code, _ = server.noop()
            if code != 250:
                raise smtplib.SMTPResponseException(code, "NOOP rejected")

    async def verify_connection(self) -> bool:
        try:
            await asyncio.to_thread(self._noop)
        except (OSError, smtplib.SMTPException):
            logger.exception("SMTP server %s:%s is not usable", self.host, self.port)
            return False
        logger.info("SMTP server %s:%s is ready", self.host, self.port)
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
            frontend_url=self.frontend_url,
        )
        msg = self._create_message(recipient.email, subject, html_body, text_body)
        # smtplib blocks, keep it off the event loop
        await asyncio.to_thread(self._send, msg)
