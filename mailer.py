import asyncio
import logging
from email.message import EmailMessage
from email.utils import formatdate

import aiosmtplib

from config import Settings
from errors import MailDeliveryError

logger = logging.getLogger(__name__)

CONTACT_SUBJECT = "Inquiry Form Submission"


class MailRelay:
    """Forwards contact-form submissions to the site owner over SMTP."""

    def __init__(self, settings: Settings):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.username = settings.smtp_user
        self.password = settings.smtp_password
        self.timeout = settings.smtp_timeout
        self.recipient = settings.recipient_email

    def compose(self, name, email, message) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = CONTACT_SUBJECT
        msg["From"] = self.recipient or ""
        msg["To"] = self.recipient or ""
        msg["Date"] = formatdate(localtime=True)
        msg.set_content(f"Name: {name}\nEmail: {email}\nMessage: {message}")
        return msg

    async def _send(self, msg: EmailMessage) -> None:
        # start_tls=None upgrades the connection when the server offers STARTTLS
        smtp = aiosmtplib.SMTP(
            hostname=self.host,
            port=self.port,
            timeout=self.timeout,
            use_tls=self.port == 465,  # implicit TLS
            start_tls=None if self.port != 465 else False,
        )
        async with smtp:
            if self.username and self.password:
                await smtp.login(self.username, self.password)
            await smtp.send_message(msg)

    def send_contact_message(self, name, email, message) -> None:
        if not self.recipient:
            raise MailDeliveryError("No recipient address configured")
        msg = self.compose(name, email, message)
        try:
            asyncio.run(self._send(msg))
        except (aiosmtplib.SMTPException, OSError) as e:
            raise MailDeliveryError() from e
        logger.info("Contact message from %s relayed to %s", email, self.recipient)
