"""
Outbound e-mail over SMTP (aiosmtplib).

The service is a plain object bound to Settings; the API layer builds one per
request through a dependency so tests can swap in a fake.
"""

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Optional

import aiosmtplib

from unishare.config import Settings, get_settings
from unishare.logging_config import get_logger

logger = get_logger(__name__)


class EmailService:
    """Async SMTP e-mail client."""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_user = settings.smtp_user
        self.smtp_password = settings.smtp_password
        self.use_tls = settings.smtp_use_tls
        self.from_email = settings.smtp_from_email
        self.from_name = settings.smtp_from_name

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_user and self.smtp_password)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> bool:
        """
        Send one message.

        Returns:
            True if the SMTP server accepted it, False otherwise
        """
        if not self.is_configured:
            logger.warning("Email service not configured, skipping send", extra={"subject": subject})
            return False

        message = MIMEMultipart("alternative")
        message["From"] = f"{self.from_name} <{self.from_email}>"
        message["To"] = to_email
        message["Subject"] = subject

        if text_content:
            message.attach(MIMEText(text_content, "plain"))
        message.attach(MIMEText(html_content, "html"))

        try:
            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=self.use_tls,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("SMTP delivery failed: %s", e, extra={"subject": subject})
            return False

        logger.info("Email sent", extra={"subject": subject})
        return True

    async def send_password_reset_email(self, to_email: str, reset_url: str) -> bool:
        """Mail the password reset link."""
        subject = f"Reset your {self.from_name} password"
        text = (
            "Hello,\n\n"
            "We received a request to reset your password. Use the link below "
            "to choose a new one. If you did not request this, you can ignore "
            "this email.\n\n"
            f"Reset link: {reset_url}\n\n"
            f"The {self.from_name} Team"
        )
        url = escape(reset_url, quote=True)
        html = (
            "<html><body style=\"font-family: Arial, sans-serif;\">"
            "<p>Hello,</p>"
            "<p>We received a request to reset your password. "
            "Use the link below to choose a new one:</p>"
            f"<p><a href=\"{url}\">Reset your password</a></p>"
            "<p>If you did not request this, you can safely ignore this email.</p>"
            f"<p>The {escape(self.from_name)} Team</p>"
            "</body></html>"
        )
        return await self.send_email(to_email, subject, html, text)
