"""
Transactional email over SMTP.
``smtplib`` is blocking, so delivery runs in the thread pool.
"""

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
import logging
import smtplib

from fastapi.concurrency import run_in_threadpool

from estate_api.config import settings
from estate_api.utils.exceptions import UpstreamServiceError

logger = logging.getLogger(__name__)

OTP_TEMPLATE = """\
<div style="font-family: sans-serif; max-width: 480px; margin: 0 auto; padding: 40px 20px;">
  <h2 style="color: #1d1d1f;">{heading}</h2>
  <p style="color: #6e6e73; font-size: 14px;">
    Hi {name}, use the code below to {purpose}. It expires in {expiry} seconds.
  </p>
  <div style="background: #f5f5f7; border-radius: 12px; padding: 24px; text-align: center;">
    <span style="font-size: 36px; font-weight: 700; letter-spacing: 8px;">{otp}</span>
  </div>
  <p style="color: #6e6e73; font-size: 12px;">
    If you didn't request this code, you can safely ignore this email.
  </p>
</div>
"""


class EmailSender:
    """Sends HTML email through the configured SMTP relay with STARTTLS."""

    def __init__(
        self,
        host: str = settings.smtp_host,
        port: int = settings.smtp_port,
        user: str = settings.smtp_user,
        password: str = settings.smtp_password,
        from_name: str = settings.email_from_name,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_name = from_name

    def _deliver(self, to_email: str, subject: str, html: str) -> None:
        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = formataddr((self.from_name, self.user or ""))
        message["To"] = to_email
        message.attach(MIMEText(html, "html"))

        with smtplib.SMTP(self.host, self.port, timeout=30) as server:
            server.starttls()
            if self.user and self.password:
                server.login(self.user, self.password)
            server.sendmail(self.user or "", [to_email], message.as_string())

    async def send(self, to_email: str, subject: str, html: str) -> None:
        """
        Deliver one message.

        Raises:
            UpstreamServiceError: If the relay refuses or cannot be reached
        """
        try:
            await run_in_threadpool(self._deliver, to_email, subject, html)
            logger.info(f"Sent email '{subject}' to {to_email}")
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {e}", exc_info=True)
            raise UpstreamServiceError("Failed to send email")

    async def send_otp_email(self, to_email: str, otp: str, name: str) -> None:
        html = OTP_TEMPLATE.format(
            heading="Verify your login",
            name=name,
            purpose="complete your sign-in",
            expiry=settings.otp_expiry_seconds,
            otp=otp,
        )
        await self.send(to_email, f"{otp} is your EstateAI verification code", html)

    async def send_reset_otp_email(self, to_email: str, otp: str, name: str) -> None:
        html = OTP_TEMPLATE.format(
            heading="Reset your password",
            name=name,
            purpose="reset your password",
            expiry=settings.otp_expiry_seconds,
            otp=otp,
        )
        await self.send(to_email, "Reset your EstateAI password", html)


def get_email_sender() -> EmailSender:
    """Dependency returning the SMTP sender."""
    return EmailSender()
