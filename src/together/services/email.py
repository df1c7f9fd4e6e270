"""Verification code delivery by email."""

import logging
from abc import ABC, abstractmethod
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib
import httpx

from together.config import settings
from together.services.targets import mask_target

logger = logging.getLogger(__name__)


class EmailBackend(ABC):
    """Transport for a single verification email."""

    @abstractmethod
    async def send(
        self,
        to: str,
        subject: str,
        html: str,
        text: str | None = None,
    ) -> bool:
        """Deliver one message. Returns False instead of raising on provider errors."""
        pass


class ConsoleEmailBackend(EmailBackend):
    """Writes the message to the log. Used in development and tests."""

    async def send(
        self,
        to: str,
        subject: str,
        html: str,
        text: str | None = None,
    ) -> bool:
        logger.info(f"Email to {to} not sent (console backend): {subject}\n{text or html}")
        return True


class SMTPEmailBackend(EmailBackend):
    """Email backend using SMTP."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        use_tls: bool = True,
        from_address: str = "",
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.from_address = from_address

    async def send(
        self,
        to: str,
        subject: str,
        html: str,
        text: str | None = None,
    ) -> bool:
        """Send email via SMTP."""
        message = MIMEMultipart("alternative")
        message["From"] = self.from_address
        message["To"] = to
        message["Subject"] = subject

        if text:
            message.attach(MIMEText(text, "plain", "utf-8"))
        message.attach(MIMEText(html, "html", "utf-8"))

        try:
            await aiosmtplib.send(
                message,
                hostname=self.host,
                port=self.port,
                username=self.username,
                password=self.password,
                # Port 465 speaks TLS from the first byte; others upgrade via STARTTLS
                use_tls=self.port == 465,
                start_tls=self.use_tls and self.port != 465,
            )
            logger.info(f"Email sent via SMTP to {mask_target(to)}")
            return True
        except Exception as e:
            logger.error(f"Failed to send email via SMTP to {mask_target(to)}: {e}")
            return False


class ResendEmailBackend(EmailBackend):
    """Email backend using Resend API."""

    def __init__(self, api_key: str, from_address: str):
        self.api_key = api_key
        self.from_address = from_address

    async def send(
        self,
        to: str,
        subject: str,
        html: str,
        text: str | None = None,
    ) -> bool:
        """Send email via Resend API."""
        async with httpx.AsyncClient() as client:
            try:
                response = await client.post(
                    "https://api.resend.com/emails",
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "from": self.from_address,
                        "to": [to],
                        "subject": subject,
                        "html": html,
                        "text": text,
                    },
                    timeout=30.0,
                )
                response.raise_for_status()
                logger.info(f"Email sent via Resend to {mask_target(to)}")
                return True
            except httpx.HTTPStatusError as e:
                logger.error(f"Resend API error: {e.response.status_code} - {e.response.text}")
                return False
            except Exception as e:
                logger.error(f"Failed to send email via Resend to {mask_target(to)}: {e}")
                return False


def get_email_backend() -> EmailBackend:
    """Get the configured email backend."""
    if settings.email_backend == "console":
        return ConsoleEmailBackend()
    elif settings.email_backend == "smtp":
        return SMTPEmailBackend(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            from_address=settings.email_from,
        )
    elif settings.email_backend == "resend":
        return ResendEmailBackend(
            api_key=settings.resend_api_key,
            from_address=settings.email_from,
        )
    else:
        raise ValueError(f"Unknown email backend: {settings.email_backend}")


class EmailService:
    """Renders verification emails and hands them to the configured backend."""

    def __init__(self, backend: EmailBackend | None = None):
        self._backend = backend

    @property
    def backend(self) -> EmailBackend:
        """Lazy-load the backend."""
        if self._backend is None:
            self._backend = get_email_backend()
        return self._backend

    async def send_verification_code(self, to: str, code: str) -> bool:
        """Send ``code`` with its expiry in minutes. Returns the backend's result."""
        subject = "[Together] 인증번호"
        minutes = max(1, settings.verification_code_ttl_seconds // 60)

        html = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <h2 style="color: #333;">인증번호 안내</h2>
    <p>안녕하세요.</p>
    <p>요청하신 인증번호는 아래와 같습니다.</p>
    <div style="background-color: #f5f5f5; padding: 20px; text-align: center; margin: 20px 0;">
        <h1 style="color: #007bff; font-size: 32px; margin: 0;">{code}</h1>
    </div>
    <p>인증번호는 {minutes}분간 유효합니다.</p>
    <p style="color: #666; font-size: 12px; margin-top: 30px;">
        본 메일은 발신 전용입니다.
    </p>
</div>
"""

        text = f"""
[Together] 인증번호 안내

요청하신 인증번호: {code}
인증번호는 {minutes}분간 유효합니다.

본 메일은 발신 전용입니다.
"""

        return await self.backend.send(to=to, subject=subject, html=html, text=text)
