"""SMS service for sending verification codes."""

import base64
import hashlib
import hmac
import logging
import time
from abc import ABC, abstractmethod

import httpx

from together.config import settings
from together.services.resilience import CircuitBreaker, CircuitOpenError
from together.services.targets import mask_target

logger = logging.getLogger(__name__)

# Shared by every SENS backend in the process
sens_breaker = CircuitBreaker("sens")


class SMSBackend(ABC):
    """Abstract base class for SMS backends."""

    @abstractmethod
    async def send(self, to: str, text: str) -> bool:
        """Send a text message.

        Args:
            to: Recipient phone number, digits only
            text: Message body

        Returns:
            True if sent successfully
        """
        pass


class ConsoleSMSBackend(SMSBackend):
    """SMS backend that logs to console (for development)."""

    async def send(self, to: str, text: str) -> bool:
        """Log the message instead of sending."""
        logger.info(
            f"\n{'='*60}\n"
            f"SMS (console backend - not sent)\n"
            f"{'='*60}\n"
            f"To: {to}\n"
            f"{text}\n"
            f"{'='*60}\n"
        )
        return True


def make_signature(
    method: str,
    url: str,
    timestamp: str,
    access_key: str,
    secret_key: str,
) -> str:
    """Build the Naver Cloud API Gateway v2 signature.

    HMAC-SHA256 over ``"{method} {url}\\n{timestamp}\\n{access_key}"``, base64 encoded.
    """
    message = f"{method} {url}\n{timestamp}\n{access_key}"
    digest = hmac.new(secret_key.encode(), message.encode(), hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


class SENSSMSBackend(SMSBackend):
    """SMS backend using Naver Cloud SENS."""

    def __init__(
        self,
        service_id: str,
        access_key: str,
        secret_key: str,
        sender: str,
        base_url: str = "https://sens.apigw.ntruss.com",
        breaker: CircuitBreaker | None = None,
    ):
        self.service_id = service_id
        self.access_key = access_key
        self.secret_key = secret_key
        self.sender = sender
        self.base_url = base_url
        self.breaker = breaker or CircuitBreaker("sens")

    async def _post(self, to: str, text: str) -> None:
        path = f"/sms/v2/services/{self.service_id}/messages"
        timestamp = str(int(time.time() * 1000))
        signature = make_signature("POST", path, timestamp, self.access_key, self.secret_key)

        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{self.base_url}{path}",
                headers={
                    "Content-Type": "application/json; charset=utf-8",
                    "x-ncp-apigw-timestamp": timestamp,
                    "x-ncp-iam-access-key": self.access_key,
                    "x-ncp-apigw-signature-v2": signature,
                },
                json={
                    "type": "SMS",
                    "from": self.sender,
                    "content": text,
                    "messages": [{"to": to}],
                },
                timeout=10.0,
            )
            response.raise_for_status()

    async def send(self, to: str, text: str) -> bool:
        """Send SMS via the SENS API."""
        try:
            await self.breaker.call(self._post, to, text)
            logger.info(f"SMS sent via SENS to {mask_target(to)}")
            return True
        except CircuitOpenError:
            logger.error("SENS circuit is open, SMS not sent")
            return False
        except httpx.HTTPStatusError as e:
            logger.error(f"SENS API error: {e.response.status_code} - {e.response.text}")
            return False
        except Exception as e:
            logger.error(f"Failed to send SMS via SENS: {e}")
            return False


def get_sms_backend() -> SMSBackend:
    """Get the configured SMS backend."""
    if settings.sms_backend == "console":
        return ConsoleSMSBackend()
    elif settings.sms_backend == "sens":
        return SENSSMSBackend(
            service_id=settings.sens_service_id,
            access_key=settings.sens_access_key,
            secret_key=settings.sens_secret_key,
            sender=settings.sens_sender,
            base_url=settings.sens_base_url,
            breaker=sens_breaker,
        )
    else:
        raise ValueError(f"Unknown SMS backend: {settings.sms_backend}")


class SMSService:
    """High-level SMS service."""

    def __init__(self, backend: SMSBackend | None = None):
        self._backend = backend

    @property
    def backend(self) -> SMSBackend:
        """Lazy-load the backend."""
        if self._backend is None:
            self._backend = get_sms_backend()
        return self._backend

    async def send_verification_code(self, to: str, code: str) -> bool:
        """Send a one-time verification code by SMS."""
        return await self.backend.send(to=to, text=f"[Together] 인증번호: {code}")
