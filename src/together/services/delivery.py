"""Delivery of one-time codes over email or SMS."""

import asyncio
import logging

from together.models import VerificationChannel
from together.services.email import EmailService
from together.services.sms import SMSService
from together.services.targets import mask_target

logger = logging.getLogger(__name__)

# Strong references to in-flight sends; the event loop only keeps weak ones
_pending: set[asyncio.Task[bool]] = set()


class CodeDelivery:
    """Routes a code to the email or SMS service for its channel.

    Delivery is fire-and-forget: failures are logged and reported as False,
    never raised, so an issued code stays issued.
    """

    def __init__(
        self,
        email_service: EmailService | None = None,
        sms_service: SMSService | None = None,
    ):
        self.email_service = email_service or EmailService()
        self.sms_service = sms_service or SMSService()

    async def send(self, channel: VerificationChannel, target: str, code: str) -> bool:
        """Send ``code`` to ``target``."""
        try:
            if channel == VerificationChannel.EMAIL:
                sent = await self.email_service.send_verification_code(to=target, code=code)
            else:
                sent = await self.sms_service.send_verification_code(to=target, code=code)
        except Exception as e:
            logger.error(f"Code delivery to {mask_target(target)} raised: {e!r}")
            return False

        if not sent:
            logger.warning(f"Code delivery to {mask_target(target)} over {channel.value} failed")
        return sent

    def dispatch(self, channel: VerificationChannel, target: str, code: str) -> asyncio.Task[bool]:
        """Start sending ``code`` without waiting for the provider."""
        task = asyncio.create_task(self.send(channel, target, code))
        _pending.add(task)
        task.add_done_callback(_pending.discard)
        return task


async def drain_deliveries(timeout: float = 10.0) -> int:
    """Wait for in-flight sends to finish. Returns how many were still pending.

    Called on shutdown so codes issued just before it still go out.
    """
    pending = list(_pending)
    if pending:
        logger.info(f"Waiting for {len(pending)} code deliveries")
        await asyncio.wait(pending, timeout=timeout)
    return len(pending)
