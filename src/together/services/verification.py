"""Issuing and validating one-time verification codes."""

import hmac
import logging
from datetime import timedelta

from together.config import settings
from together.models import VerificationCode, VerificationPurpose
from together.models.base import utcnow
from together.services.codes import generate_code
from together.services.delivery import CodeDelivery
from together.services.errors import (
    INVALID_CODE_MESSAGE,
    CodeMismatchError,
    NotFoundError,
    RateLimitedError,
    ValidationError,
)
from together.services.resilience import with_retry
from together.services.targets import mask_target, normalize_target, validate_code_format
from together.services.verification_store import VerificationStore

logger = logging.getLogger(__name__)


def coerce_purpose(purpose: VerificationPurpose | str) -> VerificationPurpose:
    """Accept a purpose enum or its string value."""
    try:
        return VerificationPurpose(purpose)
    except ValueError as e:
        raise ValidationError(f"Unknown verification purpose: {purpose}") from e


class VerificationService:
    """Issues codes under a cooldown policy and validates them.

    A record moves from pending to consumed exactly once. Expired, consumed,
    exhausted and never-issued codes all fail with the same ``NotFoundError``
    so callers cannot tell which state a code is in.
    """

    def __init__(
        self,
        store: VerificationStore,
        delivery: CodeDelivery | None = None,
        *,
        code_length: int | None = None,
        ttl_seconds: int | None = None,
        cooldown_seconds: int | None = None,
        max_attempts: int | None = None,
    ):
        self.store = store
        self.delivery = delivery or CodeDelivery()
        self.code_length = code_length or settings.verification_code_length
        self.ttl_seconds = ttl_seconds or settings.verification_code_ttl_seconds
        self.cooldown_seconds = (
            cooldown_seconds
            if cooldown_seconds is not None
            else settings.verification_cooldown_seconds
        )
        self.max_attempts = max_attempts or settings.verification_max_attempts

    async def issue(
        self,
        target: str,
        purpose: VerificationPurpose | str,
        *,
        deliver: bool = True,
    ) -> VerificationCode:
        """Issue a fresh code for (target, purpose) and start delivering it.

        Delivery runs in the background, so the call returns as soon as the
        code is stored whether or not the provider is slow.

        A newer code supersedes older unused ones; they are left in place and
        simply stop being the newest row.

        Raises:
            ValidationError: target is not a valid email or phone number
            RateLimitedError: an active code was issued within the cooldown window
            StorageError: the store failed or timed out
        """
        channel, normalized = normalize_target(target)
        purpose = coerce_purpose(purpose)

        if self.cooldown_seconds > 0:
            since = utcnow() - timedelta(seconds=self.cooldown_seconds)
            if await with_retry(self.store.has_recent, normalized, purpose, since):
                logger.info(
                    f"Code issue for {mask_target(normalized)} ({purpose.value}) "
                    f"rejected by cooldown"
                )
                raise RateLimitedError(
                    "Verification code was requested too recently",
                    retry_after=self.cooldown_seconds,
                )

        code = generate_code(self.code_length)
        record = await self.store.create(
            channel=channel,
            target=normalized,
            purpose=purpose,
            code=code,
            ttl_seconds=self.ttl_seconds,
        )
        logger.info(
            f"Issued {purpose.value} code {record.id} to {mask_target(normalized)} "
            f"over {channel.value}"
        )

        if deliver:
            self.delivery.dispatch(channel, normalized, code)

        return record

    async def verify(
        self,
        target: str,
        purpose: VerificationPurpose | str,
        submitted_code: str,
    ) -> bool:
        """Consume the active code for (target, purpose) if ``submitted_code`` matches.

        Returns True exactly once per issued code.

        Raises:
            ValidationError: malformed target or code
            NotFoundError: no matchable code (including wrong guesses, which
                raise the ``CodeMismatchError`` subclass)
            StorageError: the store failed or timed out
        """
        _, normalized = normalize_target(target)
        purpose = coerce_purpose(purpose)
        code = validate_code_format(submitted_code, self.code_length)

        record = await with_retry(
            self.store.find_active, normalized, purpose, self.max_attempts
        )
        if record is None:
            logger.info(f"No active {purpose.value} code for {mask_target(normalized)}")
            raise NotFoundError(INVALID_CODE_MESSAGE)

        attempts = await self.store.increment_attempts(record.id, self.max_attempts)
        if attempts is None:
            logger.info(f"Code {record.id} has no attempts left or was consumed")
            raise NotFoundError(INVALID_CODE_MESSAGE)

        if not hmac.compare_digest(record.code.encode(), code.encode()):
            if attempts >= self.max_attempts:
                logger.warning(
                    f"Code {record.id} for {mask_target(normalized)} locked after "
                    f"{attempts} failed attempts"
                )
            else:
                logger.info(f"Wrong code for {record.id} (attempt {attempts})")
            raise CodeMismatchError(INVALID_CODE_MESSAGE)

        if not await self.store.mark_used(record.id):
            # Lost the race to a concurrent verify, or the record expired meanwhile
            logger.info(f"Code {record.id} was consumed concurrently")
            raise NotFoundError(INVALID_CODE_MESSAGE)

        logger.info(f"Consumed {purpose.value} code {record.id} for {mask_target(normalized)}")
        return True
