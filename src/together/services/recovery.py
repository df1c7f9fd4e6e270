"""Find-ID and password-reset flows built on verification codes."""

import logging

from together.models import VerificationPurpose
from together.services.errors import (
    INVALID_CODE_MESSAGE,
    INVALID_REQUEST_MESSAGE,
    InvalidTokenError,
    NotFoundError,
    RateLimitedError,
)
from together.services.members import MemberDirectory
from together.services.passwords import validate_password_strength
from together.services.reset_tokens import ResetTokenStore
from together.services.targets import mask_login_id, mask_target, normalize_target
from together.services.verification import VerificationService

logger = logging.getLogger(__name__)


class CredentialRecoveryService:
    """Orchestrates account recovery for members who lost their login id or password.

    The request steps never tell the caller whether an account matched: an
    unknown account and an active cooldown both return normally and are only
    visible in the logs. The confirm steps fail with the same generic
    ``NotFoundError`` whatever went wrong.
    """

    def __init__(
        self,
        verification: VerificationService,
        members: MemberDirectory,
        reset_tokens: ResetTokenStore,
    ):
        self.verification = verification
        self.members = members
        self.reset_tokens = reset_tokens

    async def _issue_silently(self, target: str, purpose: VerificationPurpose) -> None:
        try:
            await self.verification.issue(target, purpose)
        except RateLimitedError:
            logger.info(f"{purpose.value} code for {mask_target(target)} suppressed by cooldown")

    async def request_find_id_code(self, name: str, target: str) -> None:
        """Send a FIND_ID code if a member with ``name`` owns ``target``."""
        channel, normalized = normalize_target(target)
        member = await self.members.find_by_name_and_target(name.strip(), channel, normalized)
        if member is None:
            logger.info(f"Find-id requested for unknown account at {mask_target(normalized)}")
            return
        await self._issue_silently(normalized, VerificationPurpose.FIND_ID)

    async def verify_and_reveal(self, name: str, target: str, code: str) -> str:
        """Consume the FIND_ID code and return the member's masked login id."""
        channel, normalized = normalize_target(target)
        await self.verification.verify(normalized, VerificationPurpose.FIND_ID, code)

        member = await self.members.find_by_name_and_target(name.strip(), channel, normalized)
        if member is None:
            logger.warning(f"Find-id code verified but no account at {mask_target(normalized)}")
            raise NotFoundError(INVALID_CODE_MESSAGE)
        return mask_login_id(member.login_id)

    async def request_password_reset_code(self, login_id: str, target: str) -> None:
        """Send a RESET_PASSWORD code if ``login_id`` owns ``target``."""
        channel, normalized = normalize_target(target)
        member = await self.members.find_by_login_and_target(login_id.strip(), channel, normalized)
        if member is None:
            logger.info(f"Password reset requested for unknown account at {mask_target(normalized)}")
            return
        await self._issue_silently(normalized, VerificationPurpose.RESET_PASSWORD)

    async def confirm_password_reset(self, login_id: str, target: str, code: str) -> str:
        """Consume the RESET_PASSWORD code and mint a single-use reset token."""
        channel, normalized = normalize_target(target)
        await self.verification.verify(normalized, VerificationPurpose.RESET_PASSWORD, code)

        member = await self.members.find_by_login_and_target(login_id.strip(), channel, normalized)
        if member is None:
            logger.warning(f"Reset code verified but no account at {mask_target(normalized)}")
            raise NotFoundError(INVALID_CODE_MESSAGE)

        token = await self.reset_tokens.issue(member.id)
        logger.info(f"Reset token issued for member {member.id}")
        return token

    async def redeem(self, token: str, new_password: str) -> None:
        """Set a new password using a reset token. The token is spent either way.

        Raises:
            ValidationError: the new password is too weak (token untouched)
            InvalidTokenError: the token is absent, expired or already used
        """
        validate_password_strength(new_password)

        member_id = await self.reset_tokens.resolve(token)
        if member_id is None:
            logger.info("Reset token did not resolve")
            raise InvalidTokenError(INVALID_REQUEST_MESSAGE)

        try:
            if not await self.members.update_credential(member_id, new_password):
                raise InvalidTokenError(INVALID_REQUEST_MESSAGE)
        finally:
            await self.reset_tokens.revoke(token)
