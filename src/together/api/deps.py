"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from together.database import get_session, get_session_factory
from together.services.delivery import CodeDelivery
from together.services.members import MemberDirectory
from together.services.rate_limit import (
    RateLimitType,
    check_rate_limit,
    rate_limit_headers,
)
from together.services.recovery import CredentialRecoveryService
from together.services.reset_tokens import ResetTokenStore
from together.services.verification import VerificationService
from together.services.verification_store import VerificationStore

# Type alias for database session dependency
SessionDep = Annotated[AsyncSession, Depends(get_session)]

SessionFactoryDep = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]


def get_reset_token_store(request: Request) -> ResetTokenStore:
    """The reset token store created in the application lifespan."""
    return request.app.state.reset_tokens


def get_code_delivery() -> CodeDelivery:
    return CodeDelivery()


ResetTokenStoreDep = Annotated[ResetTokenStore, Depends(get_reset_token_store)]
CodeDeliveryDep = Annotated[CodeDelivery, Depends(get_code_delivery)]


def get_verification_service(
    session_factory: SessionFactoryDep,
    delivery: CodeDeliveryDep,
) -> VerificationService:
    return VerificationService(VerificationStore(session_factory), delivery)


def get_member_directory(session_factory: SessionFactoryDep) -> MemberDirectory:
    return MemberDirectory(session_factory)


VerificationServiceDep = Annotated[VerificationService, Depends(get_verification_service)]
MemberDirectoryDep = Annotated[MemberDirectory, Depends(get_member_directory)]


def get_recovery_service(
    verification: VerificationServiceDep,
    members: MemberDirectoryDep,
    reset_tokens: ResetTokenStoreDep,
) -> CredentialRecoveryService:
    return CredentialRecoveryService(verification, members, reset_tokens)


RecoveryServiceDep = Annotated[CredentialRecoveryService, Depends(get_recovery_service)]


class RateLimitDependency:
    """Dependency class for rate limiting endpoints.

    Usage:
        @router.post("/endpoint")
        async def endpoint(_rate_limit: CodeRequestRateLimit):
            ...
    """

    def __init__(self, limit_type: RateLimitType) -> None:
        self.limit_type = limit_type

    async def __call__(self, request: Request) -> None:
        """Check rate limit and raise 429 if exceeded."""
        result = await check_rate_limit(request, self.limit_type)

        if not result.success:
            headers = rate_limit_headers(result)
            retry_after = headers.get("Retry-After", "60")
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Rate limit exceeded. Please try again in {retry_after} seconds.",
                headers=headers,
            )


# Pre-configured rate limit dependencies
CodeRequestRateLimit = Annotated[None, Depends(RateLimitDependency(RateLimitType.CODE_REQUEST))]
CodeConfirmRateLimit = Annotated[None, Depends(RateLimitDependency(RateLimitType.CODE_CONFIRM))]
ResetRedeemRateLimit = Annotated[None, Depends(RateLimitDependency(RateLimitType.RESET_REDEEM))]
