"""Generic verification code endpoints.

FIND_ID and RESET_PASSWORD codes are bound to an account and only go through
the find-id and password-reset flows, which never reveal whether the account
exists. Accepting them here would let the cooldown answer leak that.
"""

from fastapi import APIRouter, status
from pydantic import BaseModel, Field, field_validator

from together.api.deps import CodeConfirmRateLimit, CodeRequestRateLimit, VerificationServiceDep
from together.models import VerificationPurpose

router = APIRouter()

ACCOUNT_BOUND_PURPOSES = frozenset(
    {VerificationPurpose.FIND_ID, VerificationPurpose.RESET_PASSWORD}
)


class CodeRequest(BaseModel):
    """Request body for issuing a code."""

    target: str = Field(min_length=1, max_length=255, description="Email address or mobile number")
    purpose: VerificationPurpose

    @field_validator("purpose")
    @classmethod
    def purpose_not_account_bound(cls, v: VerificationPurpose) -> VerificationPurpose:
        if v in ACCOUNT_BOUND_PURPOSES:
            raise ValueError(f"{v.value} codes are issued by their own recovery endpoint")
        return v


class CodeConfirm(CodeRequest):
    """Request body for checking a code."""

    code: str = Field(min_length=1, max_length=10)


class MessageResponse(BaseModel):
    message: str


class OkResponse(BaseModel):
    ok: bool = True


@router.post("/request", response_model=MessageResponse, status_code=status.HTTP_202_ACCEPTED)
async def request_code(
    body: CodeRequest,
    service: VerificationServiceDep,
    _rate_limit: CodeRequestRateLimit,
):
    """Issue a SIGNUP or CHANGE_PHONE code. Answers 429 during the resend cooldown."""
    await service.issue(body.target, body.purpose)
    return MessageResponse(message="인증번호가 발송되었습니다.")


@router.post("/confirm", response_model=OkResponse)
async def confirm_code(
    body: CodeConfirm,
    service: VerificationServiceDep,
    _rate_limit: CodeConfirmRateLimit,
):
    """Consume a code. Any failure answers with the same 400."""
    await service.verify(body.target, body.purpose, body.code)
    return OkResponse()
