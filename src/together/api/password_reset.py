"""Password reset endpoints.

Three steps: request a code, exchange the code for a reset token, redeem the
token with a new password. The token works once.
"""

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from together.api.deps import (
    CodeConfirmRateLimit,
    CodeRequestRateLimit,
    RecoveryServiceDep,
    ResetRedeemRateLimit,
)
from together.api.find_id import REQUEST_ACCEPTED_MESSAGE
from together.api.verification import MessageResponse, OkResponse
from together.services.errors import ValidationError

router = APIRouter()


class ResetRequest(BaseModel):
    """Request body for starting a password reset."""

    login_id: str = Field(min_length=1, max_length=20)
    target: str = Field(min_length=1, max_length=255)


class ResetConfirm(BaseModel):
    """Request body for exchanging a code for a reset token."""

    login_id: str = Field(min_length=1, max_length=20)
    target: str = Field(min_length=1, max_length=255)
    code: str = Field(min_length=1, max_length=10)


class ResetTokenResponse(BaseModel):
    ok: bool = True
    reset_token: str


class ResetRedeem(BaseModel):
    """Request body for setting the new password."""

    token: str = Field(min_length=1, max_length=128)
    new_password: str
    new_password_confirm: str


@router.post("/request", response_model=MessageResponse, status_code=status.HTTP_202_ACCEPTED)
async def request_reset(
    body: ResetRequest,
    service: RecoveryServiceDep,
    _rate_limit: CodeRequestRateLimit,
):
    """Send a code if the login id owns the target. Never reveals a match."""
    await service.request_password_reset_code(body.login_id, body.target)
    return MessageResponse(message=REQUEST_ACCEPTED_MESSAGE)


@router.post("/confirm", response_model=ResetTokenResponse)
async def confirm_reset(
    body: ResetConfirm,
    service: RecoveryServiceDep,
    _rate_limit: CodeConfirmRateLimit,
):
    """Check the code and return a reset token."""
    token = await service.confirm_password_reset(body.login_id, body.target, body.code)
    return ResetTokenResponse(reset_token=token)


@router.post("/redeem", response_model=OkResponse)
async def redeem_reset(
    body: ResetRedeem,
    service: RecoveryServiceDep,
    _rate_limit: ResetRedeemRateLimit,
):
    """Set a new password with a reset token."""
    if body.new_password != body.new_password_confirm:
        raise ValidationError("New password and confirmation differ")
    await service.redeem(body.token, body.new_password)
    return OkResponse()
