"""Find-ID endpoints."""

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from together.api.deps import CodeConfirmRateLimit, CodeRequestRateLimit, RecoveryServiceDep
from together.api.verification import MessageResponse

router = APIRouter()

REQUEST_ACCEPTED_MESSAGE = "입력하신 정보와 일치하는 계정이 있으면 인증번호가 발송됩니다."


class FindIdRequest(BaseModel):
    """Request body for starting find-id."""

    name: str = Field(min_length=1, max_length=50)
    target: str = Field(min_length=1, max_length=255)


class FindIdConfirm(BaseModel):
    """Request body for finishing find-id."""

    name: str = Field(min_length=1, max_length=50)
    target: str = Field(min_length=1, max_length=255)
    code: str = Field(min_length=1, max_length=10)


class FindIdResponse(BaseModel):
    ok: bool = True
    login_id: str


@router.post("/request", response_model=MessageResponse, status_code=status.HTTP_202_ACCEPTED)
async def request_find_id(
    body: FindIdRequest,
    service: RecoveryServiceDep,
    _rate_limit: CodeRequestRateLimit,
):
    """Send a code if the name and target match an account.

    The response is identical whether or not an account matched.
    """
    await service.request_find_id_code(body.name, body.target)
    return MessageResponse(message=REQUEST_ACCEPTED_MESSAGE)


@router.post("/confirm", response_model=FindIdResponse)
async def confirm_find_id(
    body: FindIdConfirm,
    service: RecoveryServiceDep,
    _rate_limit: CodeConfirmRateLimit,
):
    """Check the code and reveal the masked login id."""
    login_id = await service.verify_and_reveal(body.name, body.target, body.code)
    return FindIdResponse(login_id=login_id)
