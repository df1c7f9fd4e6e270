"""Map service errors onto HTTP responses.

Only the fixed messages below ever reach the client. The specific error is
logged by the service that raised it.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from together.services.errors import (
    INVALID_CODE_MESSAGE,
    INVALID_REQUEST_MESSAGE,
    InvalidTokenError,
    NotFoundError,
    RateLimitedError,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)

VALIDATION_MESSAGE = "입력값이 올바르지 않습니다."
RATE_LIMITED_MESSAGE = "잠시 후 다시 시도해주세요."
UNAVAILABLE_MESSAGE = "일시적인 오류입니다. 잠시 후 다시 시도해주세요."


def _error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": message}, headers=headers)


def register_error_handlers(app: FastAPI) -> None:
    """Register exception handlers for the recovery error taxonomy."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(_request: Request, exc: ValidationError) -> JSONResponse:
        logger.info(f"Rejected input: {exc}")
        return _error(422, VALIDATION_MESSAGE)

    @app.exception_handler(RateLimitedError)
    async def rate_limited_handler(_request: Request, exc: RateLimitedError) -> JSONResponse:
        headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after else None
        return _error(status.HTTP_429_TOO_MANY_REQUESTS, RATE_LIMITED_MESSAGE, headers)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(_request: Request, _exc: NotFoundError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, INVALID_CODE_MESSAGE)

    @app.exception_handler(InvalidTokenError)
    async def invalid_token_handler(_request: Request, _exc: InvalidTokenError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, INVALID_REQUEST_MESSAGE)

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        logger.error(f"Storage failure on {request.url.path}: {exc}")
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, UNAVAILABLE_MESSAGE)
