"""Health check endpoints."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from together.api.deps import ResetTokenStoreDep, SessionDep
from together.services.reset_tokens import ResetTokenStore

logger = logging.getLogger(__name__)

router = APIRouter()


async def _check_database(session) -> str | None:
    try:
        await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e!r}")
        return str(e)
    return None


async def _check_redis(store: ResetTokenStore) -> tuple[str, str | None]:
    if not store.enabled:
        return "disabled", None
    client = store.client
    if client is None:
        return "not_initialized", "Redis client not initialized"
    try:
        await client.ping()
    except Exception as e:
        logger.error(f"Redis health check failed: {e!r}")
        return "disconnected", str(e)
    return "connected", None


@router.get("")
async def health_check():
    """Basic health check - just confirms the service is running."""
    return {"status": "ok"}


@router.get("/db")
async def health_check_db(session: SessionDep):
    """Health check with database connectivity."""
    if await _check_database(session) is not None:
        return JSONResponse(
            status_code=503,
            content={"status": "error", "database": "disconnected"},
        )
    return {"status": "ok", "database": "connected"}


@router.get("/redis")
async def health_check_redis(store: ResetTokenStoreDep):
    """Health check for the reset token cache."""
    redis_status, error = await _check_redis(store)
    if error is not None:
        return JSONResponse(
            status_code=503,
            content={"status": "error", "redis": redis_status},
        )
    return {"status": "ok", "redis": redis_status}


@router.get("/ready")
async def readiness_check(session: SessionDep, store: ResetTokenStoreDep):
    """Readiness check for load balancers.

    Only the database is critical. Without Redis, reset tokens stop
    resolving but the service keeps answering, so it reports "degraded".
    """
    db_error = await _check_database(session)
    redis_status, redis_error = await _check_redis(store)

    response = {
        "status": "ok" if db_error is None and redis_error is None else "degraded",
        "database": "connected" if db_error is None else "disconnected",
        "redis": redis_status,
    }

    if db_error is not None:
        response["status"] = "error"
        return JSONResponse(status_code=503, content=response)
    return response
