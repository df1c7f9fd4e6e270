"""Maintenance background tasks for cleanup operations."""

import logging
from datetime import timedelta
from typing import Any

from together.config import settings
from together.database import get_session_factory
from together.models.base import utcnow
from together.services.errors import StorageError
from together.services.verification_store import VerificationStore

logger = logging.getLogger(__name__)

# Timeout for maintenance tasks (5 minutes)
MAINTENANCE_TIMEOUT_SECONDS = 5 * 60


async def purge_expired_verification_codes(
    ctx: dict[str, Any],
    retention_hours: int | None = None,
    store: VerificationStore | None = None,
) -> dict[str, Any]:
    """Delete verification codes that expired more than ``retention_hours`` ago.

    Args:
        ctx: SAQ context
        retention_hours: Keep expired codes this long (defaults to settings)
        store: Store to purge (defaults to one on the application database)

    Returns:
        Dict with purge results
    """
    hours = retention_hours if retention_hours is not None else settings.verification_retention_hours
    store = store or VerificationStore(get_session_factory(), timeout=MAINTENANCE_TIMEOUT_SECONDS)
    cutoff = utcnow() - timedelta(hours=hours)

    try:
        deleted = await store.purge_expired(cutoff)
    except StorageError as e:
        error = f"Verification code purge failed: {e}"
        logger.exception(error)
        return {"success": False, "error": error}

    return {
        "success": True,
        "retention_hours": hours,
        "cutoff": cutoff.isoformat(),
        "deleted": deleted,
    }


# Set SAQ job timeout
purge_expired_verification_codes.timeout = MAINTENANCE_TIMEOUT_SECONDS  # type: ignore[attr-defined]
