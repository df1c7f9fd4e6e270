"""SAQ queue configuration for background tasks."""

from saq import CronJob, Queue

from together.config import settings

# Main task queue
queue = Queue.from_url(settings.redis_url)

# Every 30 minutes
PURGE_CRON = "*/30 * * * *"


def get_queue_settings() -> dict:
    """Get SAQ queue settings for the worker."""
    # Import here to avoid circular imports
    from together.tasks.maintenance import purge_expired_verification_codes

    return {
        "queue": queue,
        "functions": [purge_expired_verification_codes],
        "cron_jobs": [CronJob(purge_expired_verification_codes, cron=PURGE_CRON)],
        "concurrency": 2,
        "startup": startup,
        "shutdown": shutdown,
    }


async def startup(_ctx: dict) -> None:
    """Called when worker starts."""
    pass


async def shutdown(_ctx: dict) -> None:
    """Called when worker shuts down."""
    from together.database import close_db

    await close_db()
