"""Background task processing."""

from together.tasks.maintenance import purge_expired_verification_codes
from together.tasks.queue import get_queue_settings, queue

__all__ = ["get_queue_settings", "purge_expired_verification_codes", "queue"]
