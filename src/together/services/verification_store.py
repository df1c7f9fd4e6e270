"""Durable storage for issued verification codes."""

import logging
from datetime import datetime, timedelta

from sqlalchemy import delete, func, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from together.config import settings
from together.database import bounded_session
from together.models import VerificationChannel, VerificationCode, VerificationPurpose
from together.models.base import utcnow

logger = logging.getLogger(__name__)


class VerificationStore:
    """Persists verification codes and applies their state transitions.

    Each operation runs in its own session and commits before returning, so
    concurrent requests never share a unit of work. The store applies no policy;
    the verification service decides cooldowns and lockouts.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        timeout: float | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._timeout = timeout if timeout is not None else settings.storage_timeout_seconds

    def _session(self):
        return bounded_session(self._session_factory, self._timeout)

    async def create(
        self,
        channel: VerificationChannel,
        target: str,
        purpose: VerificationPurpose,
        code: str,
        ttl_seconds: int,
    ) -> VerificationCode:
        """Persist a new unused code expiring ``ttl_seconds`` from now."""
        now = utcnow()
        record = VerificationCode(
            channel=channel,
            target=target,
            purpose=purpose,
            code=code,
            created_at=now,
            updated_at=now,
            expires_at=now + timedelta(seconds=ttl_seconds),
        )
        async with self._session() as session:
            session.add(record)
            await session.commit()
        return record

    async def find_active(
        self,
        target: str,
        purpose: VerificationPurpose,
        max_attempts: int | None = None,
    ) -> VerificationCode | None:
        """Return the newest record for (target, purpose) if it is still usable.

        Only the newest record counts. Once it is consumed, expired or locked,
        older records it superseded never become usable again. When
        ``max_attempts`` is given, a record that reached it is not returned.
        """
        newest = (
            select(VerificationCode.id)
            .where(
                VerificationCode.target == target,
                VerificationCode.purpose == purpose,
            )
            .order_by(VerificationCode.created_at.desc())  # type: ignore[attr-defined]
            .limit(1)
            .scalar_subquery()
        )
        conditions = [
            VerificationCode.id == newest,
            VerificationCode.is_used == False,  # noqa: E712
            VerificationCode.expires_at > utcnow(),
        ]
        if max_attempts is not None:
            conditions.append(VerificationCode.attempts < max_attempts)

        async with self._session() as session:
            result = await session.execute(select(VerificationCode).where(*conditions))
            return result.scalar_one_or_none()

    async def has_recent(
        self,
        target: str,
        purpose: VerificationPurpose,
        since: datetime,
    ) -> bool:
        """Check for an active record for (target, purpose) created after ``since``."""
        stmt = select(func.count()).where(
            VerificationCode.target == target,
            VerificationCode.purpose == purpose,
            VerificationCode.is_used == False,  # noqa: E712
            VerificationCode.expires_at > utcnow(),
            VerificationCode.created_at > since,
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            return result.scalar_one() > 0

    async def increment_attempts(self, record_id: str, max_attempts: int) -> int | None:
        """Atomically spend one attempt on a live record. Called before comparing.

        The increment only applies while the record is unused, unexpired and
        below ``max_attempts``, so concurrent guesses can never spend more
        than ``max_attempts`` in total. Returns the new count, or None when
        the record can no longer be attempted.
        """
        stmt = (
            update(VerificationCode)
            .where(
                VerificationCode.id == record_id,  # type: ignore[arg-type]
                VerificationCode.is_used == False,  # type: ignore[arg-type]  # noqa: E712
                VerificationCode.attempts < max_attempts,  # type: ignore[arg-type]
                VerificationCode.expires_at > utcnow(),  # type: ignore[arg-type]
            )
            .values(attempts=VerificationCode.attempts + 1, updated_at=utcnow())
            .returning(VerificationCode.attempts)
            .execution_options(synchronize_session=False)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            attempts = result.scalar_one_or_none()
            await session.commit()
        return attempts

    async def mark_used(self, record_id: str) -> bool:
        """Flip ``is_used`` to true if it is still false and the record is unexpired.

        Returns True only for the call that performed the transition, so two
        concurrent callers can never both observe success.
        """
        stmt = (
            update(VerificationCode)
            .where(
                VerificationCode.id == record_id,  # type: ignore[arg-type]
                VerificationCode.is_used == False,  # type: ignore[arg-type]  # noqa: E712
                VerificationCode.expires_at > utcnow(),  # type: ignore[arg-type]
            )
            .values(is_used=True, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount == 1

    async def purge_expired(self, before: datetime) -> int:
        """Delete records that expired before ``before``. Returns the row count."""
        stmt = delete(VerificationCode).where(
            VerificationCode.expires_at < before,  # type: ignore[arg-type]
        ).execution_options(synchronize_session=False)
        async with self._session() as session:
            result = await session.execute(stmt)
            await session.commit()
        logger.info(f"Purged {result.rowcount} verification codes expired before {before}")
        return result.rowcount
