"""Member account lookups used by credential recovery."""

import logging

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from together.config import settings
from together.database import bounded_session
from together.models import Member, MemberStatus, MemberType, VerificationChannel
from together.models.base import utcnow
from together.services.passwords import hash_password

logger = logging.getLogger(__name__)


class MemberDirectory:
    """Finds members by their recovery identifiers and updates credentials.

    Withdrawn accounts are invisible to every lookup.
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

    @staticmethod
    def _target_clause(channel: VerificationChannel, target: str):
        if channel == VerificationChannel.EMAIL:
            return func.lower(Member.email) == target
        return Member.phone_number == target

    async def _first(self, *conditions) -> Member | None:
        stmt = select(Member).where(
            Member.status == MemberStatus.ACTIVE,
            *conditions,
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            return result.scalars().first()

    async def find_by_login_and_target(
        self,
        login_id: str,
        channel: VerificationChannel,
        target: str,
    ) -> Member | None:
        """Member owning ``login_id`` whose email or phone equals ``target``."""
        return await self._first(
            Member.login_id == login_id,
            self._target_clause(channel, target),
        )

    async def find_by_name_and_target(
        self,
        name: str,
        channel: VerificationChannel,
        target: str,
    ) -> Member | None:
        """Member called ``name`` whose email or phone equals ``target``."""
        return await self._first(
            Member.name == name,
            self._target_clause(channel, target),
        )

    async def get_by_login_id(self, login_id: str) -> Member | None:
        return await self._first(Member.login_id == login_id)

    async def update_credential(self, member_id: str, new_password: str) -> bool:
        """Store a new password hash. Returns False if the member is gone."""
        stmt = (
            update(Member)
            .where(
                Member.id == member_id,  # type: ignore[arg-type]
                Member.status == MemberStatus.ACTIVE,  # type: ignore[arg-type]
            )
            .values(password_hash=hash_password(new_password), updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            await session.commit()

        updated = result.rowcount == 1
        if updated:
            logger.info(f"Password updated for member {member_id}")
        else:
            logger.warning(f"Password update matched no active member {member_id}")
        return updated

    async def create(
        self,
        *,
        login_id: str,
        name: str,
        email: str,
        phone_number: str,
        password: str | None = None,
        member_type: MemberType = MemberType.GENERAL,
    ) -> Member:
        """Create a member. Used by the CLI and tests."""
        member = Member(
            login_id=login_id,
            name=name,
            email=email.lower(),
            phone_number=phone_number,
            password_hash=hash_password(password) if password else None,
            member_type=member_type,
            is_approved=member_type != MemberType.INSURANCE,
        )
        async with self._session() as session:
            session.add(member)
            await session.commit()
        return member

    async def list_members(self, limit: int = 100) -> list[Member]:
        stmt = select(Member).order_by(Member.created_at.desc()).limit(limit)  # type: ignore[attr-defined]
        async with self._session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())
