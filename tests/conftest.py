"""Pytest configuration and fixtures."""

import os
from collections.abc import AsyncGenerator
from datetime import timedelta

# Set test environment before importing app
os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from argon2 import PasswordHasher
from argon2.exceptions import VerificationError
from fakeredis import aioredis as fake_aioredis
from httpx import ASGITransport, AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

from together.api.deps import get_code_delivery, get_reset_token_store
from together.database import get_session, get_session_factory
from together.main import app
from together.models import Member, VerificationChannel, VerificationCode
from together.models.base import utcnow
from together.services.members import MemberDirectory
from together.services.rate_limit import get_rate_limiter
from together.services.recovery import CredentialRecoveryService
from together.services.reset_tokens import ResetTokenStore
from together.services.verification import VerificationService
from together.services.verification_store import VerificationStore

MEMBER_PASSWORD = "oldpass123!"


def password_matches(plain_password: str, password_hash: str | None) -> bool:
    """Check a stored argon2 hash the way a login would."""
    if not password_hash:
        return False
    try:
        return PasswordHasher().verify(password_hash, plain_password)
    except VerificationError:
        return False


async def expire_all(session_factory) -> None:
    """Move every stored verification code past its expiry."""
    async with session_factory() as session:
        await session.execute(
            update(VerificationCode).values(expires_at=utcnow() - timedelta(seconds=1))
        )
        await session.commit()


class RecordingDelivery:
    """Delivery channel that keeps sent codes in memory instead of sending them."""

    def __init__(self) -> None:
        self.sent: list[tuple[VerificationChannel, str, str]] = []

    def dispatch(self, channel: VerificationChannel, target: str, code: str) -> None:
        self.sent.append((channel, target, code))

    def last_code(self, target: str) -> str:
        for _, sent_to, code in reversed(self.sent):
            if sent_to == target:
                return code
        raise AssertionError(f"No code was sent to {target}")


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Start each test with empty request throttling counters."""
    get_rate_limiter().reset()
    yield
    get_rate_limiter().reset()


@pytest.fixture
async def test_engine(tmp_path):
    """A throwaway SQLite database file per test.

    A file rather than ``:memory:`` so every pooled connection sees the same
    data, which the concurrency tests rely on.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def redis_client():
    client = fake_aioredis.FakeRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def reset_tokens(redis_client) -> ResetTokenStore:
    return ResetTokenStore(redis_client)


@pytest.fixture
def delivery() -> RecordingDelivery:
    return RecordingDelivery()


@pytest.fixture
def store(session_factory) -> VerificationStore:
    return VerificationStore(session_factory)


@pytest.fixture
def verification(store, delivery) -> VerificationService:
    return VerificationService(store, delivery)  # type: ignore[arg-type]


@pytest.fixture
def members(session_factory) -> MemberDirectory:
    return MemberDirectory(session_factory)


@pytest.fixture
def recovery(verification, members, reset_tokens) -> CredentialRecoveryService:
    return CredentialRecoveryService(verification, members, reset_tokens)


@pytest.fixture
async def member(members: MemberDirectory) -> Member:
    """An active member reachable by phone and email."""
    return await members.create(
        login_id="hong1234",
        name="홍길동",
        email="hong@example.com",
        phone_number="01012345678",
        password=MEMBER_PASSWORD,
    )


@pytest.fixture
async def client(
    session_factory,
    reset_tokens: ResetTokenStore,
    delivery: RecordingDelivery,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client bound to the per-test database and fake Redis."""

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_reset_token_store] = lambda: reset_tokens
    app.dependency_overrides[get_code_delivery] = lambda: delivery

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
