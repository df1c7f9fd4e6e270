"""Tests for bounded database sessions."""

import asyncio

import pytest
from sqlalchemy import text

from together.database import bounded_session
from together.services.errors import StorageError


async def test_timeout_becomes_storage_error(session_factory):
    with pytest.raises(StorageError, match="timed out") as exc_info:
        async with bounded_session(session_factory, 0.05):
            await asyncio.sleep(1)

    assert isinstance(exc_info.value.__cause__, TimeoutError)


async def test_driver_error_becomes_storage_error(session_factory):
    with pytest.raises(StorageError, match="failed"):
        async with bounded_session(session_factory, 5.0) as session:
            await session.execute(text("SELECT * FROM no_such_table"))


async def test_other_errors_pass_through(session_factory):
    with pytest.raises(KeyError):
        async with bounded_session(session_factory, 5.0):
            raise KeyError("member")
