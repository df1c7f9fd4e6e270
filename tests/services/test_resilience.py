"""Circuit breaker tests."""

import pytest

from together.services.resilience import CircuitBreaker, CircuitOpenError


async def ok() -> str:
    return "sent"


async def fail() -> str:
    raise ConnectionError("provider down")


async def trip(breaker: CircuitBreaker) -> None:
    for _ in range(breaker.failure_threshold):
        with pytest.raises(ConnectionError):
            await breaker.call(fail)


async def test_opens_after_threshold():
    breaker = CircuitBreaker("sens", failure_threshold=3, recovery_timeout=60)

    await trip(breaker)

    assert breaker.is_open
    with pytest.raises(CircuitOpenError):
        await breaker.call(ok)


async def test_success_resets_failure_count():
    breaker = CircuitBreaker("sens", failure_threshold=3)

    with pytest.raises(ConnectionError):
        await breaker.call(fail)
    assert await breaker.call(ok) == "sent"

    assert breaker.failures == 0
    assert not breaker.is_open


async def test_trial_call_closes_circuit():
    breaker = CircuitBreaker("sens", failure_threshold=2, recovery_timeout=0)
    await trip(breaker)

    assert await breaker.call(ok) == "sent"
    assert not breaker.is_open


async def test_failed_trial_reopens_circuit():
    breaker = CircuitBreaker("sens", failure_threshold=2, recovery_timeout=0)
    await trip(breaker)

    with pytest.raises(ConnectionError):
        await breaker.call(fail)

    assert breaker.is_open
