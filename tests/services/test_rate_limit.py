"""Request throttling tests."""

from unittest.mock import patch

from together.services.rate_limit import (
    RATE_LIMIT_CONFIG,
    InMemoryRateLimiter,
    RateLimitType,
    rate_limit_headers,
)


async def test_limit_is_enforced_per_identifier():
    limiter = InMemoryRateLimiter()
    config = RATE_LIMIT_CONFIG[RateLimitType.CODE_REQUEST]

    for i in range(config.requests):
        result = await limiter.check("ip:1.2.3.4", RateLimitType.CODE_REQUEST)
        assert result.success
        assert result.remaining == config.requests - i - 1

    blocked = await limiter.check("ip:1.2.3.4", RateLimitType.CODE_REQUEST)
    assert not blocked.success
    assert "Retry-After" in rate_limit_headers(blocked)

    other = await limiter.check("ip:5.6.7.8", RateLimitType.CODE_REQUEST)
    assert other.success


async def test_types_have_separate_budgets():
    limiter = InMemoryRateLimiter()
    config = RATE_LIMIT_CONFIG[RateLimitType.CODE_REQUEST]

    for _ in range(config.requests):
        await limiter.check("ip:1.2.3.4", RateLimitType.CODE_REQUEST)

    result = await limiter.check("ip:1.2.3.4", RateLimitType.CODE_CONFIRM)
    assert result.success


async def test_reset_clears_counters():
    limiter = InMemoryRateLimiter()
    config = RATE_LIMIT_CONFIG[RateLimitType.RESET_REDEEM]

    for _ in range(config.requests):
        await limiter.check("ip:1.2.3.4", RateLimitType.RESET_REDEEM)
    limiter.reset()

    assert (await limiter.check("ip:1.2.3.4", RateLimitType.RESET_REDEEM)).success


async def test_idle_clients_are_swept():
    start = 1_700_000_000.0

    with patch("together.services.rate_limit.time.time", return_value=start):
        limiter = InMemoryRateLimiter(sweep_interval=60)
        for i in range(100):
            await limiter.check(f"ip:10.0.0.{i}", RateLimitType.CODE_REQUEST)
    assert len(limiter) == 100

    with patch("together.services.rate_limit.time.time", return_value=start + 61):
        await limiter.check("ip:5.6.7.8", RateLimitType.CODE_REQUEST)

    assert len(limiter) == 1


async def test_sweep_keeps_active_clients():
    start = 1_700_000_000.0

    with patch("together.services.rate_limit.time.time", return_value=start):
        limiter = InMemoryRateLimiter(sweep_interval=0)
        await limiter.check("ip:1.2.3.4", RateLimitType.CODE_REQUEST)

    with patch("together.services.rate_limit.time.time", return_value=start + 30):
        await limiter.check("ip:5.6.7.8", RateLimitType.CODE_REQUEST)

    assert len(limiter) == 2
