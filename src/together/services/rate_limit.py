"""Per-client request throttling using a sliding window.

This only caps how often a client may call the recovery endpoints. Code
cooldowns and attempt limits are enforced by the verification service.
"""

import asyncio
import time
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum

from fastapi import Request


class RateLimitType(str, Enum):
    """Endpoint categories with separate budgets."""

    CODE_REQUEST = "code_request"
    CODE_CONFIRM = "code_confirm"
    RESET_REDEEM = "reset_redeem"


@dataclass
class RateLimitConfig:
    """Configuration for a rate limit type."""

    requests: int
    window_seconds: int


# Sending codes costs money per SMS, so requests get the tightest budget
RATE_LIMIT_CONFIG: dict[RateLimitType, RateLimitConfig] = {
    RateLimitType.CODE_REQUEST: RateLimitConfig(requests=10, window_seconds=60),
    RateLimitType.CODE_CONFIRM: RateLimitConfig(requests=30, window_seconds=60),
    RateLimitType.RESET_REDEEM: RateLimitConfig(requests=10, window_seconds=60),
}


@dataclass
class RateLimitResult:
    """Result of a rate limit check."""

    success: bool
    limit: int
    remaining: int
    reset: int  # Unix timestamp in seconds


class InMemoryRateLimiter:
    """Sliding-window limiter keyed by ``<type>:<identifier>``.

    Counters live in process memory, so each worker process throttles
    independently. Keys whose window has passed are swept at most once per
    ``sweep_interval`` seconds, so clients that never come back do not
    accumulate.
    """

    def __init__(self, sweep_interval: float = 60.0) -> None:
        self._requests: dict[str, list[float]] = defaultdict(list)
        self._lock = asyncio.Lock()
        self._sweep_interval = sweep_interval
        self._last_sweep = time.time()

    def __len__(self) -> int:
        return len(self._requests)

    async def check(
        self,
        identifier: str,
        limit_type: RateLimitType,
    ) -> RateLimitResult:
        """Record a request for ``identifier`` unless its window is full."""
        config = RATE_LIMIT_CONFIG[limit_type]
        key = f"{limit_type.value}:{identifier}"
        now = time.time()
        window_start = now - config.window_seconds

        async with self._lock:
            if now - self._last_sweep >= self._sweep_interval:
                self._sweep(now)

            timestamps = [t for t in self._requests[key] if t > window_start]
            self._requests[key] = timestamps

            if len(timestamps) >= config.requests:
                return RateLimitResult(
                    success=False,
                    limit=config.requests,
                    remaining=0,
                    reset=int(min(timestamps) + config.window_seconds),
                )

            timestamps.append(now)
            return RateLimitResult(
                success=True,
                limit=config.requests,
                remaining=config.requests - len(timestamps),
                reset=int(now + config.window_seconds),
            )

    def _sweep(self, now: float) -> int:
        """Drop keys with no request inside their window. Caller holds the lock."""
        stale = []
        for key, timestamps in self._requests.items():
            limit_type = RateLimitType(key.split(":", 1)[0])
            window = RATE_LIMIT_CONFIG[limit_type].window_seconds
            if not timestamps or timestamps[-1] <= now - window:
                stale.append(key)

        for key in stale:
            del self._requests[key]
        self._last_sweep = now
        return len(stale)

    def reset(self) -> None:
        """Forget all counters. Used by tests."""
        self._requests.clear()


_rate_limiter = InMemoryRateLimiter()


def get_rate_limiter() -> InMemoryRateLimiter:
    """Get the process-wide rate limiter."""
    return _rate_limiter


def get_client_ip(request: Request) -> str | None:
    """Extract the client IP, preferring proxy headers."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        # First entry is the client
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    if request.client:
        return request.client.host

    return None


async def check_rate_limit(request: Request, limit_type: RateLimitType) -> RateLimitResult:
    """Check the per-IP budget for ``limit_type``."""
    identifier = f"ip:{get_client_ip(request) or 'unknown'}"
    return await get_rate_limiter().check(identifier, limit_type)


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Build X-RateLimit-* headers, plus Retry-After when rejected."""
    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset),
    }

    if not result.success:
        headers["Retry-After"] = str(max(0, result.reset - int(time.time())))

    return headers
