"""Retrying storage reads and guarding delivery providers."""

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import ParamSpec, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from together.services.errors import StorageError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


# Exceptions that should trigger retry
RETRYABLE_EXCEPTIONS: tuple[type[BaseException], ...] = (StorageError,)


class CircuitOpenError(Exception):
    """The provider's circuit is open and the call was skipped."""

    pass


@dataclass
class CircuitBreaker:
    """Stops calling a delivery provider after repeated failures.

    After ``failure_threshold`` consecutive failures the circuit opens and
    calls fail fast with ``CircuitOpenError``. Once ``recovery_timeout`` has
    passed, one trial call is let through and its outcome closes or reopens
    the circuit.
    """

    name: str
    failure_threshold: int = 5
    recovery_timeout: float = 30.0

    failures: int = field(default=0, init=False)
    opened_at: float | None = field(default=None, init=False)
    _trial_running: bool = field(default=False, init=False)

    @property
    def is_open(self) -> bool:
        return self.opened_at is not None

    async def call(
        self,
        func: Callable[P, Awaitable[T]],
        *args: P.args,
        **kwargs: P.kwargs,
    ) -> T:
        """Run ``func`` unless the circuit is open."""
        if self.opened_at is not None:
            waited = time.monotonic() - self.opened_at
            if self._trial_running or waited < self.recovery_timeout:
                raise CircuitOpenError(f"{self.name} circuit is open")
            self._trial_running = True
            logger.info(f"{self.name} circuit letting a trial call through")

        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            self._record_failure(e)
            raise

        if self.opened_at is not None:
            logger.info(f"{self.name} circuit closed")
        self.reset()
        return result

    def _record_failure(self, error: Exception) -> None:
        self.failures += 1
        self._trial_running = False
        if self.opened_at is None and self.failures < self.failure_threshold:
            return
        if self.opened_at is None:
            logger.warning(f"{self.name} circuit opened after {self.failures} failures: {error}")
        self.opened_at = time.monotonic()

    def reset(self) -> None:
        self.failures = 0
        self.opened_at = None
        self._trial_running = False


async def with_retry(
    func: Callable[P, Awaitable[T]],
    *args: P.args,
    max_attempts: int = 2,
    min_wait: float = 0.05,
    max_wait: float = 1.0,
    **kwargs: P.kwargs,
) -> T:  # type: ignore[return-value]
    """Execute an idempotent async read with exponential backoff retry.

    Only ``RETRYABLE_EXCEPTIONS`` are retried; anything else propagates on the
    first failure. Writes must not be passed through here, since a write that
    timed out may still have been applied.

    Args:
        func: Async function to execute
        *args: Positional arguments for func
        max_attempts: Total attempts including the first call
        min_wait: Minimum wait between retries (seconds)
        max_wait: Maximum wait between retries (seconds)
        **kwargs: Keyword arguments for func

    Returns:
        Result from func

    Raises:
        The last exception if all retries fail
    """
    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=min_wait, min=min_wait, max=max_wait),
            retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS),
            reraise=True,
        ):
            with attempt:
                return await func(*args, **kwargs)
    except RetryError:
        raise  # Re-raise the last exception
