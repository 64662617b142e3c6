"""Bounded retry with a per-attempt time box and fixed backoff."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")


class RetryExhausted(Exception):
    """All attempts failed. ``errors`` holds one exception per attempt."""

    def __init__(self, operation: str, errors: list[BaseException]) -> None:
        last = errors[-1] if errors else None
        super().__init__(f"{operation} failed after {len(errors)} attempts: {last}")
        self.operation = operation
        self.errors = errors

    @property
    def attempts(self) -> int:
        return len(self.errors)

    @property
    def last_error(self) -> BaseException | None:
        return self.errors[-1] if self.errors else None

    @property
    def all_timed_out(self) -> bool:
        return bool(self.errors) and all(
            isinstance(e, asyncio.TimeoutError) for e in self.errors
        )


@dataclass
class RetryPolicy:
    """Retry settings for one call site.

    ``timeout`` bounds each attempt (seconds, None for no bound); ``delay`` is
    the pause between attempts. Exceptions outside ``retry_on`` propagate
    immediately.
    """

    max_attempts: int = 2
    timeout: float | None = 5.0
    delay: float = 1.0
    retry_on: tuple[type[BaseException], ...] = field(default=(Exception,))

    async def run(
        self,
        fn: Callable[[], Awaitable[T]],
        operation: str = "operation",
    ) -> T:
        errors: list[BaseException] = []
        attempts = max(1, self.max_attempts)

        for attempt in range(1, attempts + 1):
            try:
                if self.timeout is None:
                    return await fn()
                return await asyncio.wait_for(fn(), self.timeout)
            except asyncio.CancelledError:
                raise
            except self.retry_on as exc:
                errors.append(exc)
                if attempt < attempts:
                    log.warning(
                        "%s failed (attempt %d/%d): %s",
                        operation, attempt, attempts, _describe(exc),
                    )
                    await asyncio.sleep(self.delay)

        raise RetryExhausted(operation, errors)


def _describe(exc: BaseException) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return "timed out"
    return str(exc) or type(exc).__name__
