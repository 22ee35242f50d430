"""Attempt/backoff loop for background jobs.

Each attempt is reduced to an :class:`AttemptResult` first; only
:func:`run_with_retry` decides what an outcome means for the next attempt.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from docgen.core.errors import DocumentGenerationError

T = TypeVar("T")


class RetryPolicy:
    def __init__(self, *, attempts: int = 3, backoff_seconds: float = 30.0) -> None:
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self.attempts = attempts
        self.backoff_seconds = backoff_seconds


class AttemptOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    TRANSIENT_FAILURE = "transient_failure"
    PERMANENT_FAILURE = "permanent_failure"


class AttemptResult(Generic[T]):
    def __init__(
        self,
        attempt: int,
        outcome: AttemptOutcome,
        *,
        value: Optional[T] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        self.attempt = attempt
        self.outcome = outcome
        self.value = value
        self.error = error


def classify_exception(exc: BaseException) -> AttemptOutcome:
    """Domain errors carry their own ``transient`` flag; anything unexpected is retried."""
    if isinstance(exc, DocumentGenerationError):
        return (
            AttemptOutcome.TRANSIENT_FAILURE
            if exc.transient
            else AttemptOutcome.PERMANENT_FAILURE
        )
    return AttemptOutcome.TRANSIENT_FAILURE


async def attempt_once(func: Callable[[], Awaitable[T]], attempt: int) -> AttemptResult[T]:
    try:
        value = await func()
    except Exception as exc:
        return AttemptResult(attempt, classify_exception(exc), error=exc)
    return AttemptResult(attempt, AttemptOutcome.SUCCEEDED, value=value)


async def run_with_retry(
    func: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
    on_failure: Optional[Callable[[AttemptResult[Any]], None]] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Call ``func`` until it succeeds, fails permanently or attempts run out.

    The last error is re-raised once no further attempt will be made.
    """
    attempt = 0
    while True:
        attempt += 1
        result = await attempt_once(func, attempt)
        if result.outcome is AttemptOutcome.SUCCEEDED:
            return result.value  # type: ignore[return-value]

        if on_failure is not None:
            on_failure(result)

        if result.outcome is AttemptOutcome.PERMANENT_FAILURE or attempt >= policy.attempts:
            raise result.error  # type: ignore[misc]

        await sleep(policy.backoff_seconds)


__all__ = [
    "AttemptOutcome",
    "AttemptResult",
    "RetryPolicy",
    "attempt_once",
    "classify_exception",
    "run_with_retry",
]
