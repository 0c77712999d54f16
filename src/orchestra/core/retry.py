"""Retry with exponential backoff around external model calls."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from rich.console import Console

console = Console(stderr=True)

T = TypeVar("T")

TRANSIENT_MARKERS = ("rate limit", "timeout")


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    initial_delay: float = 1.0
    max_delay: float = 8.0


def is_transient_error(error: BaseException) -> bool:
    """Rate-limit and timeout failures are retried; everything else is not."""
    message = str(error)
    return any(marker in message for marker in TRANSIENT_MARKERS)


class RetryController:
    """Runs an async operation, retrying transient failures with backoff.

    Non-transient failures, and transient ones once max_retries is spent,
    are re-raised unchanged.
    """

    def __init__(self, policy: Optional[RetryPolicy] = None):
        self.policy = policy or RetryPolicy()

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        retries = 0
        delay = self.policy.initial_delay

        while True:
            try:
                return await operation()
            except Exception as e:
                retries += 1
                if retries > self.policy.max_retries or not is_transient_error(e):
                    raise

                console.print(
                    f"  [yellow]WARN[/yellow] Retry {retries}/{self.policy.max_retries} "
                    f"after error: {e}"
                )
                await asyncio.sleep(delay)
                delay = min(delay * 2, self.policy.max_delay)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: Optional[RetryPolicy] = None,
) -> T:
    """Convenience wrapper: RetryController(policy).run(operation)."""
    return await RetryController(policy).run(operation)
