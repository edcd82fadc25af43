"""Explicit timeout/retry policy for asynchronous tasks."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class TaskPolicy:
    """How long a task may run and how often it is attempted.

    timeout_s=None means no timeout. attempts counts the first try.
    """

    timeout_s: float | None = None
    attempts: int = 1
    delay_s: float = 0.0


async def run_with_policy(
    fn: Callable[[], Awaitable[T]],
    policy: TaskPolicy,
    name: str = "task",
) -> T | None:
    """Run fn under policy; return its result, or None once attempts are exhausted."""
    for attempt in range(1, max(policy.attempts, 1) + 1):
        try:
            return await asyncio.wait_for(fn(), timeout=policy.timeout_s)
        except TimeoutError:
            logger.warning("%s timed out after %ss (attempt %d/%d)", name, policy.timeout_s, attempt, policy.attempts)
        except Exception as e:
            logger.error("%s failed (attempt %d/%d): %s", name, attempt, policy.attempts, e)
        if attempt < policy.attempts and policy.delay_s:
            await asyncio.sleep(policy.delay_s)
    return None
