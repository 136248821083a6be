from __future__ import annotations

import asyncio
import random

from ..config import RotationConfig


def compute_backoff(
    attempt: int,
    base: float = 0.01,
    cap: float = 0.5,
    jitter: float = 0.01,
) -> float:
    """Compute capped exponential backoff with jitter."""
    delay = min(cap, base * (2 ** attempt))
    return delay + random.uniform(0, jitter)


async def schedule_retry(attempt: int, policy: RotationConfig | None = None) -> None:
    """Sleep for computed backoff delay before retrying."""
    policy = policy or RotationConfig()
    delay = compute_backoff(
        attempt, base=policy.base_delay, cap=policy.max_delay, jitter=policy.jitter
    )
    await asyncio.sleep(delay)
