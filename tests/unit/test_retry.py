import pytest

from keyspace.config import RotationConfig
from keyspace.utils.retry import compute_backoff, schedule_retry


def test_compute_backoff_grows_and_caps():
    assert 0.01 <= compute_backoff(0, base=0.01, cap=1.0, jitter=0.0) <= 0.01
    assert compute_backoff(3, base=0.01, cap=1.0, jitter=0.0) == pytest.approx(0.08)
    assert compute_backoff(20, base=0.01, cap=0.5, jitter=0.0) == 0.5


def test_compute_backoff_jitter_bounds():
    for _ in range(20):
        delay = compute_backoff(1, base=0.1, cap=1.0, jitter=0.05)
        assert 0.2 <= delay <= 0.25


@pytest.mark.asyncio
async def test_schedule_retry_without_delay():
    await schedule_retry(5, RotationConfig(base_delay=0, jitter=0))
