import time

import pytest


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, start: float) -> None:
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(int(time.time()))


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path, monkeypatch):
    """Keep tests independent of any config file or database env vars."""
    monkeypatch.setenv("KEYSPACE_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.delenv("KEYSPACE_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
