import os
from datetime import datetime

import pytest

from agentcast.domain.live.stream import StreamService, StreamSettings

# Keep tests independent of a developer's env.local
os.environ.update({"APP_ENV": "test", "DEBUG": "false", "LOGFIRE_ENABLE": "false"})


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, start: float):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """Clock starting at local noon so a one-day advance always crosses midnight once."""
    return FakeClock(datetime(2026, 3, 2, 12, 0, 0).timestamp())


@pytest.fixture
def settings() -> StreamSettings:
    return StreamSettings()


@pytest.fixture
def service(settings: StreamSettings, clock: FakeClock) -> StreamService:
    return StreamService(settings=settings, clock=clock)
