"""Day-scoped and all-time counters plus the admin activity log."""

import time
from collections import deque
from collections.abc import Callable
from datetime import datetime

from loguru import logger

from agentcast.domain.utils.formatting import format_timestamp

from .stream_models import ActivityEntry, GlobalStats


class ActivityLog:
    """Newest-first ring buffer of notable events."""

    def __init__(self, limit: int = 50, clock: Callable[[], float] = time.time):
        self._entries: deque[ActivityEntry] = deque(maxlen=limit)
        self._clock = clock

    def record(self, message: str) -> ActivityEntry:
        entry = ActivityEntry(timestamp=format_timestamp(self._clock()), message=message)
        self._entries.appendleft(entry)
        logger.info("[activity] {}", message)
        return entry

    def entries(self) -> list[ActivityEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class StatsAggregator:
    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self.stats = GlobalStats(last_reset=clock())

    def record_stream_created(self) -> None:
        self.stats.streams_today += 1

    def record_message(self) -> None:
        self.stats.messages_today += 1

    def record_concurrent_viewers(self, current: int) -> None:
        if current > self.stats.peak_concurrent_viewers_today:
            self.stats.peak_concurrent_viewers_today = current
        if current > self.stats.peak_concurrent_viewers_all_time:
            self.stats.peak_concurrent_viewers_all_time = current

    def daily_reset(self) -> None:
        self.stats.streams_today = 0
        self.stats.messages_today = 0
        self.stats.peak_concurrent_viewers_today = 0
        self.stats.last_reset = self._clock()

    def maybe_daily_reset(self) -> bool:
        """Reset once the local calendar date has moved past the last reset's date."""
        today = datetime.fromtimestamp(self._clock()).date()
        last = datetime.fromtimestamp(self.stats.last_reset).date()
        if today == last:
            return False

        self.daily_reset()
        return True
