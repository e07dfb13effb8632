"""In-memory state owned by one StreamService instance."""

import asyncio
import time
from collections import deque
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from agentcast.shared.rate_limiter import FixedWindowRateLimiter

from .fanout import EventBus, Subscriber
from .presence import PresenceTracker
from .stats import ActivityLog, StatsAggregator
from .stream_models import ChatMessage, StreamSession
from .stream_settings import StreamSettings


class KeyedLocks:
    """One asyncio.Lock per stream name, kept only while someone holds or awaits it."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def __call__(self, name: str) -> AsyncIterator[asyncio.Lock]:
        lock = self._locks.get(name)
        if lock is None:
            lock = self._locks[name] = asyncio.Lock()
        self._users[name] = self._users.get(name, 0) + 1

        try:
            async with lock:
                yield lock
        finally:
            self._users[name] -= 1
            if not self._users[name]:
                del self._users[name]
                del self._locks[name]


class StreamStore:
    """Volatile registry state: sessions, chat logs, bans, presence, fan-out, limits."""

    def __init__(
        self,
        settings: StreamSettings | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings or StreamSettings()
        self.clock = clock

        self.sessions: dict[str, StreamSession] = {}
        self.chat_logs: dict[str, deque[ChatMessage]] = {}
        self.banned: set[str] = set()
        self.connections: dict[str, Subscriber] = {}

        self.locks = KeyedLocks()
        self.limiter = FixedWindowRateLimiter(clock=clock)
        self.presence = PresenceTracker(max_viewers=self.settings.max_viewers_per_stream)
        self.bus = EventBus()
        self.stats = StatsAggregator(clock=clock)
        self.activity = ActivityLog(limit=self.settings.activity_limit, clock=clock)

    def chat_log(self, name: str) -> deque[ChatMessage]:
        log = self.chat_logs.get(name)
        if log is None:
            log = self.chat_logs[name] = deque(maxlen=self.settings.chat_limit)
        return log
