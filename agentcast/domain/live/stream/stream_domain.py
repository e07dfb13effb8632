"""Stream domain service - in-memory stream engine."""

import time
from collections.abc import Callable

from loguru import logger

from agentcast.schemas import LineType

from ._chat import ChatOperations
from ._moderation import ModerationOperations
from ._stats import StatsOperations
from ._store import StreamStore
from ._streams import StreamOperations
from ._viewers import ViewerOperations
from .fanout import Subscriber
from .stream_models import (
    ActiveStreamSummary,
    AdminOverview,
    ChatMessage,
    Line,
    PublicStats,
    SendResult,
    StreamEvent,
    StreamInfo,
)
from .stream_settings import StreamSettings


class StreamService:
    """Facade over one volatile stream registry.

    Build one per application, keep it on ``app.state`` and call ``shutdown``
    on the way out. All state is lost when the instance goes away.
    """

    def __init__(
        self,
        settings: StreamSettings | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = StreamStore(settings=settings, clock=clock)
        self._streams = StreamOperations(self.store)
        self._viewers = ViewerOperations(self.store)
        self._chat = ChatOperations(self.store)
        self._moderation = ModerationOperations(self.store)
        self._stats = StatsOperations(self.store)

    @property
    def settings(self) -> StreamSettings:
        return self.store.settings

    # ==================== STREAMS ====================

    async def send(
        self,
        name: str,
        token: str | None,
        text: str,
        line_type: LineType | str = LineType.LOG,
        client_ip: str | None = None,
    ) -> SendResult:
        """Create-or-append a line for ``name``.

        Raises ValidationError, AuthError or RateLimited.
        """
        return await self._streams.send(
            name=name,
            token=token,
            text=text,
            line_type=line_type,
            client_ip=client_ip,
        )

    async def rotate_token(self, name: str, old_token: str | None) -> str:
        """Raises NotFoundError for unknown names and AuthError on mismatch."""
        return await self._streams.rotate_token(name=name, old_token=old_token)

    def info(self, name: str) -> StreamInfo:
        """Snapshot of one stream; defaults for unknown names, never raises."""
        return self._streams.info(name)

    def lines(self, name: str) -> list[Line]:
        return self._streams.lines(name)

    def list_active(self) -> list[ActiveStreamSummary]:
        return self._streams.list_active()

    async def timeout_sweep(self) -> list[str]:
        return await self._streams.timeout_sweep()

    # ==================== VIEWERS ====================

    def connect(self, conn_id: str, client_ip: str | None = None) -> Subscriber:
        """Raises RateLimited when ``client_ip`` connects too often."""
        return self._viewers.connect(conn_id=conn_id, client_ip=client_ip)

    async def subscribe(self, conn_id: str, name: str) -> int:
        """Raises ValidationError, CapacityError or NotFoundError."""
        return await self._viewers.subscribe(conn_id=conn_id, name=name)

    async def disconnect(self, conn_id: str) -> None:
        await self._viewers.disconnect(conn_id)

    def viewer_count(self, name: str) -> int:
        return self.store.presence.count(name)

    # ==================== CHAT ====================

    async def send_chat(self, conn_id: str, text: str) -> ChatMessage:
        """Raises ValidationError or RateLimited."""
        return await self._chat.send_chat(conn_id=conn_id, text=text)

    def chat_messages(self, name: str) -> list[ChatMessage]:
        return self._chat.messages(name)

    # ==================== MODERATION ====================

    async def ban(self, name: str) -> None:
        await self._moderation.ban(name)

    async def unban(self, name: str) -> None:
        await self._moderation.unban(name)

    async def end_stream(self, name: str) -> None:
        """Raises NotFoundError for unknown names."""
        await self._moderation.end_stream(name)

    def banned(self) -> list[str]:
        return self._moderation.banned()

    def report(self, stream_name: str, issue: str, contact: str | None = None) -> None:
        self._moderation.report(stream_name=stream_name, issue=issue, contact=contact)

    # ==================== STATS ====================

    def public_stats(self) -> PublicStats:
        return self._stats.public_stats()

    def admin_overview(self) -> AdminOverview:
        return self._stats.admin_overview()

    def daily_reset(self) -> None:
        self._stats.daily_reset()

    def maybe_daily_reset(self) -> bool:
        return self._stats.maybe_daily_reset()

    # ==================== MAINTENANCE ====================

    def purge_rate_windows(self) -> int:
        purged = self.store.limiter.purge_expired()
        if purged:
            logger.debug("Purged {} expired rate windows", purged)
        return purged

    async def shutdown(self) -> None:
        """Tell every channel the stream is going away and close all subscribers."""
        channels = self.store.bus.channels()
        for name in channels:
            async with self.store.locks(name):
                self.store.bus.publish(name, StreamEvent.offline())

        self.store.bus.close_all()
        for subscriber in self.store.connections.values():
            subscriber.close()

        logger.info("Stream service shut down: notified {} channel(s)", len(channels))
