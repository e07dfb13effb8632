"""Viewer connection and subscription operations."""

from loguru import logger

from agentcast.utils.app_errors import NotFoundError, RateLimited

from ._base import BaseService
from .fanout import Subscriber
from .stream_models import StreamEvent


class ViewerOperations(BaseService):
    """Operations for viewer connections: connect, subscribe, disconnect."""

    def connect(self, conn_id: str, client_ip: str | None = None) -> Subscriber:
        """Register a viewer connection and return its outbound subscriber.

        Raises:
            RateLimited: The client IP opened too many connections recently.
        """
        if client_ip:
            decision = self.store.limiter.check("connect", client_ip, self.settings.connect_rule)
            if not decision:
                raise RateLimited("Too many connections", retry_after=decision.retry_after)

        subscriber = Subscriber(conn_id, maxsize=self.settings.subscriber_queue_size)
        self.store.connections[conn_id] = subscriber
        logger.debug("Viewer connected: conn_id={} ip={}", conn_id, client_ip)
        return subscriber

    async def subscribe(self, conn_id: str, name: str) -> int:
        """Point ``conn_id`` at ``name``: snapshot first, then live events.

        Leaves the connection's previous stream first. Returns the new viewer count.

        Raises:
            ValidationError: Bad or banned name.
            CapacityError: The stream is at its viewer cap.
            NotFoundError: ``conn_id`` was never connected.
        """
        self._require_valid_name(name)
        self._require_not_banned(name)

        subscriber = self.store.connections.get(conn_id)
        if subscriber is None:
            raise NotFoundError("Connection not registered")

        previous = self.store.presence.stream_of(conn_id) or subscriber.stream
        if previous is not None:
            await self._leave(previous, subscriber)

        async with self.store.locks(name):
            self._require_not_banned(name)

            count = self.store.presence.join(name, conn_id)

            session = self._get_session(name)
            lines = list(session.lines) if session else []
            messages = list(self.store.chat_logs.get(name, ()))
            snapshot = [StreamEvent.stream_init(lines), StreamEvent.chat_init(messages)]
            if session is not None and not session.active:
                snapshot.append(StreamEvent.offline())

            self.store.bus.attach(name, subscriber, snapshot)

            if session is not None and count > session.peak_viewers:
                session.peak_viewers = count
            self.store.stats.record_concurrent_viewers(self.store.presence.total())

            self._broadcast_viewer_count(name)
            return count

    async def _leave(self, name: str, subscriber: Subscriber) -> None:
        async with self.store.locks(name):
            self.store.presence.leave(name, subscriber.conn_id)
            self.store.bus.detach(name, subscriber)
            self._broadcast_viewer_count(name)

    async def disconnect(self, conn_id: str) -> None:
        """Drop a connection; idempotent."""
        subscriber = self.store.connections.pop(conn_id, None)
        if subscriber is None:
            return

        name = self.store.presence.stream_of(conn_id) or subscriber.stream
        if name is not None:
            await self._leave(name, subscriber)

        subscriber.close()
        logger.debug("Viewer disconnected: conn_id={} stream={}", conn_id, name)
