"""Per-stream publish/subscribe fan-out.

Each viewer connection owns one ``Subscriber`` with a bounded outbound queue.
Publishing never waits: an event that does not fit in a subscriber's queue
marks that subscriber dropped, and its connection handler is expected to close
the connection and run the normal disconnect path.
"""

import asyncio

from loguru import logger

from .stream_models import StreamEvent


class SubscriberClosed(Exception):
    """Raised by ``Subscriber.get`` once the subscriber is closed and drained."""


class Subscriber:
    def __init__(self, conn_id: str, maxsize: int = 256):
        self.conn_id = conn_id
        self.stream: str | None = None
        self.dropped = False
        self._closed = False
        self._queue: asyncio.Queue[StreamEvent | None] = asyncio.Queue(maxsize=maxsize)

    @property
    def closed(self) -> bool:
        return self._closed

    def offer(self, event: StreamEvent) -> bool:
        """Enqueue without waiting. Returns False and marks dropped on overflow."""
        if self._closed or self.dropped:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped = True
            logger.warning(
                "Dropping slow subscriber: conn_id={} stream={} queued={}",
                self.conn_id,
                self.stream,
                self._queue.qsize(),
            )
            return False
        return True

    async def get(self) -> StreamEvent:
        if self.dropped:
            raise SubscriberClosed(self.conn_id)
        if self._closed and self._queue.empty():
            raise SubscriberClosed(self.conn_id)

        event = await self._queue.get()
        if event is None or self.dropped:
            raise SubscriberClosed(self.conn_id)
        return event

    def pending(self) -> list[StreamEvent]:
        """Drain queued events without waiting (test and shutdown helper)."""
        events = []
        while not self._queue.empty():
            event = self._queue.get_nowait()
            if event is not None:
                events.append(event)
        return events

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            # a full queue is drained by the reader, which then sees _closed
            self.dropped = True


class EventBus:
    """Channels keyed by stream name. Callers hold the stream's lock."""

    def __init__(self):
        self._channels: dict[str, dict[str, Subscriber]] = {}

    def attach(self, name: str, subscriber: Subscriber, snapshot: list[StreamEvent]) -> None:
        """Register ``subscriber`` on ``name`` and queue ``snapshot`` ahead of live events."""
        if subscriber.stream is not None and subscriber.stream != name:
            self.detach(subscriber.stream, subscriber)

        for event in snapshot:
            subscriber.offer(event)

        self._channels.setdefault(name, {})[subscriber.conn_id] = subscriber
        subscriber.stream = name

    def detach(self, name: str, subscriber: Subscriber) -> None:
        channel = self._channels.get(name)
        if channel is not None:
            channel.pop(subscriber.conn_id, None)
            if not channel:
                del self._channels[name]
        if subscriber.stream == name:
            subscriber.stream = None

    def publish(self, name: str, event: StreamEvent) -> int:
        """Deliver ``event`` to every subscriber of ``name``; returns the delivered count."""
        channel = self._channels.get(name)
        if not channel:
            return 0

        delivered = 0
        for subscriber in list(channel.values()):
            if subscriber.offer(event):
                delivered += 1
        return delivered

    def subscribers(self, name: str) -> list[Subscriber]:
        return list(self._channels.get(name, {}).values())

    def channels(self) -> list[str]:
        return list(self._channels)

    def close_all(self) -> None:
        for channel in list(self._channels.values()):
            for subscriber in channel.values():
                subscriber.close()
        self._channels.clear()
