"""Viewer presence: which connection watches which stream."""

from loguru import logger

from agentcast.utils.app_errors import CapacityError


class PresenceTracker:
    """Per-stream viewer sets.

    A connection belongs to at most one stream's membership; joining a new
    stream drops it from the previous one.
    """

    def __init__(self, max_viewers: int = 1000):
        self.max_viewers = max_viewers
        self._members: dict[str, set[str]] = {}
        self._stream_of: dict[str, str] = {}
        self._total = 0

    def join(self, name: str, conn_id: str) -> int:
        """Add ``conn_id`` to ``name``'s viewers and return the new count.

        Raises:
            CapacityError: If the stream already has ``max_viewers`` viewers.
        """
        members = self._members.get(name)
        if members is not None and conn_id in members:
            return len(members)

        if members is not None and len(members) >= self.max_viewers:
            logger.info("Viewer cap reached: stream={} cap={}", name, self.max_viewers)
            raise CapacityError()

        previous = self._stream_of.get(conn_id)
        if previous is not None:
            self.leave(previous, conn_id)

        members = self._members.setdefault(name, set())
        members.add(conn_id)
        self._stream_of[conn_id] = name
        self._total += 1

        return len(members)

    def leave(self, name: str, conn_id: str) -> int:
        """Remove ``conn_id`` from ``name``. Safe to call for non-members."""
        members = self._members.get(name)
        if members is None or conn_id not in members:
            return len(members) if members else 0

        members.discard(conn_id)
        self._total -= 1
        if self._stream_of.get(conn_id) == name:
            del self._stream_of[conn_id]
        if not members:
            del self._members[name]
        return len(members)

    def count(self, name: str) -> int:
        return len(self._members.get(name, ()))

    def stream_of(self, conn_id: str) -> str | None:
        return self._stream_of.get(conn_id)

    def total(self) -> int:
        """Viewers across all streams."""
        return self._total
