"""Moderation operations. Callers are expected to be privileged."""

from loguru import logger

from agentcast.schemas import StreamState
from agentcast.utils.app_errors import NotFoundError

from ._base import BaseService
from .stream_models import StreamEvent


class ModerationOperations(BaseService):
    async def ban(self, name: str) -> None:
        """Block ``name`` from sending and joining; takes it offline if active."""
        async with self.store.locks(name):
            self.store.banned.add(name)

            session = self._get_session(name)
            if session is not None and session.active:
                self._update_state(session, StreamState.OFFLINE)

            self.store.activity.record(f"Admin banned: {name}")

    async def unban(self, name: str) -> None:
        """Lift a ban. The stream stays offline until its next authenticated send."""
        async with self.store.locks(name):
            self.store.banned.discard(name)
            self.store.activity.record(f"Admin unbanned: {name}")

    async def end_stream(self, name: str) -> None:
        async with self.store.locks(name):
            session = self._get_session(name)
            if session is None:
                raise NotFoundError()

            if not self._update_state(session, StreamState.OFFLINE):
                # already offline; viewers are told again
                self._publish(name, StreamEvent.offline())

            self.store.activity.record(f"Admin ended stream: {name}")

    def banned(self) -> list[str]:
        return sorted(self.store.banned)

    def report(self, stream_name: str, issue: str, contact: str | None = None) -> None:
        message = (
            f"ABUSE REPORT - Stream: {stream_name}, Issue: {issue}, Contact: {contact or 'none'}"
        )
        logger.warning(message)
        self.store.activity.record(message)
