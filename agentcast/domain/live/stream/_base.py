"""Base service for stream operations."""

from loguru import logger

from agentcast.domain.utils.formatting import is_valid_stream_name
from agentcast.schemas import StreamState
from agentcast.utils.app_errors import AppError, AppErrorCode, HttpStatusCode, ValidationError

from ._store import StreamStore
from .stream_models import StreamEvent, StreamSession
from .stream_state_machine import StreamStateMachine


class BaseService:
    """Base service with shared stream operation helpers."""

    def __init__(self, store: StreamStore):
        self.store = store
        self.settings = store.settings

    def _now(self) -> float:
        return self.store.clock()

    def _require_valid_name(self, name: str) -> None:
        if not is_valid_stream_name(name):
            raise ValidationError(
                errcode=AppErrorCode.E_INVALID_NAME,
                errmesg="Invalid stream name. Use 3-30 characters: letters, numbers, underscores.",
            )

    def _require_not_banned(self, name: str) -> None:
        if name in self.store.banned:
            raise ValidationError(
                errcode=AppErrorCode.E_BANNED,
                errmesg="Agent banned from streaming",
                status_code=HttpStatusCode.FORBIDDEN,
            )

    def _get_session(self, name: str) -> StreamSession | None:
        return self.store.sessions.get(name)

    def _publish(self, name: str, event: StreamEvent) -> int:
        return self.store.bus.publish(name, event)

    def _broadcast_viewer_count(self, name: str) -> int:
        count = self.store.presence.count(name)
        self._publish(name, StreamEvent.viewer_count(count))
        return count

    def _update_state(
        self,
        session: StreamSession,
        new_state: StreamState,
        current: StreamState | None = None,
    ) -> bool:
        """Apply a state transition; caller holds the session's lock.

        ``current`` stands in for the session's own state while it is being
        created (``StreamState.ABSENT``). Returns False (no-op) if the session
        is already in ``new_state``.

        Raises:
            AppError: The state machine does not allow the transition.
        """
        current = current or session.state
        if current == new_state:
            return False

        if not StreamStateMachine.can_transition(current, new_state):
            valid = sorted(s.value for s in StreamStateMachine.get_valid_transitions(current))
            raise AppError(
                errcode=AppErrorCode.E_INTERNAL_ERROR,
                errmesg=(
                    f"Invalid state transition: {current.value} -> {new_state.value} "
                    f"(valid: {valid})"
                ),
                status_code=HttpStatusCode.INTERNAL_SERVER_ERROR,
            )

        session.active = new_state == StreamState.ACTIVE
        if new_state == StreamState.ACTIVE:
            session.started_at = self._now()
        else:
            self._publish(session.name, StreamEvent.offline())

        logger.debug("Stream {} state updated to {}", session.name, new_state.value)
        return True
