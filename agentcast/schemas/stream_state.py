"""Common enums used across stream schemas."""

from enum import Enum


class StreamState(str, Enum):
    """Stream lifecycle states.

    State Transition Flow:

    ABSENT → ACTIVE ⇄ OFFLINE

    - ABSENT: Name never sent to. Not stored; a session exists only once created.
    - ACTIVE: Set by the first send for a name, or by an authenticated send to an
      offline session.
    - OFFLINE: Set by the inactivity sweep, an admin end, or a ban.

    A ban is an overlay, not a state: it blocks sends and joins for a name
    whatever the name's state is. Sessions are never deleted.
    """

    ABSENT = "absent"
    ACTIVE = "active"
    OFFLINE = "offline"

    def __str__(self) -> str:
        return self.value


class LineType(str, Enum):
    """Tag attached to each streamed line."""

    LOG = "log"
    TOOL = "tool"
    THOUGHT = "thought"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class StreamEventType(str, Enum):
    """Event names delivered to viewers over the socket."""

    STREAM_INIT = "stream:init"
    CHAT_INIT = "chat:init"
    LINE = "stream:line"
    CHAT = "chat:message"
    VIEWER_COUNT = "viewer:count"
    OFFLINE = "stream:offline"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


__all__ = ["LineType", "StreamEventType", "StreamState"]
