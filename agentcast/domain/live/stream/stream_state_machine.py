"""Stream state machine for managing state transitions."""

from agentcast.schemas import StreamState


class StreamStateMachine:
    """State machine for stream sessions.

    State flow with triggers:
    - ABSENT -> ACTIVE (first send for an unclaimed name)
    - ACTIVE -> OFFLINE (inactivity sweep | admin end | ban)
    - OFFLINE -> ACTIVE (authenticated send)

    There are no terminal states: sessions live for the whole process lifetime.
    """

    TRANSITIONS: dict[StreamState, set[StreamState]] = {
        StreamState.ABSENT: {StreamState.ACTIVE},
        StreamState.ACTIVE: {StreamState.OFFLINE},
        StreamState.OFFLINE: {StreamState.ACTIVE},
    }

    @classmethod
    def can_transition(cls, current: StreamState, new: StreamState) -> bool:
        return new in cls.TRANSITIONS.get(current, set())

    @classmethod
    def get_valid_transitions(cls, state: StreamState) -> set[StreamState]:
        return cls.TRANSITIONS.get(state, set())
