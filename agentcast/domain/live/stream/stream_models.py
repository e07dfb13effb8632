"""Stream domain models."""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

from agentcast.schemas import LineType, StreamEventType, StreamState


class Line(BaseModel):
    """One unit of streamed text."""

    time: str
    text: str
    type: LineType


class ChatMessage(BaseModel):
    user: str
    text: str
    time: int  # epoch milliseconds


@dataclass
class StreamSession:
    """Mutable per-name state. Only touched while holding the name's lock."""

    name: str
    token: str
    started_at: float
    last_activity: float
    lines: deque[Line]
    active: bool = True
    peak_viewers: int = 0
    total_messages: int = 0

    @property
    def state(self) -> StreamState:
        return StreamState.ACTIVE if self.active else StreamState.OFFLINE


@dataclass
class ActivityEntry:
    timestamp: str
    message: str


@dataclass
class GlobalStats:
    streams_today: int = 0
    messages_today: int = 0
    peak_concurrent_viewers_today: int = 0
    peak_concurrent_viewers_all_time: int = 0
    last_reset: float = field(default=0.0)


class StreamEvent(BaseModel):
    """Event delivered to subscribers of one stream."""

    event: StreamEventType
    data: dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        return {"event": self.event.value, "data": self.data}

    @classmethod
    def line(cls, line: Line) -> "StreamEvent":
        return cls(event=StreamEventType.LINE, data=line.model_dump(mode="json"))

    @classmethod
    def chat(cls, message: ChatMessage) -> "StreamEvent":
        return cls(event=StreamEventType.CHAT, data=message.model_dump(mode="json"))

    @classmethod
    def viewer_count(cls, count: int) -> "StreamEvent":
        return cls(event=StreamEventType.VIEWER_COUNT, data={"count": count})

    @classmethod
    def offline(cls) -> "StreamEvent":
        return cls(event=StreamEventType.OFFLINE)

    @classmethod
    def stream_init(cls, lines: list[Line]) -> "StreamEvent":
        return cls(
            event=StreamEventType.STREAM_INIT,
            data={"lines": [line.model_dump(mode="json") for line in lines]},
        )

    @classmethod
    def chat_init(cls, messages: list[ChatMessage]) -> "StreamEvent":
        return cls(
            event=StreamEventType.CHAT_INIT,
            data={"messages": [message.model_dump(mode="json") for message in messages]},
        )

    @classmethod
    def error(cls, code: str, message: str) -> "StreamEvent":
        return cls(event=StreamEventType.ERROR, data={"code": code, "message": message})


class SendResult(BaseModel):
    status: Literal["created", "accepted"]
    token: str | None = None


class StreamInfo(BaseModel):
    active: bool = False
    viewer_count: int = 0
    started_at: datetime | None = None


class ActiveStreamSummary(BaseModel):
    name: str
    viewers: int
    last_message: str | None = None
    total_messages: int
    duration: str


class StreamOverview(BaseModel):
    name: str
    active: bool
    viewers: int
    peak_viewers: int
    total_messages: int


class LeaderboardEntry(BaseModel):
    name: str
    active: bool
    peak_viewers: int
    total_messages: int


class PublicStats(BaseModel):
    live_now: int
    total_streams_today: int
    total_messages_today: int
    peak_concurrent_viewers: int
    all_time_peak_viewers: int
    leaderboard: list[LeaderboardEntry]


class AdminStats(BaseModel):
    live_now: int
    total_streams_today: int
    total_messages_today: int
    peak_concurrent_viewers: int
    last_reset: datetime


class ActivityOut(BaseModel):
    timestamp: str
    message: str


class AdminOverview(BaseModel):
    stats: AdminStats
    streams: list[StreamOverview]
    banned: list[str]
    activity: list[ActivityOut]


def epoch_to_utc(ts: float) -> datetime:
    return datetime.fromtimestamp(ts, timezone.utc)
