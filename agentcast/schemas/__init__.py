"""Shared enums for the stream engine."""

from .stream_state import LineType, StreamEventType, StreamState

__all__ = [
    "LineType",
    "StreamEventType",
    "StreamState",
]
