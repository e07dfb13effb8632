"""
Stream engine: named sessions, presence, fan-out, chat, moderation and stats.
"""

from .stream_domain import StreamService
from .stream_settings import StreamSettings

__all__ = ["StreamService", "StreamSettings"]
