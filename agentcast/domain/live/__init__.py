"""
Live streaming domain logic.

Includes:
- stream: Stream registry, presence, fan-out, chat, moderation and stats.
"""
