"""Tunables for the stream engine."""

from dataclasses import dataclass, field

from agentcast.shared.rate_limiter import RateLimitRule


@dataclass(frozen=True)
class StreamSettings:
    max_viewers_per_stream: int = 1000
    line_limit: int = 500
    chat_limit: int = 200
    activity_limit: int = 50
    max_line_chars: int = 500
    max_chat_chars: int = 200
    inactivity_timeout_seconds: float = 300.0
    subscriber_queue_size: int = 256

    send_rule: RateLimitRule = field(default_factory=lambda: RateLimitRule(60, 100))
    connect_rule: RateLimitRule = field(default_factory=lambda: RateLimitRule(60, 10))
    create_rule: RateLimitRule = field(default_factory=lambda: RateLimitRule(3600, 10))
    chat_rule: RateLimitRule = field(default_factory=lambda: RateLimitRule(6, 1))
