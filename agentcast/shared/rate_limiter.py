"""
In-memory fixed-window rate limiter.

Windows are keyed by ``(namespace, key)`` so one limiter instance can serve
unrelated limits (per-name sends, per-IP connects, per-connection chat...).

Semantics of ``check``:
- no window, or the window's reset time has passed -> open a fresh window
  with ``count=1`` and allow
- ``count >= max_count`` -> deny
- otherwise increment and allow

Expired windows behave exactly like absent ones, so ``purge_expired`` can drop
them at any time without changing any decision.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger


@dataclass(frozen=True)
class RateLimitRule:
    """A ``max_count`` per ``window_seconds`` budget."""

    window_seconds: float
    max_count: int

    def __post_init__(self):
        if self.window_seconds <= 0:
            raise ValueError(f"window_seconds must be > 0 (got {self.window_seconds})")
        if self.max_count <= 0:
            raise ValueError(f"max_count must be > 0 (got {self.max_count})")


@dataclass
class RateWindow:
    count: int
    reset_time: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after: float = 0.0

    def __bool__(self) -> bool:
        return self.allowed


class FixedWindowRateLimiter:
    """Fixed-window counters; all methods are synchronous and never suspend."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._windows: dict[tuple[str, str], RateWindow] = {}

    def check(self, namespace: str, key: str, rule: RateLimitRule) -> RateLimitDecision:
        now = self._clock()
        slot = (namespace, key)
        window = self._windows.get(slot)

        if window is None or now > window.reset_time:
            self._windows[slot] = RateWindow(count=1, reset_time=now + rule.window_seconds)
            return RateLimitDecision(allowed=True, remaining=rule.max_count - 1)

        if window.count >= rule.max_count:
            retry_after = max(0.0, window.reset_time - now)
            logger.debug(
                "Rate limited: namespace={} key={} count={} retry_after={:.1f}s",
                namespace,
                key,
                window.count,
                retry_after,
            )
            return RateLimitDecision(allowed=False, remaining=0, retry_after=retry_after)

        window.count += 1
        return RateLimitDecision(allowed=True, remaining=rule.max_count - window.count)

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [slot for slot, window in self._windows.items() if now > window.reset_time]
        for slot in expired:
            del self._windows[slot]
        return len(expired)

    def __len__(self) -> int:
        return len(self._windows)
