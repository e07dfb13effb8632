"""Stats and admin overview operations."""

from ._base import BaseService
from ._streams import StreamOperations
from .stream_models import (
    ActivityOut,
    AdminOverview,
    AdminStats,
    LeaderboardEntry,
    PublicStats,
    epoch_to_utc,
)

LEADERBOARD_SIZE = 10


class StatsOperations(BaseService):
    def _live_now(self) -> int:
        return sum(1 for session in self.store.sessions.values() if session.active)

    def public_stats(self) -> PublicStats:
        stats = self.store.stats.stats
        leaderboard = sorted(
            (
                LeaderboardEntry(
                    name=session.name,
                    active=session.active,
                    peak_viewers=session.peak_viewers,
                    total_messages=session.total_messages,
                )
                for session in self.store.sessions.values()
            ),
            key=lambda entry: entry.peak_viewers,
            reverse=True,
        )

        return PublicStats(
            live_now=self._live_now(),
            total_streams_today=stats.streams_today,
            total_messages_today=stats.messages_today,
            peak_concurrent_viewers=stats.peak_concurrent_viewers_today,
            all_time_peak_viewers=stats.peak_concurrent_viewers_all_time,
            leaderboard=leaderboard[:LEADERBOARD_SIZE],
        )

    def admin_overview(self) -> AdminOverview:
        stats = self.store.stats.stats

        return AdminOverview(
            stats=AdminStats(
                live_now=self._live_now(),
                total_streams_today=stats.streams_today,
                total_messages_today=stats.messages_today,
                peak_concurrent_viewers=stats.peak_concurrent_viewers_today,
                last_reset=epoch_to_utc(stats.last_reset),
            ),
            streams=StreamOperations(self.store).list_all(),
            banned=sorted(self.store.banned),
            activity=[
                ActivityOut(timestamp=entry.timestamp, message=entry.message)
                for entry in self.store.activity.entries()
            ],
        )

    def daily_reset(self) -> None:
        self.store.stats.daily_reset()
        self.store.activity.record("Daily stats reset")

    def maybe_daily_reset(self) -> bool:
        if not self.store.stats.maybe_daily_reset():
            return False

        self.store.activity.record("Daily stats reset")
        return True
