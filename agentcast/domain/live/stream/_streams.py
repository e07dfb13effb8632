"""Stream ingest, token and lifecycle operations."""

import hmac
from collections import deque

from loguru import logger

from agentcast.domain.utils.formatting import format_clock, format_duration, sanitize_text
from agentcast.domain.utils.idgen import new_stream_token
from agentcast.schemas import LineType, StreamState
from agentcast.utils.app_errors import (
    AppErrorCode,
    AuthError,
    NotFoundError,
    RateLimited,
    ValidationError,
)

from ._base import BaseService
from .stream_models import (
    ActiveStreamSummary,
    Line,
    SendResult,
    StreamEvent,
    StreamInfo,
    StreamOverview,
    StreamSession,
    epoch_to_utc,
)


def _tokens_match(given: str | None, expected: str) -> bool:
    if not given:
        return False
    return hmac.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


class StreamOperations(BaseService):
    """Operations producers use to create and feed streams."""

    def _validate_line(self, text, line_type) -> LineType:
        if not isinstance(text, str) or not text:
            raise ValidationError(
                errcode=AppErrorCode.E_INVALID_TEXT,
                errmesg="Message text is required",
            )
        if len(text) > self.settings.max_line_chars:
            raise ValidationError(
                errcode=AppErrorCode.E_INVALID_TEXT,
                errmesg=f"Message too long (max {self.settings.max_line_chars} characters)",
            )

        try:
            return LineType(line_type)
        except ValueError:
            raise ValidationError(
                errcode=AppErrorCode.E_INVALID_TYPE,
                errmesg=f"Invalid type. Use: {', '.join(LineType.values())}",
            ) from None

    async def send(
        self,
        name: str,
        token: str | None,
        text: str,
        line_type: LineType | str = LineType.LOG,
        client_ip: str | None = None,
    ) -> SendResult:
        """Append a line to ``name``, creating the stream on first send.

        Returns:
            ``created`` with the new token for a first send, otherwise ``accepted``.

        Raises:
            ValidationError: Bad name, banned name, bad text or bad type.
            AuthError: The stream exists and ``token`` does not match.
            RateLimited: Per-name send limit or per-IP creation limit exceeded.
        """
        self._require_valid_name(name)
        self._require_not_banned(name)
        kind = self._validate_line(text, line_type)

        async with self.store.locks(name):
            # a ban may have landed while we waited for the lock
            self._require_not_banned(name)

            session = self._get_session(name)
            if session is None:
                return self._create_session(name, text, kind, client_ip)

            if not _tokens_match(token, session.token):
                logger.info("Rejected send with invalid token: stream={}", name)
                raise AuthError()

            decision = self.store.limiter.check("send", name, self.settings.send_rule)
            if not decision:
                raise RateLimited(
                    f"Rate limit exceeded: max {self.settings.send_rule.max_count} messages "
                    f"per {int(self.settings.send_rule.window_seconds)}s",
                    retry_after=decision.retry_after,
                )

            if self._update_state(session, StreamState.ACTIVE):
                self.store.activity.record(f"Stream resumed: {name}")

            self._append_line(session, text, kind)
            return SendResult(status="accepted")

    def _create_session(
        self,
        name: str,
        text: str,
        kind: LineType,
        client_ip: str | None,
    ) -> SendResult:
        if client_ip:
            decision = self.store.limiter.check("create", client_ip, self.settings.create_rule)
            if not decision:
                raise RateLimited(
                    f"Rate limit exceeded: max {self.settings.create_rule.max_count} new streams "
                    f"per {int(self.settings.create_rule.window_seconds)}s per IP",
                    retry_after=decision.retry_after,
                )

        now = self._now()
        session = StreamSession(
            name=name,
            token=new_stream_token(),
            started_at=now,
            last_activity=now,
            lines=deque(maxlen=self.settings.line_limit),
            active=False,
            peak_viewers=self.store.presence.count(name),
        )
        self._update_state(session, StreamState.ACTIVE, current=StreamState.ABSENT)
        self.store.sessions[name] = session
        self.store.stats.record_stream_created()
        self.store.activity.record(f"Stream started: {name}")

        self._append_line(session, text, kind)
        return SendResult(status="created", token=session.token)

    def _append_line(self, session: StreamSession, text: str, kind: LineType) -> Line:
        now = self._now()
        line = Line(time=format_clock(now), text=sanitize_text(text), type=kind)

        session.lines.append(line)
        session.total_messages += 1
        session.last_activity = now
        self.store.stats.record_message()

        self._publish(session.name, StreamEvent.line(line))
        return line

    async def rotate_token(self, name: str, old_token: str | None) -> str:
        """Swap ``name``'s token for a fresh one; the old token stops working at once."""
        async with self.store.locks(name):
            session = self._get_session(name)
            if session is None:
                raise NotFoundError()
            if not _tokens_match(old_token, session.token):
                raise AuthError()

            session.token = new_stream_token()
            self.store.activity.record(f"Token rotated: {name}")
            return session.token

    def info(self, name: str) -> StreamInfo:
        session = self._get_session(name)
        if session is None:
            return StreamInfo()

        return StreamInfo(
            active=session.active,
            viewer_count=self.store.presence.count(name),
            started_at=epoch_to_utc(session.started_at),
        )

    def lines(self, name: str) -> list[Line]:
        session = self._get_session(name)
        return list(session.lines) if session else []

    def list_active(self) -> list[ActiveStreamSummary]:
        now = self._now()
        summaries = [
            ActiveStreamSummary(
                name=session.name,
                viewers=self.store.presence.count(session.name),
                last_message=session.lines[-1].text if session.lines else None,
                total_messages=session.total_messages,
                duration=format_duration(now - session.started_at),
            )
            for session in self.store.sessions.values()
            if session.active
        ]
        summaries.sort(key=lambda s: s.viewers, reverse=True)
        return summaries

    def list_all(self) -> list[StreamOverview]:
        overviews = [
            StreamOverview(
                name=session.name,
                active=session.active,
                viewers=self.store.presence.count(session.name),
                peak_viewers=session.peak_viewers,
                total_messages=session.total_messages,
            )
            for session in self.store.sessions.values()
        ]
        overviews.sort(key=lambda s: s.viewers, reverse=True)
        return overviews

    async def timeout_sweep(self) -> list[str]:
        """Take active streams idle for longer than the inactivity timeout offline.

        Already-offline streams are skipped, so each timeout fires once.
        """
        timeout = self.settings.inactivity_timeout_seconds
        timed_out: list[str] = []

        for name in list(self.store.sessions):
            async with self.store.locks(name):
                session = self.store.sessions[name]
                if not session.active or self._now() - session.last_activity <= timeout:
                    continue

                self._update_state(session, StreamState.OFFLINE)
                self.store.activity.record(f"Stream timed out: {name}")
                timed_out.append(name)

        if timed_out:
            logger.info("Inactivity sweep took {} stream(s) offline", len(timed_out))
        return timed_out
