"""Per-stream chat operations."""

from agentcast.domain.utils.formatting import sanitize_text
from agentcast.domain.utils.idgen import pseudonym_for
from agentcast.utils.app_errors import AppErrorCode, RateLimited, ValidationError

from ._base import BaseService
from .stream_models import ChatMessage, StreamEvent


class ChatOperations(BaseService):
    """Operations on the chat attached to each stream."""

    async def send_chat(self, conn_id: str, text: str) -> ChatMessage:
        """Post ``text`` to the chat of the stream ``conn_id`` is watching.

        Raises:
            ValidationError: Not subscribed, stream offline, or empty text.
            RateLimited: The connection's chat cooldown has not expired.
        """
        name = self.store.presence.stream_of(conn_id)
        if name is None:
            raise ValidationError(
                errcode=AppErrorCode.E_NOT_SUBSCRIBED,
                errmesg="Join a stream before chatting",
            )

        async with self.store.locks(name):
            if self.store.presence.stream_of(conn_id) != name:
                raise ValidationError(
                    errcode=AppErrorCode.E_NOT_SUBSCRIBED,
                    errmesg="Join a stream before chatting",
                )

            session = self._get_session(name)
            if session is None or not session.active:
                raise ValidationError(
                    errcode=AppErrorCode.E_STREAM_OFFLINE,
                    errmesg="Stream is offline",
                )

            decision = self.store.limiter.check("chat", conn_id, self.settings.chat_rule)
            if not decision:
                raise RateLimited(
                    "Slow down! Wait a few seconds between messages.",
                    retry_after=decision.retry_after,
                )

            cleaned = text[: self.settings.max_chat_chars].strip() if isinstance(text, str) else ""
            if not cleaned:
                raise ValidationError(
                    errcode=AppErrorCode.E_INVALID_TEXT,
                    errmesg="Message text is required",
                )

            message = ChatMessage(
                user=pseudonym_for(conn_id),
                text=sanitize_text(cleaned),
                time=int(self._now() * 1000),
            )
            self.store.chat_log(name).append(message)
            self._publish(name, StreamEvent.chat(message))
            return message

    def messages(self, name: str) -> list[ChatMessage]:
        return list(self.store.chat_logs.get(name, ()))
