"""Tests for inactivity timeout, reactivation and shutdown."""

import pytest

from agentcast.domain.live.stream import StreamService
from agentcast.domain.live.stream._streams import StreamOperations
from agentcast.schemas import StreamEventType, StreamState
from agentcast.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


class TestTimeoutSweep:
    async def test_idle_stream_goes_offline_exactly_once(self, service: StreamService, clock):
        await service.send("Nova1", None, "hello")
        viewers = [service.connect(f"cn_{i}") for i in range(3)]
        for viewer in viewers:
            await service.subscribe(viewer.conn_id, "Nova1")
            viewer.pending()
        # later joins broadcast counts to earlier viewers
        for viewer in viewers:
            viewer.pending()

        clock.advance(301)
        first = await service.timeout_sweep()
        second = await service.timeout_sweep()

        assert first == ["Nova1"]
        assert second == []
        assert service.info("Nova1").active is False
        for viewer in viewers:
            assert [e.event for e in viewer.pending()] == [StreamEventType.OFFLINE]
        timeouts = [
            a for a in service.admin_overview().activity if a.message == "Stream timed out: Nova1"
        ]
        assert len(timeouts) == 1

    async def test_recent_activity_keeps_stream_live(self, service: StreamService, clock):
        created = await service.send("Nova1", None, "hello")
        clock.advance(200)
        await service.send("Nova1", created.token, "still here")
        clock.advance(200)

        assert await service.timeout_sweep() == []
        assert service.info("Nova1").active is True

    async def test_exactly_at_timeout_is_not_idle(self, service: StreamService, clock):
        await service.send("Nova1", None, "hello")
        clock.advance(300)

        assert await service.timeout_sweep() == []


class TestReactivation:
    async def test_authenticated_send_reactivates(self, service: StreamService, clock):
        created = await service.send("Nova1", None, "hello")
        started = service.info("Nova1").started_at
        clock.advance(400)
        await service.timeout_sweep()

        result = await service.send("Nova1", created.token, "I'm back")

        info = service.info("Nova1")
        assert result.status == "accepted"
        assert info.active is True
        assert info.started_at > started
        assert service.admin_overview().activity[0].message == "Stream resumed: Nova1"
        assert [line.text for line in service.lines("Nova1")] == ["hello", "I&#x27;m back"]


class TestShutdown:
    async def test_shutdown_notifies_and_closes(self, service: StreamService):
        await service.send("Nova1", None, "hello")
        subscriber = service.connect("cn_a")
        await service.subscribe("cn_a", "Nova1")
        subscriber.pending()

        await service.shutdown()

        assert subscriber.closed is True
        assert [e.event for e in subscriber.pending()] == [StreamEventType.OFFLINE]


class TestStateTransitions:
    async def test_new_stream_starts_active(self, service: StreamService, clock):
        await service.send("Nova1", None, "hello")

        session = service.store.sessions["Nova1"]
        assert session.state == StreamState.ACTIVE
        assert session.started_at == clock.now

    async def test_illegal_transition_is_internal_error(self, service: StreamService):
        await service.send("Nova1", None, "hello")
        session = service.store.sessions["Nova1"]
        operations = StreamOperations(service.store)

        with pytest.raises(AppError) as exc_info:
            operations._update_state(session, StreamState.ABSENT)

        assert exc_info.value.errcode == AppErrorCode.E_INTERNAL_ERROR
        assert exc_info.value.status_code == HttpStatusCode.INTERNAL_SERVER_ERROR
        assert "active -> absent" in exc_info.value.errmesg
        assert session.state == StreamState.ACTIVE
