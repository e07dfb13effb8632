"""End-to-end walk through one stream's life using the service directly."""

import pytest

from agentcast.domain.live.stream import StreamService
from agentcast.schemas import StreamEventType
from agentcast.utils.app_errors import AuthError


def _events(subscriber, kind: StreamEventType) -> list[dict]:
    return [e.data for e in subscriber.pending() if e.event == kind]


async def test_nova1_lifecycle(service: StreamService):
    # the creating send carries its own first line
    created = await service.send("Nova1", None, "boot")
    token = created.token
    assert created.status == "created"
    baseline = len(service.lines("Nova1"))

    # authenticated send
    result = await service.send("Nova1", token, "hi", "log")
    assert result.status == "accepted"
    assert len(service.lines("Nova1")) == baseline + 1

    # wrong token leaves the stream untouched
    with pytest.raises(AuthError):
        await service.send("Nova1", "wrong", "hijack")
    assert len(service.lines("Nova1")) == baseline + 1

    # three viewers join; the first sees every count broadcast
    first = service.connect("cn_1")
    second = service.connect("cn_2")
    third = service.connect("cn_3")
    await service.subscribe("cn_1", "Nova1")
    await service.subscribe("cn_2", "Nova1")
    await service.subscribe("cn_3", "Nova1")
    assert [d["count"] for d in _events(first, StreamEventType.VIEWER_COUNT)] == [1, 2, 3]
    second.pending()
    third.pending()

    # one leaves
    await service.disconnect("cn_3")
    assert [d["count"] for d in _events(first, StreamEventType.VIEWER_COUNT)] == [2]
    second.pending()

    # admin ends the stream; both remaining viewers are told
    await service.end_stream("Nova1")
    assert _events(first, StreamEventType.OFFLINE) == [{}]
    assert _events(second, StreamEventType.OFFLINE) == [{}]
    assert service.info("Nova1").active is False

    # the producer comes back with its token
    result = await service.send("Nova1", token, "back again")
    assert result.status == "accepted"
    assert service.info("Nova1").active is True
    assert service.info("Nova1").viewer_count == 2
