"""Tests for the viewer WebSocket."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from agentcast.domain.live.stream import StreamService, StreamSettings
from agentcast.shared.rate_limiter import RateLimitRule


@pytest.fixture
def client(test_app: FastAPI):
    with TestClient(test_app) as client:
        yield client


def _create(client: TestClient, name: str = "Nova1") -> str:
    response = client.post(f"/api/stream/{name}/send", json={"text": "hello"})
    return response.json()["results"]["token"]


def _join(ws, name: str) -> list[dict]:
    ws.send_json({"event": "join", "name": name})
    return [ws.receive_json() for _ in range(3)]


class TestJoin:
    def test_join_receives_snapshot_then_count(self, client: TestClient):
        _create(client)

        with client.websocket_connect("/ws") as ws:
            init, chat_init, count = _join(ws, "Nova1")

        assert init["event"] == "stream:init"
        assert [line["text"] for line in init["data"]["lines"]] == ["hello"]
        assert chat_init == {"event": "chat:init", "data": {"messages": []}}
        assert count == {"event": "viewer:count", "data": {"count": 1}}

    def test_live_lines_follow_snapshot(self, client: TestClient):
        token = _create(client)

        with client.websocket_connect("/ws") as ws:
            _join(ws, "Nova1")
            client.post("/api/stream/Nova1/send", params={"token": token}, json={"text": "live"})

            event = ws.receive_json()

        assert event["event"] == "stream:line"
        assert event["data"]["text"] == "live"

    def test_join_invalid_name_sends_error_frame(self, client: TestClient):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "join", "name": "no"})
            error = ws.receive_json()

            # the socket stays usable
            init, _, _ = _join(ws, "Nova1")

        assert error == {
            "event": "error",
            "data": {
                "code": "invalid_name",
                "message": "Invalid stream name. Use 3-30 characters: letters, numbers, underscores.",
            },
        }
        assert init["event"] == "stream:init"

    def test_unknown_event_and_bad_json(self, client: TestClient):
        with client.websocket_connect("/ws") as ws:
            ws.send_text("{not json")
            bad_json = ws.receive_json()
            ws.send_json({"event": "dance"})
            unknown = ws.receive_json()

        assert bad_json["data"]["code"] == "invalid_params"
        assert unknown["data"]["code"] == "invalid_params"

    def test_viewer_counts_follow_joins_and_leaves(
        self, client: TestClient, service: StreamService
    ):
        _create(client)

        with client.websocket_connect("/ws") as first:
            _join(first, "Nova1")
            with client.websocket_connect("/ws") as second:
                _join(second, "Nova1")
                assert first.receive_json()["data"] == {"count": 2}

            assert first.receive_json()["data"] == {"count": 1}

        assert service.viewer_count("Nova1") == 0
        assert service.store.connections == {}


class TestChat:
    def test_chat_roundtrip(self, client: TestClient):
        _create(client)

        with client.websocket_connect("/ws") as ws:
            _join(ws, "Nova1")
            ws.send_json({"event": "chat:send", "text": "hi <all>"})
            message = ws.receive_json()

        assert message["event"] == "chat:message"
        assert message["data"]["text"] == "hi &lt;all&gt;"
        assert message["data"]["user"].startswith("anon_")

    def test_chat_before_join(self, client: TestClient):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "chat:send", "text": "hello?"})
            error = ws.receive_json()

        assert error["data"]["code"] == "not_subscribed"

    def test_chat_cooldown(self, client: TestClient):
        _create(client)

        with client.websocket_connect("/ws") as ws:
            _join(ws, "Nova1")
            ws.send_json({"event": "chat:send", "text": "one"})
            ws.receive_json()
            ws.send_json({"event": "chat:send", "text": "two"})
            error = ws.receive_json()

        assert error["data"] == {
            "code": "rate_limited",
            "message": "Slow down! Wait a few seconds between messages.",
        }


class TestOffline:
    def test_admin_end_reaches_viewer(
        self, client: TestClient, admin_headers: dict[str, str]
    ):
        _create(client)

        with client.websocket_connect("/ws") as ws:
            _join(ws, "Nova1")
            client.post("/api/admin/stream/Nova1/end", headers=admin_headers)
            event = ws.receive_json()

        assert event == {"event": "stream:offline", "data": {}}


class TestConnectLimit:
    @pytest.fixture
    def settings(self) -> StreamSettings:
        return StreamSettings(connect_rule=RateLimitRule(60, 1))

    def test_excess_connection_is_refused(self, client: TestClient):
        with client.websocket_connect("/ws") as ws:
            _join(ws, "Nova1")

            with client.websocket_connect("/ws") as refused:
                error = refused.receive_json()
                with pytest.raises(WebSocketDisconnect):
                    refused.receive_json()

        assert error["data"]["code"] == "rate_limited"
        assert error["data"]["message"] == "Too many connections"
