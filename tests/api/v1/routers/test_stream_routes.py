"""Tests for the producer and public stream endpoints."""

import httpx
import pytest
from fastapi import FastAPI

from agentcast.domain.live.stream import StreamService


@pytest.fixture
async def client(test_app: FastAPI):
    transport = httpx.ASGITransport(app=test_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def _create(client: httpx.AsyncClient, name: str = "Nova1") -> str:
    response = await client.post(f"/api/stream/{name}/send", json={"text": "hello"})
    assert response.status_code == 200
    return response.json()["results"]["token"]


class TestHealth:
    async def test_health(self, client: httpx.AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["results"] == "OK"


class TestSend:
    async def test_create_returns_token(self, client: httpx.AsyncClient):
        response = await client.post("/api/stream/Nova1/send", json={"text": "hello"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["results"]["status"] == "created"
        assert len(data["results"]["token"]) == 48

    async def test_accepted_with_token(self, client: httpx.AsyncClient):
        token = await _create(client)

        response = await client.post(
            "/api/stream/Nova1/send",
            params={"token": token},
            json={"text": "thinking...", "type": "thought"},
        )

        assert response.status_code == 200
        assert response.json()["results"] == {"status": "accepted", "token": None}

    async def test_invalid_token(self, client: httpx.AsyncClient):
        await _create(client)

        response = await client.post(
            "/api/stream/Nova1/send", params={"token": "nope"}, json={"text": "x"}
        )

        assert response.status_code == 401
        data = response.json()
        assert data["success"] is False
        assert data["errcode"] == "invalid_token"

    @pytest.mark.parametrize(
        ("name", "body", "errcode"),
        [
            ("x", {"text": "hello"}, "invalid_name"),
            ("Nova1", {}, "invalid_text"),
            ("Nova1", {"text": "x" * 501}, "invalid_text"),
            ("Nova1", {"text": "hi", "type": "yell"}, "invalid_type"),
        ],
    )
    async def test_validation_rejections(
        self, client: httpx.AsyncClient, name: str, body: dict, errcode: str
    ):
        response = await client.post(f"/api/stream/{name}/send", json=body)

        assert response.status_code == 400
        assert response.json()["errcode"] == errcode

    async def test_banned_is_forbidden(self, client: httpx.AsyncClient, service: StreamService):
        await service.ban("Nova1")

        response = await client.post("/api/stream/Nova1/send", json={"text": "hi"})

        assert response.status_code == 403
        assert response.json()["errcode"] == "banned"

    async def test_rate_limited_sets_retry_after(self, client: httpx.AsyncClient):
        token = await _create(client)
        for _ in range(100):
            await client.post("/api/stream/Nova1/send", params={"token": token}, json={"text": "x"})

        response = await client.post(
            "/api/stream/Nova1/send", params={"token": token}, json={"text": "x"}
        )

        assert response.status_code == 429
        assert response.json()["errcode"] == "rate_limited"
        assert int(response.headers["Retry-After"]) >= 1

    async def test_malformed_body(self, client: httpx.AsyncClient):
        response = await client.post(
            "/api/stream/Nova1/send",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422
        assert response.json()["errcode"] == "invalid_params"


class TestRotate:
    async def test_rotate(self, client: httpx.AsyncClient):
        token = await _create(client)

        response = await client.post("/api/stream/Nova1/rotate", params={"old_token": token})

        assert response.status_code == 200
        new_token = response.json()["results"]["token"]
        assert new_token != token

        stale = await client.post(
            "/api/stream/Nova1/send", params={"token": token}, json={"text": "x"}
        )
        assert stale.status_code == 401

    async def test_rotate_unknown(self, client: httpx.AsyncClient):
        response = await client.post("/api/stream/Ghost1/rotate", params={"old_token": "x"})

        assert response.status_code == 404
        assert response.json()["errcode"] == "not_found"


class TestQueries:
    async def test_info_unknown(self, client: httpx.AsyncClient):
        response = await client.get("/api/stream/Nobody/info")

        assert response.status_code == 200
        assert response.json()["results"] == {"active": False, "viewers": 0, "started_at": None}

    async def test_info_live(self, client: httpx.AsyncClient):
        await _create(client)

        response = await client.get("/api/stream/Nova1/info")

        results = response.json()["results"]
        assert results["active"] is True
        assert results["started_at"].endswith("+00:00")

    async def test_list_streams(self, client: httpx.AsyncClient):
        await _create(client, "Nova1")
        await _create(client, "Nova2")

        response = await client.get("/api/streams")

        streams = response.json()["results"]["streams"]
        assert {s["name"] for s in streams} == {"Nova1", "Nova2"}
        assert streams[0]["last_message"] == "hello"
        assert streams[0]["duration"] == "0s"

    async def test_stats(self, client: httpx.AsyncClient):
        await _create(client)

        response = await client.get("/api/stats")

        results = response.json()["results"]
        assert results["live_now"] == 1
        assert results["total_streams_today"] == 1
        assert results["leaderboard"][0]["name"] == "Nova1"


class TestReport:
    async def test_report(self, client: httpx.AsyncClient, service: StreamService):
        response = await client.post(
            "/api/report", json={"stream_name": "Nova1", "issue": "spam"}
        )

        assert response.status_code == 200
        assert service.admin_overview().activity[0].message.startswith("ABUSE REPORT")

    async def test_report_requires_issue(self, client: httpx.AsyncClient):
        response = await client.post("/api/report", json={"stream_name": "Nova1"})

        assert response.status_code == 422
