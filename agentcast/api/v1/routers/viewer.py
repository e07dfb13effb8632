"""Viewer WebSocket.

One socket per viewer. Client frames are ``{"event": "join", "name": ...}`` and
``{"event": "chat:send", "text": ...}``. Everything sent back to the client,
error frames included, goes through the connection's subscriber queue so
frames leave in the order they were produced.
"""

import asyncio

import orjson
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from loguru import logger
from starlette.websockets import WebSocketState

from agentcast.api.v1.dependency import ClientIp, Service
from agentcast.domain.live.stream import StreamService
from agentcast.domain.live.stream.fanout import Subscriber, SubscriberClosed
from agentcast.domain.live.stream.stream_models import StreamEvent
from agentcast.domain.utils.idgen import new_connection_id
from agentcast.utils.app_errors import AppError, AppErrorCode, RateLimited

# Mounted at the application root by main, not under the /api prefix
ws_router = APIRouter()


def _encode(event: StreamEvent) -> str:
    return orjson.dumps(event.to_wire()).decode("utf-8")


async def _write_events(websocket: WebSocket, subscriber: Subscriber) -> None:
    while True:
        try:
            event = await subscriber.get()
        except SubscriberClosed:
            return
        await websocket.send_text(_encode(event))


async def _handle_frame(
    service: StreamService, conn_id: str, subscriber: Subscriber, raw: str
) -> None:
    try:
        frame = orjson.loads(raw)
    except orjson.JSONDecodeError:
        subscriber.offer(StreamEvent.error(AppErrorCode.E_INVALID_PARAMS.value, "Malformed frame"))
        return

    if not isinstance(frame, dict):
        subscriber.offer(StreamEvent.error(AppErrorCode.E_INVALID_PARAMS.value, "Malformed frame"))
        return

    event = frame.get("event")
    try:
        if event == "join":
            name = frame.get("name")
            await service.subscribe(conn_id, name if isinstance(name, str) else "")
        elif event == "chat:send":
            text = frame.get("text")
            await service.send_chat(conn_id, text if isinstance(text, str) else "")
        else:
            subscriber.offer(
                StreamEvent.error(AppErrorCode.E_INVALID_PARAMS.value, f"Unknown event: {event}")
            )
    except AppError as exc:
        logger.debug("Viewer {} rejected: {} {}", conn_id, exc.errcode, exc.errmesg)
        subscriber.offer(StreamEvent.error(exc.errcode, exc.errmesg))


async def _read_frames(
    websocket: WebSocket, service: StreamService, conn_id: str, subscriber: Subscriber
) -> None:
    while True:
        try:
            raw = await websocket.receive_text()
        except WebSocketDisconnect:
            return
        await _handle_frame(service, conn_id, subscriber, raw)


@ws_router.websocket("/ws")
async def viewer_socket(websocket: WebSocket, service: Service, client_ip: ClientIp):
    await websocket.accept()
    conn_id = new_connection_id()

    try:
        subscriber = service.connect(conn_id, client_ip)
    except RateLimited as exc:
        logger.warning("Viewer connection refused: ip={} {}", client_ip, exc.errmesg)
        await websocket.send_text(_encode(StreamEvent.error(exc.errcode, exc.errmesg)))
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    reader = asyncio.create_task(_read_frames(websocket, service, conn_id, subscriber))
    writer = asyncio.create_task(_write_events(websocket, subscriber))

    try:
        await asyncio.wait({reader, writer}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (reader, writer):
            task.cancel()
        # leave presence before anything else can suspend this handler
        await service.disconnect(conn_id)

        results = await asyncio.gather(reader, writer, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception) and not isinstance(result, WebSocketDisconnect):
                logger.warning("Viewer {} socket error: {!r}", conn_id, result)

    # still open when the writer ended first: dropped as a slow consumer or shut down
    if websocket.application_state == WebSocketState.CONNECTED and (
        websocket.client_state == WebSocketState.CONNECTED
    ):
        await websocket.close(code=status.WS_1001_GOING_AWAY)
