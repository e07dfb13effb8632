"""Producer-facing stream endpoints plus public read queries."""

from fastapi import APIRouter, Query

from agentcast.api.v1.dependency import ClientIp, Service
from agentcast.api.v1.schemas.base import ApiOut
from agentcast.api.v1.schemas.stream import (
    ActiveStreamOut,
    ListStreamsOut,
    RotateTokenOut,
    SendLineIn,
    SendLineOut,
    StreamInfoOut,
)

router = APIRouter()


@router.get("/streams")
async def list_streams(service: Service) -> ApiOut[ListStreamsOut]:
    """Active streams, most watched first."""
    streams = [
        ActiveStreamOut(
            name=summary.name,
            viewers=summary.viewers,
            last_message=summary.last_message,
            total_messages=summary.total_messages,
            duration=summary.duration,
        )
        for summary in service.list_active()
    ]
    return ApiOut[ListStreamsOut](results=ListStreamsOut(streams=streams))


@router.get("/stream/{name}/info")
async def stream_info(name: str, service: Service) -> ApiOut[StreamInfoOut]:
    """Stream status; unknown names get the inactive defaults rather than a 404."""
    info = service.info(name)
    return ApiOut[StreamInfoOut](
        results=StreamInfoOut(
            active=info.active,
            viewers=info.viewer_count,
            started_at=info.started_at,
        )
    )


@router.post("/stream/{name}/send")
async def send_line(
    name: str,
    body: SendLineIn,
    service: Service,
    client_ip: ClientIp,
    token: str | None = Query(None, description="Stream token; omit for the first send"),
) -> ApiOut[SendLineOut]:
    """Append a line to a stream.

    The first send for an unclaimed name creates the stream and returns its
    token. Later sends must present that token.
    """
    result = await service.send(
        name=name,
        token=token,
        text=body.text,
        line_type=body.type,
        client_ip=client_ip,
    )
    return ApiOut[SendLineOut](results=SendLineOut(status=result.status, token=result.token))


@router.post("/stream/{name}/rotate")
async def rotate_token(
    name: str,
    service: Service,
    old_token: str | None = Query(None, description="Current stream token"),
) -> ApiOut[RotateTokenOut]:
    """Replace the stream token; the old token stops working immediately."""
    token = await service.rotate_token(name=name, old_token=old_token)
    return ApiOut[RotateTokenOut](results=RotateTokenOut(token=token))
