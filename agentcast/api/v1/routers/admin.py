"""Moderation endpoints, all behind the admin password."""

from fastapi import APIRouter, Depends

from agentcast.api.v1.dependency import Service, require_admin
from agentcast.api.v1.schemas.admin import EndStreamOut, ModerationOut
from agentcast.api.v1.schemas.base import ApiOut
from agentcast.domain.live.stream.stream_models import AdminOverview

router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


@router.get("/data")
async def admin_data(service: Service) -> ApiOut[AdminOverview]:
    return ApiOut[AdminOverview](results=service.admin_overview())


@router.post("/stream/{name}/end")
async def end_stream(name: str, service: Service) -> ApiOut[EndStreamOut]:
    await service.end_stream(name)
    return ApiOut[EndStreamOut](results=EndStreamOut(name=name))


@router.post("/ban/{name}")
async def ban_stream(name: str, service: Service) -> ApiOut[ModerationOut]:
    """Ban a name; a live stream under it goes offline right away."""
    await service.ban(name)
    return ApiOut[ModerationOut](results=ModerationOut(name=name, banned=True))


@router.post("/unban/{name}")
async def unban_stream(name: str, service: Service) -> ApiOut[ModerationOut]:
    await service.unban(name)
    return ApiOut[ModerationOut](results=ModerationOut(name=name, banned=False))
