from fastapi import APIRouter

from agentcast.api.v1.dependency import Service
from agentcast.api.v1.schemas.base import ApiOut
from agentcast.domain.live.stream.stream_models import PublicStats

router = APIRouter()


@router.get("/stats")
async def public_stats(service: Service) -> ApiOut[PublicStats]:
    """Today's counters plus the all-time peak and a top-10 leaderboard."""
    return ApiOut[PublicStats](results=service.public_stats())
