from fastapi import APIRouter

from agentcast.api.v1.dependency import Service
from agentcast.api.v1.schemas.base import ApiOut
from agentcast.api.v1.schemas.stream import ReportIn

router = APIRouter()


@router.post("/report")
async def report_abuse(body: ReportIn, service: Service) -> ApiOut[str]:
    service.report(stream_name=body.stream_name, issue=body.issue, contact=body.contact)
    return ApiOut[str](results="OK")
