import pytest
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse

from agentcast.api.errors import app_error_handler, validation_exception_handler
from agentcast.api.v1.dependency import password_check
from agentcast.api.v1.routers import admin, report, stats, stream
from agentcast.api.v1.routers.viewer import ws_router
from agentcast.domain.live.stream import StreamService
from agentcast.shared.api import health
from agentcast.utils.app_errors import AppError

ADMIN_PASSWORD = "s3cret"


@pytest.fixture
def test_app(service: StreamService) -> FastAPI:
    """FastAPI app wired like main, minus lifespan and middleware."""
    app = FastAPI(default_response_class=ORJSONResponse)
    app.state.stream_service = service
    app.state.is_privileged = password_check(ADMIN_PASSWORD)

    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]

    app.include_router(health.router)
    for module in (stream, stats, report, admin):
        app.include_router(module.router, prefix="/api")
    app.include_router(ws_router)
    return app


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-Admin-Password": ADMIN_PASSWORD}
