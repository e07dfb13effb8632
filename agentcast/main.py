import time
import traceback
import uuid
from contextlib import asynccontextmanager
from os import environ

import logfire
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from granian import Granian
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from agentcast.api.errors import app_error_handler, validation_exception_handler
from agentcast.api.v1.dependency import password_check
from agentcast.api.v1.routers.viewer import ws_router
from agentcast.app_config import get_app_environ_config
from agentcast.domain.live.stream import StreamService
from agentcast.shared.api.utils import api_failure, init_logger, load_routes
from agentcast.utils.app_errors import AppError, AppErrorCode
from agentcast.workers.maintenance import MaintenanceScheduler

app_config = get_app_environ_config()


class HTTPLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore
        start_time = time.time()
        request_id = str(uuid.uuid4())[:8]

        logger.info(f"[{request_id}] {request.method} {request.url.path}")

        try:
            response = await call_next(request)

            process_time = (time.time() - start_time) * 1000
            logger.info(
                f"[{request_id}] {request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Duration: {process_time:.2f}ms"
            )

            return response

        except Exception as exc:
            process_time = (time.time() - start_time) * 1000
            logger.error(
                f"[{request_id}] Unhandled exception in {request.method} {request.url.path} - "
                f"Duration: {process_time:.2f}ms - "
                f"Error: {type(exc).__name__}: {exc}\n"
                f"Traceback:\n{traceback.format_exc()}"
            )

            if app_config.is_production:
                errmesg = f"Internal server error (request_id: {request_id})"
            else:
                errmesg = f"{type(exc).__name__}: {exc} (request_id: {request_id})"

            failure = api_failure(errcode=AppErrorCode.E_INTERNAL_ERROR.value, errmesg=errmesg)
            return ORJSONResponse(status_code=500, content=failure.model_dump())


@asynccontextmanager
async def lifespan(server: FastAPI):
    init_logger()

    logger.info("Application startup...")

    server.state.stream_service = StreamService(settings=app_config.stream_settings())
    server.state.is_privileged = password_check(app_config.ADMIN_PASSWORD)
    if not app_config.ADMIN_PASSWORD:
        logger.warning("ADMIN_PASSWORD is not set, admin routes will reject every request")

    load_routes(server, "/api")

    scheduler = MaintenanceScheduler(
        server.state.stream_service,
        interval=app_config.MAINTENANCE_INTERVAL_SECONDS,
    )
    scheduler.start()

    if app_config.LOGFIRE_ENABLE:
        logger.info("Logfire initializing")

        logfire.configure(
            token=app_config.LOGFIRE_TOKEN,
            service_name="agentcast",
            service_version=environ.get("BUILD_COMMIT") or "dev",
        )

        logger.info("Logfire instrument fastapi")
        logfire.instrument_fastapi(server, capture_headers=True)

        logger.info("Logfire instrument pydantic")
        logfire.instrument_pydantic()

    yield

    logger.info("Application shutdown...")

    await scheduler.stop()
    await server.state.stream_service.shutdown()


app = FastAPI(
    version="1.0",
    title="AgentCast API",
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

app.add_middleware(HTTPLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,  # type: ignore
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(ws_router)

app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore
app.add_exception_handler(AppError, app_error_handler)  # type: ignore


def build_granian_kwargs():
    kwargs = {
        "interface": "asgi",
        "address": app_config.API_HOST,
        "port": app_config.API_PORT,
        "workers": app_config.API_WORKERS,
        "reload": app_config.DEBUG,
    }

    return kwargs


if __name__ == "__main__":
    granian_kwargs = build_granian_kwargs()
    Granian("agentcast.main:app", **granian_kwargs).serve()
