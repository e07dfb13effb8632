import inspect
import sys
from functools import lru_cache
from importlib import import_module
from os import environ
from pathlib import Path
from traceback import TracebackException
from typing import Any, Literal
from uuid import uuid4

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse
from loguru import logger
from pydantic import BaseModel, Field

from agentcast.utils.app_errors import AppErrorCode

from ..config import config

PACKAGE_DIR = Path(__file__).parent.parent.parent


def format_error(ex: BaseException) -> str:
    return "".join(TracebackException.from_exception(ex).format())


class ApiResponse(BaseModel):
    version: str | None = Field(default_factory=lambda: environ.get("BUILD_COMMIT", "dev"))


class ApiSuccess(ApiResponse):
    success: Literal[True] = True
    results: Any = "OK"


class ApiFailure(ApiResponse):
    success: Literal[False] = False
    errcode: str = AppErrorCode.E_INTERNAL_ERROR.value
    erresid: str = Field(default_factory=lambda: uuid4().hex[:10])
    errmesg: str = "We are sorry, an error occurred."


def api_failure(
    errcode: str | None = None,
    errmesg: Exception | str | None = None,
    *,
    trace: Any = None,
) -> ApiFailure:
    if not errcode:
        errcode = str(ApiFailure.model_fields["errcode"].default)

    if isinstance(errmesg, Exception):
        errmesg = format_error(errmesg)

    if not errmesg:
        errmesg = str(ApiFailure.model_fields["errmesg"].default)

    failure = ApiFailure(errcode=errcode, errmesg=errmesg)

    caller_frame = inspect.stack()[1]
    module = inspect.getmodule(caller_frame.frame)
    module_name = module.__name__ if module else caller_frame.filename
    caller_info = f"{module_name}:{caller_frame.function}:{caller_frame.lineno}"

    logger.warning(
        f"{failure.errcode} {failure.erresid}\n{failure.errmesg} caller={caller_info} trace={trace}"
    )

    return failure


def make_response(
    results: ApiSuccess | ApiFailure,
    *,
    status_code: int | None = None,
    headers: dict[str, str] | None = None,
) -> ORJSONResponse:
    if status_code is None:
        if isinstance(results, ApiFailure):
            status_code = 500 if results.errcode == AppErrorCode.E_INTERNAL_ERROR.value else 400
        else:
            status_code = 200

    return ORJSONResponse(status_code=status_code, content=results.model_dump(), headers=headers)


def load_routes(app: FastAPI, prefix: str):
    """Include every ``router`` found under the api packages.

    ``agentcast/shared/api`` routes are mounted at the root, ``agentcast/api``
    routes under ``prefix``. Modules named in ``API_DISABLED`` are skipped.
    """
    load_routes_in_folder(app, "", PACKAGE_DIR / "shared" / "api")
    load_routes_in_folder(app, prefix, PACKAGE_DIR / "api")

    for route_info in get_all_routes_info(app):
        methods = ",".join(route_info["methods"])
        logger.info("Loaded route: {:<12} {:<50} {}", methods, route_info["path"], route_info["endpoint"])


def load_routes_in_folder(app: FastAPI, prefix: str, folder: Path):
    disabled_routes = [x.strip() for x in (config.get("API_DISABLED") or "").split(",") if x.strip()]

    for path in sorted(folder.rglob("*.py")):
        if path.name == "__init__.py":
            continue

        relative = path.relative_to(PACKAGE_DIR.parent).with_suffix("")
        name = ".".join(relative.parts)

        if any(f".{disabled}" in name for disabled in disabled_routes):
            logger.warning("Disabled routes in {}", name)
            continue

        try:
            module = import_module(name)
        except ImportError as e:
            logger.warning("Failed to import {}: {}", name, e)
            continue

        if hasattr(module, "router"):
            app.include_router(module.router, prefix=prefix)
            logger.debug("Added routes in {}", name)


def get_all_routes_info(app: FastAPI):
    routes_info = []

    for route in app.routes:
        methods = getattr(route, "methods", None) or ({"WS"} if hasattr(route, "endpoint") else None)
        if methods is None:
            continue
        endpoint = getattr(route, "endpoint", None)
        routes_info.append(
            {
                "methods": sorted(methods),
                "path": getattr(route, "path", ""),
                "endpoint": getattr(endpoint, "__name__", str(endpoint)),
            }
        )

    return routes_info


@lru_cache
def get_worker_info():
    worker_name = environ.get("WORKER_NAME", "agentcast")

    parts = environ.get("BUILD_COMMIT", "").split("-")
    commit_id = parts[1] if len(parts) > 1 else "dev"

    return worker_name, commit_id, uuid4().hex[:8]


def init_logger():
    import logging

    for name in ("uvicorn.access", "granian.access"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.remove()

    worker_name, commit_id, _ = get_worker_info()

    if config.get_bool("DEBUG"):
        logger_level = "DEBUG"
        logger_format = (
            f"<yellow>{worker_name}:{commit_id}</yellow> | "
            "<green>{time:MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        )
    else:
        logger_level = "INFO"
        logger_format = (
            f"{worker_name}:{commit_id} | "
            "{time:MM-DD HH:mm:ss.SSS} | "
            "{level: <8} | "
            "{name}:{function}:{line} | "
            "{message}"
        )
    logger.add(sys.stderr, level=logger_level, format=logger_format)
