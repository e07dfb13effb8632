import math

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from loguru import logger

from agentcast.shared.api.utils import ApiFailure, api_failure, make_response
from agentcast.utils.app_errors import AppError, AppErrorCode, HttpStatusCode, RateLimited


async def app_error_handler(request: Request, exc: AppError) -> ORJSONResponse:
    """
    Convert AppError into the failure envelope.
    """
    log_msg = (
        f"{exc.errcode} {exc.erresid} path={request.url.path} "
        f"msg={exc.errmesg} caller={exc.caller_info}"
    )
    if exc.errcode == AppErrorCode.E_INTERNAL_ERROR.value:
        logger.error(log_msg)
    else:
        logger.warning(log_msg)

    headers = None
    if isinstance(exc, RateLimited):
        headers = {"Retry-After": str(max(1, math.ceil(exc.retry_after)))}

    failure = ApiFailure(errcode=exc.errcode, errmesg=exc.errmesg, erresid=exc.erresid)
    return make_response(failure, status_code=exc.status_code, headers=headers)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> ORJSONResponse:
    errors = exc.errors()

    logger.warning(
        "Validation error: path={} method={} errors={}",
        request.url.path,
        request.method,
        errors,
    )

    failure = api_failure(AppErrorCode.E_INVALID_PARAMS.value, errmesg=str(errors))
    return make_response(failure, status_code=HttpStatusCode.UNPROCESSABLE_ENTITY)
