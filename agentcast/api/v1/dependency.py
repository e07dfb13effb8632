import hmac
from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Header, Query
from fastapi.requests import HTTPConnection
from loguru import logger

from agentcast.domain.live.stream import StreamService
from agentcast.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

PrivilegeCheck = Callable[[str | None], bool]


def password_check(expected: str) -> PrivilegeCheck:
    """Build a privilege predicate comparing against a shared admin password."""

    def _check(candidate: str | None) -> bool:
        if not expected or not candidate:
            return False
        return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))

    return _check


def get_stream_service(conn: HTTPConnection) -> StreamService:
    return conn.app.state.stream_service


def get_client_ip(conn: HTTPConnection) -> str | None:
    return conn.client.host if conn.client else None


async def require_admin(
    conn: HTTPConnection,
    password: str | None = Query(None, description="Admin password"),
    x_admin_password: str | None = Header(None),
) -> None:
    is_privileged: PrivilegeCheck | None = getattr(conn.app.state, "is_privileged", None)
    candidate = x_admin_password or password

    if is_privileged is None or not is_privileged(candidate):
        logger.warning("Unauthorized admin attempt: path={}", conn.url.path)
        raise AppError(
            errcode=AppErrorCode.E_UNAUTHORIZED,
            errmesg="Unauthorized",
            status_code=HttpStatusCode.UNAUTHORIZED,
        )


Service = Annotated[StreamService, Depends(get_stream_service)]
ClientIp = Annotated[str | None, Depends(get_client_ip)]
