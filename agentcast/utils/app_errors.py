"""Application error types.

Every rejection the stream engine produces is an ``AppError``. The ``errcode``
is the machine-readable rejection reason that callers see in the failure
envelope (``invalid_name``, ``banned``, ``rate_limited``...).
"""

import inspect
from enum import Enum, IntEnum
from uuid import uuid4


class HttpStatusCode(IntEnum):
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    UNPROCESSABLE_ENTITY = 422
    TOO_MANY_REQUESTS = 429
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503


class AppErrorCode(str, Enum):
    E_INVALID_NAME = "invalid_name"
    E_BANNED = "banned"
    E_INVALID_TEXT = "invalid_text"
    E_INVALID_TYPE = "invalid_type"
    E_INVALID_TOKEN = "invalid_token"
    E_RATE_LIMITED = "rate_limited"
    E_CAPACITY = "capacity"
    E_NOT_FOUND = "not_found"
    E_STREAM_OFFLINE = "stream_offline"
    E_NOT_SUBSCRIBED = "not_subscribed"
    E_UNAUTHORIZED = "unauthorized"
    E_INVALID_PARAMS = "invalid_params"
    E_INTERNAL_ERROR = "internal_error"

    def __str__(self) -> str:
        return self.value


def _caller_info(depth: int) -> str:
    frame = inspect.currentframe()
    try:
        for _ in range(depth):
            if frame is None or frame.f_back is None:
                break
            frame = frame.f_back
        if frame is None:
            return "unknown"
        module = inspect.getmodule(frame)
        module_name = module.__name__ if module else frame.f_code.co_filename
        return f"{module_name}:{frame.f_code.co_name}:{frame.f_lineno}"
    finally:
        del frame


class AppError(Exception):
    """Base error carrying an error code, a message and an HTTP status.

    The raising call site is captured in ``caller_info`` so the exception
    handler can log where the rejection originated.
    """

    default_status_code: HttpStatusCode = HttpStatusCode.BAD_REQUEST

    def __init__(
        self,
        errcode: AppErrorCode | str,
        errmesg: str,
        status_code: int | None = None,
    ):
        super().__init__(errmesg)
        self.errcode = str(errcode)
        self.errmesg = errmesg
        self.status_code = int(status_code or self.default_status_code)
        self.erresid = uuid4().hex[:10]
        # subclasses with their own __init__ add one frame
        self.caller_info = _caller_info(2 if type(self).__init__ is AppError.__init__ else 3)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(errcode={self.errcode!r}, errmesg={self.errmesg!r})"


class ValidationError(AppError):
    """Malformed name, text or type. Never worth retrying as-is."""


class AuthError(AppError):
    default_status_code = HttpStatusCode.UNAUTHORIZED

    def __init__(self, errmesg: str = "Invalid token"):
        super().__init__(AppErrorCode.E_INVALID_TOKEN, errmesg)


class RateLimited(AppError):
    default_status_code = HttpStatusCode.TOO_MANY_REQUESTS

    def __init__(self, errmesg: str, retry_after: float = 0.0):
        super().__init__(AppErrorCode.E_RATE_LIMITED, errmesg)
        self.retry_after = max(0.0, retry_after)


class NotFoundError(AppError):
    default_status_code = HttpStatusCode.NOT_FOUND

    def __init__(self, errmesg: str = "Stream not found"):
        super().__init__(AppErrorCode.E_NOT_FOUND, errmesg)


class CapacityError(AppError):
    default_status_code = HttpStatusCode.SERVICE_UNAVAILABLE

    def __init__(self, errmesg: str = "Stream at capacity, try again later"):
        super().__init__(AppErrorCode.E_CAPACITY, errmesg)
