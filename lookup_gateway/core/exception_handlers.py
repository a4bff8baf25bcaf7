"""Exception handlers producing the ``{"message": ...}`` error body.

- AdmissionDeniedError -> 429 with the denial reason, plus Retry-After
  during a cooldown when rate limit headers are enabled
- ValidationAppError -> 400 with the validation message
- UpstreamAppError -> 500 with "An error occurred: <detail>"
- Unexpected Exception -> 500 with a generic detail
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from lookup_gateway.core.errors import AdmissionDeniedError, AppError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An error occurred: Internal server error."


def _retry_after_headers(request: Request, exc: AppError) -> dict[str, str] | None:
    if not isinstance(exc, AdmissionDeniedError) or exc.retry_after is None:
        return None
    settings = getattr(request.app.state, "settings", None)
    if settings is not None and not settings.app.rate_limit_include_headers:
        return None
    return {"Retry-After": str(exc.retry_after)}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Translate a gateway error into its HTTP response."""
    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": exc.http_status,
            "error_details": exc.details,
        },
    )

    return JSONResponse(
        status_code=exc.http_status,
        content={"message": exc.client_message()},
        headers=_retry_after_headers(request, exc),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    The exception is logged with its traceback; the client only gets a
    generic message.
    """
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={
            "error_type": type(exc).__name__,
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(status_code=500, content={"message": INTERNAL_ERROR_MESSAGE})


def setup_exception_handlers(app: FastAPI) -> None:
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
