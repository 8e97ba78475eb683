"""FastAPI exception handlers.

Every error leaves the service as ``{"success": false, "error": ...}``.
"""

from __future__ import annotations

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

log = structlog.get_logger()

NOT_FOUND_MESSAGE = "Endpoint not found"


def error_response(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Map routing errors; unmatched paths get a fixed message."""
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return error_response(exc.status_code, NOT_FOUND_MESSAGE)
    return error_response(exc.status_code, str(exc.detail))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.error(
        "unhandled_request_error",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exception_type=type(exc).__name__,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or "Internal error")


EXCEPTION_HANDLERS = {
    StarletteHTTPException: http_exception_handler,
    Exception: unhandled_exception_handler,
}
