"""Global exception handlers for consistent JSON error responses.

Domain errors are expected to expose ``status_code`` and ``to_dict()``.
Anything unhandled becomes a 500 carrying the request ID for support.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from libs.common.logging import get_logger, get_request_id

logger = get_logger(__name__)


def add_exception_handlers(app: FastAPI, *domain_errors: type[Exception]) -> None:
    """Register JSON handlers for the given domain error types."""

    async def domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
        body = exc.to_dict()
        if exc.status_code >= 500:
            logger.error(
                "%s on %s %s: %s",
                type(exc).__name__,
                request.method,
                request.url.path,
                body.get("detail"),
            )
        return JSONResponse(status_code=exc.status_code, content=body)

    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "code": "INTERNAL_ERROR",
                "request_id": get_request_id(),
            },
        )

    for error_type in domain_errors:
        app.add_exception_handler(error_type, domain_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
