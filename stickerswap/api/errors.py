"""
Global exception handlers.

- KnownError -> its own status code and a classified failure body
- anything else -> 500 with a fixed message; details only go to the log
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from stickerswap.models.failure import (
    UNKNOWN_FAILURE_MESSAGE,
    ErrorResponse,
    FailureDetail,
    FailureKind,
    KnownError,
)

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""

    @app.exception_handler(KnownError)
    async def known_error_handler(request: Request, exc: KnownError) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.info
        log("%s on %s: %s", exc.kind.value, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response().model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def unknown_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled exception on %s", request.url.path, exc_info=exc)
        body = ErrorResponse(
            failure=FailureDetail(
                kind=FailureKind.UNKNOWN,
                message=UNKNOWN_FAILURE_MESSAGE,
                detail=type(exc).__name__,
                suggestion="If this persists, please report the issue.",
            )
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=body.model_dump(mode="json"),
        )
