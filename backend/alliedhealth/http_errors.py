"""Mapping of workflow errors onto HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from alliedhealth.errors import (
    EngineError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[EngineError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
}

INTERNAL_ERROR_MESSAGE = "An error occurred while processing your request."


def status_code_for(exc: EngineError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in STATUS_CODES:
            return STATUS_CODES[error_type]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    code = status_code_for(exc)
    if code == status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Unmapped engine error on %s %s: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=code, content={"detail": INTERNAL_ERROR_MESSAGE})
    return JSONResponse(status_code=code, content={"detail": exc.message})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # Details stay in the log; the caller only learns that something failed.
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": INTERNAL_ERROR_MESSAGE},
    )


def install_error_handlers(app: FastAPI) -> None:
    """Register the workflow error handlers on ``app``."""
    app.add_exception_handler(EngineError, engine_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
