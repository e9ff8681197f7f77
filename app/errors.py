"""Translate service errors into JSON error responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from services.errors import StorageFailure, ValidationFailure
from services.ingestion import INVALID_READING_MESSAGE

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def handle_validation_failure(request: Request, exc: ValidationFailure) -> JSONResponse:
    logger.info("Request rejected", extra={"path": request.url.path, "reason": exc.message})
    return _error_response(status.HTTP_400_BAD_REQUEST, exc.message)


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Malformed request", extra={"path": request.url.path, "reason": "request"})
    return _error_response(status.HTTP_400_BAD_REQUEST, INVALID_READING_MESSAGE)


async def handle_storage_failure(request: Request, exc: StorageFailure) -> JSONResponse:
    # The store already logged the underlying database error.
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message)


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", extra={"path": request.url.path}, exc_info=exc)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationFailure, handle_validation_failure)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(StorageFailure, handle_storage_failure)
    app.add_exception_handler(Exception, handle_unexpected)
