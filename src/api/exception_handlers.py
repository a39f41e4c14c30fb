# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application exception handlers.

Services raise typed errors and never build responses themselves. The
handlers here turn every failure into the error envelope:

- AppError subclasses keep their own status code
- SQLAlchemy errors pass through translate_db_error(); unclassified ones
  are logged with the route and stack and reported as 500
- request validation failures become 400 with per-field details
- anything else is logged and reported as 500

By the time a handler runs, the unit of work of a failed write has
already rolled back.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api.middleware.rate_limit import rate_limit_exceeded_handler
from src.api.responses import error_response
from src.core.errors import AppError
from src.infrastructure.database.errors import translate_db_error

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error."
RETRY_AFTER_SECONDS = "5"


def _operation(request: Request) -> str:
    route = request.scope.get("route")
    name = getattr(route, "name", None) or "unknown"
    return f"{name} {request.method} {request.url.path}"


def _app_error_response(error: AppError) -> JSONResponse:
    headers = {"Retry-After": RETRY_AFTER_SECONDS} if error.retriable else None
    return error_response(error.status_code, error.message, error.details, headers=headers)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render an expected application error."""
    if exc.status_code >= 500:
        logger.warning("%s failed: %s", _operation(request), exc)
    else:
        logger.info("%s rejected (%d): %s", _operation(request), exc.status_code, exc.message)
    return _app_error_response(exc)


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Translate a database error, or report it as an internal error."""
    translated = translate_db_error(exc)
    if translated is None:
        logger.exception("Unhandled database error in %s", _operation(request), exc_info=exc)
        return error_response(500, INTERNAL_ERROR_MESSAGE)
    logger.info(
        "%s rejected by the database (%d): %s",
        _operation(request),
        translated.status_code,
        translated.message,
    )
    return _app_error_response(translated)


def _field_errors(errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    return [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", "Invalid value"),
        }
        for error in errors
    ]


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Report malformed request bodies and params as 400."""
    return error_response(400, "Invalid request data.", _field_errors(exc.errors()))


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Wrap framework HTTP errors (401, 404 route, 405) in the envelope."""
    return error_response(exc.status_code, str(exc.detail), headers=exc.headers)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: log with stack and answer 500."""
    logger.exception("Unhandled error in %s", _operation(request), exc_info=exc)
    return error_response(500, INTERNAL_ERROR_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach every handler to the application."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
