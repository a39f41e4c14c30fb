# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Rate limiting using slowapi.

A default per-client limit is applied to every route by slowapi's
SlowAPIMiddleware. Clients are identified by user id when authenticated,
otherwise by IP address.

Example:
    >>> app.state.limiter = build_limiter(settings.rate_limit)
    >>> app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    >>> app.add_middleware(SlowAPIMiddleware)
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from src.core.config import RateLimitSettings
from src.api.responses import error_response

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 60


def get_client_identifier(request: Request) -> str:
    """Get a unique identifier for the client.

    Uses user ID if authenticated, otherwise uses IP address.

    Args:
        request: HTTP request.

    Returns:
        Client identifier string.
    """
    user = getattr(request.state, "user", None)
    if user:
        return f"user:{user.id}"
    return f"ip:{get_remote_address(request)}"


def build_limiter(settings: RateLimitSettings) -> Limiter:
    """Create the application's Limiter from settings."""
    return Limiter(
        key_func=get_client_identifier,
        default_limits=[f"{settings.requests_per_minute}/minute"],
        storage_uri=settings.storage_uri,
        enabled=settings.enabled,
    )


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle rate limit exceeded errors with a 429 error envelope."""
    logger.warning(
        "Rate limit exceeded: %s for %s",
        exc.detail,
        get_client_identifier(request),
    )
    return error_response(
        429,
        "Too many requests. Please try again later.",
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )
