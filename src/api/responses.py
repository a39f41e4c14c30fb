# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Response envelope helpers.

Routes return ``Envelope[...]`` models directly; these helpers cover the
cases outside a route body: error responses built by exception handlers
and empty 204 responses.
"""

from typing import Any

from fastapi import Response, status
from fastapi.responses import JSONResponse

from src.models.common import ErrorBody, ErrorEnvelope


def error_response(
    status_code: int,
    message: str,
    details: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build a failed response.

    Args:
        status_code: HTTP status code.
        message: Client facing message.
        details: Optional structured details, omitted when None.
        headers: Extra response headers.

    Returns:
        JSONResponse with ``{"success": false, "error": {...}}``.
    """
    body = ErrorEnvelope(error=ErrorBody(message=message, details=details))
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
        headers=headers,
    )


def no_content() -> Response:
    """Empty 204 response."""
    return Response(status_code=status.HTTP_204_NO_CONTENT)
