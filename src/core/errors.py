# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application error taxonomy.

Every error a service raises on purpose derives from AppError and carries
the HTTP status it is reported with:
- ValidationError (400): malformed or incomplete input
- InvalidArgumentError (400): a caller broke a function precondition
- ReferentialError (400): a referenced row does not exist
- AuthorizationError (403): the actor may not touch the resource
- NotFoundError (404): the resource does not exist
- ConflictError (409): a uniqueness rule was hit
- ResourceExhaustedError (503): no database connection became available

Anything else is reported as 500 by the API exception handlers.
"""

from typing import Any


class AppError(Exception):
    """Base exception for all expected application errors.

    Attributes:
        message: Human-readable error description, safe to show clients.
        details: Optional structured context (per-field or per-row errors).
        status_code: HTTP status the error maps to.
        retriable: Whether the client may retry the same request.
    """

    status_code: int = 500
    retriable: bool = False

    def __init__(self, message: str, details: Any = None) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error description.
            details: Optional structured context for the client.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation with details if available."""
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ValidationError(AppError):
    """Raised when request data is malformed or incomplete."""

    status_code = 400


class InvalidArgumentError(ValidationError):
    """Raised when a function is called with arguments it cannot accept."""


class ReferentialError(AppError):
    """Raised when a write references a row that does not exist."""

    status_code = 400


class AuthorizationError(AppError):
    """Raised when the actor lacks access to a resource.

    The message never reveals whether the resource exists.
    """

    status_code = 403


class NotFoundError(AppError):
    """Raised when a requested resource does not exist."""

    status_code = 404


class ConflictError(AppError):
    """Raised when a write violates a uniqueness rule."""

    status_code = 409


class ResourceExhaustedError(AppError):
    """Raised when no database connection could be checked out in time."""

    status_code = 503
    retriable = True
