# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared response models.

Every response body is an envelope: ``{"success": true, "data": ...}`` on
success and ``{"success": false, "error": {"message": ..., "details": ...}}``
on failure.
"""

from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Successful response body."""

    success: Literal[True] = True
    data: T


class ErrorBody(BaseModel):
    """Error description returned to clients."""

    message: str
    details: Any | None = None


class ErrorEnvelope(BaseModel):
    """Failed response body."""

    success: Literal[False] = False
    error: ErrorBody


class PageResponse(BaseModel, Generic[T]):
    """One page of a list with its total row count."""

    items: list[T]
    total: int = Field(ge=0)
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
