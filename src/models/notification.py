# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification response models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    message: str
    is_read: bool
    created_at: datetime | None = None


class NotificationFeed(BaseModel):
    """Latest notifications of the caller and their unread count."""

    notifications: list[NotificationResponse]
    unread_count: int
