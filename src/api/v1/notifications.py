# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification API endpoints.

- GET / - Latest notifications of the caller with the unread count
- PATCH /{notification_id}/read - Mark one of the caller's notifications read
"""

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, get_unit_of_work, require_auth
from src.api.middleware.auth import CurrentUser
from src.api.responses import no_content
from src.core.config import get_settings
from src.domains.notification import NotificationService
from src.infrastructure.database.unit_of_work import UnitOfWork
from src.models.common import Envelope
from src.models.notification import NotificationFeed

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=Envelope[NotificationFeed],
    summary="My notifications",
)
async def get_notifications(
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> Envelope[NotificationFeed]:
    limit = get_settings().query.notification_limit
    return Envelope(data=await NotificationService(db).get_feed(current_user.id, limit=limit))


@router.patch(
    "/{notification_id}/read",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Mark notification read",
)
async def mark_read(
    notification_id: int,
    current_user: CurrentUser = Depends(require_auth),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> Response:
    async with uow as db:
        await NotificationService(db).mark_read(notification_id, current_user.id)
    return no_content()
