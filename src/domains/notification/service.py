# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-app notification service.

Write paths queue notifications on the session of their own unit of work,
so a notification is only ever stored together with the change it reports.

Example:
    >>> service = NotificationService(db)
    >>> await service.notify_many([(user_id, "Class 7A was created.")])
    >>> feed = await service.get_feed(user_id, limit=10)
"""

import logging
from collections.abc import Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import NotFoundError
from src.infrastructure.database.bulk import bulk_insert
from src.infrastructure.database.models import Notification, Principal
from src.models.notification import NotificationFeed, NotificationResponse

logger = logging.getLogger(__name__)


class NotificationNotFoundError(NotFoundError):
    """Raised when a notification does not exist for the caller."""

    def __init__(self) -> None:
        super().__init__("Notification not found.")


class NotificationService:
    """Service for storing and reading in-app notifications.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def notify_many(self, messages: Sequence[tuple[int, str]]) -> int:
        """Store one notification per (user_id, message) pair.

        Args:
            messages: Recipients and texts. Duplicate recipients are kept
                once per distinct message.

        Returns:
            Number of notifications stored.
        """
        rows = list(dict.fromkeys(messages))
        if not rows:
            return 0
        await bulk_insert(self.db, Notification.__table__, ["user_id", "message"], rows)
        logger.debug("Queued %d notifications", len(rows))
        return len(rows)

    async def principal_user_ids(
        self,
        school_id: int,
        exclude_user_id: int | None = None,
    ) -> list[int]:
        """Return the user ids of a school's principals."""
        query = select(Principal.user_id).where(Principal.school_id == school_id)
        if exclude_user_id is not None:
            query = query.where(Principal.user_id != exclude_user_id)
        result = await self.db.execute(query.order_by(Principal.user_id))
        return list(result.scalars().all())

    async def notify_school(
        self,
        school_id: int,
        actor_user_id: int,
        principal_message: str,
        actor_message: str,
    ) -> int:
        """Tell a school's other principals about a change, and its author.

        Args:
            school_id: School the change happened in.
            actor_user_id: User who made the change.
            principal_message: Text for every other principal of the school.
            actor_message: Confirmation for the actor.

        Returns:
            Number of notifications stored.
        """
        principals = await self.principal_user_ids(school_id, exclude_user_id=actor_user_id)
        messages = [(user_id, principal_message) for user_id in principals]
        messages.append((actor_user_id, actor_message))
        return await self.notify_many(messages)

    async def get_feed(self, user_id: int, limit: int = 10) -> NotificationFeed:
        """Return the latest notifications of a user and the unread count."""
        result = await self.db.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
        )
        notifications = result.scalars().all()

        unread = await self.db.scalar(
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        )

        return NotificationFeed(
            notifications=[NotificationResponse.model_validate(n) for n in notifications],
            unread_count=unread or 0,
        )

    async def mark_read(self, notification_id: int, user_id: int) -> None:
        """Mark one of the user's notifications as read.

        Raises:
            NotificationNotFoundError: If the user has no such notification.
        """
        result = await self.db.execute(
            update(Notification)
            .where(Notification.id == notification_id, Notification.user_id == user_id)
            .values(is_read=True)
        )
        if result.rowcount == 0:
            raise NotificationNotFoundError()
