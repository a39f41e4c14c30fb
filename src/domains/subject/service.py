# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Subject service.

This module provides the SubjectService class for:
- Scoped subject listings, overall and for one school
- Subject lookup
- Subject creation, renaming and deletion with principal notifications

Principals only ever manage the subjects of their own school.
"""

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import QuerySettings, get_settings
from src.core.errors import NotFoundError, ValidationError
from src.domains.access import (
    ScopedActor,
    ensure_in_scope,
    load_in_scope,
    require_school_scope,
    scoped_params,
)
from src.domains.notification import NotificationService
from src.infrastructure.database.models import School, Subject
from src.infrastructure.database.query import QueryBuilder
from src.models.common import PageResponse
from src.models.subject import SubjectCreateRequest, SubjectResponse, SubjectUpdateRequest

logger = logging.getLogger(__name__)


class SubjectNotFoundError(NotFoundError):
    """Raised when a subject does not exist."""

    def __init__(self) -> None:
        super().__init__("Subject not found.")


class SubjectService:
    """Service for managing subjects.

    Attributes:
        db: Async database session.
        query_settings: Paging defaults for listings.
    """

    def __init__(self, db: AsyncSession, query_settings: QuerySettings | None = None) -> None:
        self.db = db
        self.query_settings = query_settings or get_settings().query
        self.notifications = NotificationService(db)

    async def list_subjects(
        self,
        actor: ScopedActor,
        params: Mapping[str, Any],
    ) -> PageResponse[SubjectResponse]:
        """List subjects visible to the actor.

        Restricted actors see their own school's subjects whatever
        school_id they pass; an actor without a school sees none.

        Args:
            actor: Requesting actor.
            params: Request query params (school_id, search, paging,
                sorting).

        Returns:
            One page of subjects sorted by name by default.
        """
        scope = await actor.resolve_scope(self.db)
        if scope.is_empty:
            return self._empty_page(params)
        return await self._page(scoped_params(params, scope))

    async def list_school_subjects(
        self,
        actor: ScopedActor,
        school_id: int,
        params: Mapping[str, Any],
    ) -> PageResponse[SubjectResponse]:
        """List the subjects of one school.

        Raises:
            AuthorizationError: If the actor has no school or names
                another school than their own.
        """
        scope = await actor.resolve_scope(self.db)
        require_school_scope(scope)
        ensure_in_scope(scope, school_id)
        return await self._page({**params, "school_id": school_id})

    async def get_subject(self, actor: ScopedActor, subject_id: int) -> SubjectResponse:
        """Get one subject.

        Raises:
            SubjectNotFoundError: If an admin names a subject that does not exist.
            AuthorizationError: If no subject with the id is in the actor's school.
        """
        subject = await self._load_in_scope(actor, subject_id)
        return SubjectResponse.model_validate(subject)

    async def create_subject(
        self,
        actor: ScopedActor,
        request: SubjectCreateRequest,
    ) -> SubjectResponse:
        """Create a subject.

        Principals always create subjects in their own school; admins must
        name the school.

        Raises:
            AuthorizationError: If a restricted actor has no school.
            ValidationError: If an admin gives no school_id.
            NotFoundError: If the admin named a school that does not exist.
        """
        school_id = require_school_scope(await actor.resolve_scope(self.db))
        if school_id is None:
            school_id = request.school_id
            if school_id is None:
                raise ValidationError(
                    "Missing required fields: school_id.", details={"school_id": "required"}
                )
            if await self.db.get(School, school_id) is None:
                raise NotFoundError("School not found.")

        subject = Subject(name=request.name, school_id=school_id)
        self.db.add(subject)
        await self.db.flush()

        await self.notifications.notify_school(
            school_id,
            actor.user_id,
            f'New subject "{subject.name}" has been created.',
            f'You created subject "{subject.name}" successfully.',
        )
        logger.info(
            "Created subject %s in school %s by user %s", subject.id, school_id, actor.user_id
        )
        return SubjectResponse.model_validate(subject)

    async def update_subject(
        self,
        actor: ScopedActor,
        subject_id: int,
        request: SubjectUpdateRequest,
    ) -> SubjectResponse:
        """Rename a subject.

        Raises:
            SubjectNotFoundError: If an admin names a subject that does not exist.
            AuthorizationError: If no subject with the id is in the actor's school.
        """
        subject = await self._load_in_scope(actor, subject_id)
        subject.name = request.name
        await self.db.flush()

        await self.notifications.notify_school(
            subject.school_id,
            actor.user_id,
            f'Subject "{subject.name}" has been updated.',
            f'You updated subject "{subject.name}" successfully.',
        )
        logger.info("Updated subject %s by user %s", subject_id, actor.user_id)
        return SubjectResponse.model_validate(subject)

    async def delete_subject(self, actor: ScopedActor, subject_id: int) -> None:
        """Delete a subject.

        A subject still used by a schedule, score or result cannot be
        deleted; the store's foreign key signal surfaces as a 400.

        Raises:
            SubjectNotFoundError: If an admin names a subject that does not exist.
            AuthorizationError: If no subject with the id is in the actor's school.
        """
        subject = await self._load_in_scope(actor, subject_id)
        name, school_id = subject.name, subject.school_id

        await self.db.delete(subject)
        await self.db.flush()

        await self.notifications.notify_school(
            school_id,
            actor.user_id,
            f'Subject "{name}" has been deleted.',
            f'You deleted subject "{name}" successfully.',
        )
        logger.info("Deleted subject %s by user %s", subject_id, actor.user_id)

    # Helpers

    async def _load_in_scope(self, actor: ScopedActor, subject_id: int) -> Subject:
        school_id = require_school_scope(await actor.resolve_scope(self.db))
        return await load_in_scope(
            self.db, Subject, subject_id, school_id, SubjectNotFoundError()
        )

    def _empty_page(self, params: Mapping[str, Any]) -> PageResponse[SubjectResponse]:
        page = QueryBuilder(select(Subject)).apply_pagination(
            params, self.query_settings.default_limit, self.query_settings.max_limit
        )
        return PageResponse(items=[], total=0, page=page.page, limit=page.limit)

    async def _page(self, params: Mapping[str, Any]) -> PageResponse[SubjectResponse]:
        builder = QueryBuilder(select(Subject))
        page = builder.apply_pagination(
            params, self.query_settings.default_limit, self.query_settings.max_limit
        )
        builder.apply_filters(params, {"school_id": Subject.school_id})
        builder.apply_search(params, [Subject.name])
        builder.apply_sorting(
            params, [Subject.name.asc()], sortable={"id": Subject.id, "name": Subject.name}
        )

        total = await self.db.scalar(builder.build_count())
        result = await self.db.execute(builder.build())
        return PageResponse(
            items=[SubjectResponse.model_validate(s) for s in result.scalars().all()],
            total=total or 0,
            page=page.page,
            limit=page.limit,
        )
