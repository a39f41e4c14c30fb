# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School service.

Admins see every school; principals and teachers only the school on their
profile.
"""

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import QuerySettings, get_settings
from src.core.errors import NotFoundError
from src.domains.access import ScopedActor, ensure_in_scope, require_school_scope
from src.infrastructure.database.models import School
from src.infrastructure.database.query import QueryBuilder
from src.models.common import PageResponse
from src.models.school import SchoolResponse

logger = logging.getLogger(__name__)


class SchoolNotFoundError(NotFoundError):
    """Raised when a school does not exist."""

    def __init__(self) -> None:
        super().__init__("School not found.")


class SchoolService:
    """Read access to schools.

    Attributes:
        db: Async database session.
        query_settings: Paging defaults for listings.
    """

    def __init__(self, db: AsyncSession, query_settings: QuerySettings | None = None) -> None:
        self.db = db
        self.query_settings = query_settings or get_settings().query

    async def list_schools(
        self,
        actor: ScopedActor,
        params: Mapping[str, Any],
    ) -> PageResponse[SchoolResponse]:
        """List the schools visible to the actor.

        Args:
            actor: Requesting actor.
            params: Request query params (search, paging, sorting). Only
                admins may filter and search.

        Returns:
            One page of schools with the total number of matches.
        """
        builder = QueryBuilder(select(School))
        page = builder.apply_pagination(
            params, self.query_settings.default_limit, self.query_settings.max_limit
        )

        scope = await actor.resolve_scope(self.db)
        if scope.is_empty:
            return PageResponse(items=[], total=0, page=page.page, limit=page.limit)
        if scope.restricted:
            builder.where(School.id == scope.school_id)
        else:
            builder.apply_search(params, [School.name, School.address, School.email])

        builder.apply_sorting(
            params,
            [School.name.asc()],
            sortable={"id": School.id, "name": School.name, "created_at": School.created_at},
        )

        total = await self.db.scalar(builder.build_count())
        result = await self.db.execute(builder.build())
        return PageResponse(
            items=[SchoolResponse.model_validate(s) for s in result.scalars().all()],
            total=total or 0,
            page=page.page,
            limit=page.limit,
        )

    async def get_school(self, actor: ScopedActor, school_id: int) -> SchoolResponse:
        """Get one school.

        Raises:
            SchoolNotFoundError: If the school does not exist and the actor
                may see every school.
            AuthorizationError: If it is not the actor's school.
        """
        scope = await actor.resolve_scope(self.db)
        require_school_scope(scope)
        ensure_in_scope(scope, school_id)
        school = await self.db.get(School, school_id)
        if school is None:
            raise SchoolNotFoundError()
        return SchoolResponse.model_validate(school)
