# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""People directory: teachers, students and principals.

Every listing is confined to the actor's school the same way class
listings are, and a lookup by user id answers a restricted actor the same
way whether the person is missing or belongs to another school.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import ColumnElement, Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import QuerySettings, get_settings
from src.core.errors import NotFoundError
from src.domains.access import ScopedActor, load_in_scope, require_school_scope, scoped_params
from src.infrastructure.database.models import (
    Principal,
    School,
    Student,
    StudentClassMap,
    Teacher,
    User,
)
from src.infrastructure.database.query import QueryBuilder, coerce_value, first_value, is_present
from src.models.common import PageResponse
from src.models.people import (
    PersonResponse,
    PrincipalResponse,
    StudentResponse,
    TeacherResponse,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Directory:
    """How one kind of profile is selected and shown.

    Attributes:
        model: Profile model, joined to its user and school.
        label: Name used in not found messages.
        response: Response model of one row.
        columns: Profile columns shown besides the common ones.
    """

    model: Any
    label: str
    response: type[PersonResponse]
    columns: tuple[Any, ...] = field(default_factory=tuple)

    def query(self) -> Select:
        return (
            select(
                self.model.id,
                self.model.user_id,
                User.first_name,
                User.last_name,
                User.email,
                self.model.school_id,
                School.name.label("school_name"),
                *self.columns,
            )
            .join(User, self.model.user_id == User.id)
            .outerjoin(School, self.model.school_id == School.id)
        )


TEACHERS = _Directory(Teacher, "Teacher", TeacherResponse, (Teacher.specialization,))
STUDENTS = _Directory(Student, "Student", StudentResponse, (Student.date_of_birth,))
PRINCIPALS = _Directory(Principal, "Principal", PrincipalResponse)


class PeopleService:
    """Scoped read access to teachers, students and principals.

    Attributes:
        db: Async database session.
        query_settings: Paging defaults for listings.
    """

    def __init__(self, db: AsyncSession, query_settings: QuerySettings | None = None) -> None:
        self.db = db
        self.query_settings = query_settings or get_settings().query

    async def list_teachers(
        self,
        actor: ScopedActor,
        params: Mapping[str, Any],
    ) -> PageResponse[TeacherResponse]:
        """List teachers, filterable by school_id and specialization."""
        return await self._list(
            TEACHERS, actor, params, {"specialization": Teacher.specialization}
        )

    async def get_teacher(self, actor: ScopedActor, user_id: int) -> TeacherResponse:
        return await self._get(TEACHERS, actor, user_id)

    async def list_students(
        self,
        actor: ScopedActor,
        params: Mapping[str, Any],
    ) -> PageResponse[StudentResponse]:
        """List students, filterable by school_id and by class_id enrollment."""
        conditions = []
        class_id = first_value(params.get("class_id"))
        if is_present(class_id):
            enrolled = select(StudentClassMap.student_id).where(
                StudentClassMap.class_id
                == coerce_value(StudentClassMap.class_id, class_id, "class_id")
            )
            conditions.append(Student.id.in_(enrolled))
        return await self._list(STUDENTS, actor, params, {}, conditions)

    async def get_student(self, actor: ScopedActor, user_id: int) -> StudentResponse:
        return await self._get(STUDENTS, actor, user_id)

    async def list_principals(
        self,
        actor: ScopedActor,
        params: Mapping[str, Any],
    ) -> PageResponse[PrincipalResponse]:
        return await self._list(PRINCIPALS, actor, params, {})

    async def get_principal(self, actor: ScopedActor, user_id: int) -> PrincipalResponse:
        return await self._get(PRINCIPALS, actor, user_id)

    async def _list(
        self,
        directory: _Directory,
        actor: ScopedActor,
        params: Mapping[str, Any],
        filters: Mapping[str, Any],
        conditions: Sequence[ColumnElement[bool]] = (),
    ) -> PageResponse[Any]:
        """List one directory.

        Args:
            directory: Profile kind to list.
            actor: Requesting actor.
            params: Request query params. Search covers first name, last
                name and email; the default order is last name, first name.
            filters: Filters besides school_id.
            conditions: Extra predicates, ANDed with the filters.

        Returns:
            One page of people with the total number of matches.
        """
        builder = QueryBuilder(directory.query())
        page = builder.apply_pagination(
            params, self.query_settings.default_limit, self.query_settings.max_limit
        )

        scope = await actor.resolve_scope(self.db)
        if scope.is_empty:
            return PageResponse(items=[], total=0, page=page.page, limit=page.limit)
        params = scoped_params(params, scope)

        builder.apply_filters(params, {"school_id": directory.model.school_id, **filters})
        builder.where(*conditions)
        builder.apply_search(params, [User.first_name, User.last_name, User.email])
        builder.apply_sorting(
            params,
            [User.last_name.asc(), User.first_name.asc(), directory.model.id.asc()],
            sortable={
                "id": directory.model.id,
                "user_id": directory.model.user_id,
                "first_name": User.first_name,
                "last_name": User.last_name,
                "email": User.email,
            },
        )

        total = await self.db.scalar(builder.build_count())
        result = await self.db.execute(builder.build())
        return PageResponse(
            items=[directory.response.model_validate(dict(r)) for r in result.mappings()],
            total=total or 0,
            page=page.page,
            limit=page.limit,
        )

    async def _get(self, directory: _Directory, actor: ScopedActor, user_id: int) -> Any:
        """Get one person by user id.

        Raises:
            NotFoundError: If an admin names a user without this profile.
            AuthorizationError: If the actor has no school, or no such
                person is in the actor's school.
        """
        school_id = require_school_scope(await actor.resolve_scope(self.db))
        profile = await load_in_scope(
            self.db,
            directory.model,
            user_id,
            school_id,
            NotFoundError(f"{directory.label} not found."),
            key=directory.model.user_id,
        )
        result = await self.db.execute(directory.query().where(directory.model.id == profile.id))
        logger.debug("Loaded %s profile %s", directory.label.lower(), profile.id)
        return directory.response.model_validate(dict(result.mappings().one()))
