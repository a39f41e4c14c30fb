# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Scoped access resolution.

Every authenticated request is served on behalf of a ScopedActor. The
actor knows which rows its role may reach and expresses that as a
TenantScope:

- AdminActor: unrestricted, any client supplied school filter is honored.
- PrincipalActor / TeacherActor: restricted to the school on their
  profile row.
- StudentActor: restricted to their school and to their own records.

A restricted actor without a school gets an empty scope. Reads treat an
empty scope as "no rows"; writes refuse it with AuthorizationError. A
restricted actor's school always overwrites a school_id sent by the
client.

Example:
    >>> actor = actor_for(user.id, user.role)
    >>> scope = await actor.resolve_scope(db)
    >>> params = scoped_params(request_params, scope)
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Mapping

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import AuthorizationError
from src.core.permissions import Role
from src.infrastructure.database.models import Principal, Student, Teacher

logger = logging.getLogger(__name__)

NO_SCHOOL_MESSAGE = "You are not assigned to a school."
OUT_OF_SCOPE_MESSAGE = "Access denied. The resource is outside your school."


@dataclass(frozen=True)
class TenantScope:
    """Rows an actor may reach for the current request.

    Attributes:
        school_id: School the actor is bound to, None when unassigned or
            unrestricted.
        restricted: False only for admins.
        student_id: Student profile id for student actors.
    """

    school_id: int | None
    restricted: bool
    student_id: int | None = None

    @property
    def is_empty(self) -> bool:
        """True when a restricted actor can see nothing at all."""
        return self.restricted and self.school_id is None

    def allows_school(self, school_id: int | None) -> bool:
        """Check whether a row of the given school is reachable."""
        return not self.restricted or (
            self.school_id is not None and school_id == self.school_id
        )


class ScopedActor(ABC):
    """The authenticated principal of one request.

    Attributes:
        user_id: Id of the authenticated user.
        role: Role the actor acts under.
    """

    role: ClassVar[Role]
    restricted: ClassVar[bool] = True

    def __init__(self, user_id: int) -> None:
        self.user_id = user_id

    @abstractmethod
    async def resolve_school_scope(self, db: AsyncSession) -> int | None:
        """Return the school the actor is bound to, None when there is none."""

    async def resolve_scope(self, db: AsyncSession) -> TenantScope:
        """Resolve the full tenant scope for this request."""
        return TenantScope(
            school_id=await self.resolve_school_scope(db),
            restricted=self.restricted,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(user_id={self.user_id})"


class AdminActor(ScopedActor):
    """Platform administrator, never restricted to a school."""

    role = Role.ADMIN
    restricted = False

    async def resolve_school_scope(self, db: AsyncSession) -> int | None:
        return None


class ProfileActor(ScopedActor):
    """Actor whose school comes from a role profile table.

    The profile row is loaded once per actor instance.
    """

    profile_model: ClassVar[type[Principal] | type[Teacher] | type[Student]]

    def __init__(self, user_id: int) -> None:
        super().__init__(user_id)
        self._profile: Any = None
        self._loaded = False

    async def profile(self, db: AsyncSession) -> Any:
        """Load the actor's profile row, None if it does not exist."""
        if not self._loaded:
            model = self.profile_model
            result = await db.execute(select(model).where(model.user_id == self.user_id))
            self._profile = result.scalar_one_or_none()
            self._loaded = True
            if self._profile is None:
                logger.warning("No %s profile for user %s", self.role.value, self.user_id)
        return self._profile

    async def resolve_school_scope(self, db: AsyncSession) -> int | None:
        profile = await self.profile(db)
        return profile.school_id if profile is not None else None


class PrincipalActor(ProfileActor):
    role = Role.PRINCIPAL
    profile_model = Principal


class TeacherActor(ProfileActor):
    role = Role.TEACHER
    profile_model = Teacher


class StudentActor(ProfileActor):
    """Student, additionally restricted to their own records."""

    role = Role.STUDENT
    profile_model = Student

    async def resolve_scope(self, db: AsyncSession) -> TenantScope:
        profile = await self.profile(db)
        if profile is None:
            return TenantScope(school_id=None, restricted=True)
        return TenantScope(school_id=profile.school_id, restricted=True, student_id=profile.id)


_ACTORS: dict[Role, type[ScopedActor]] = {
    Role.ADMIN: AdminActor,
    Role.PRINCIPAL: PrincipalActor,
    Role.TEACHER: TeacherActor,
    Role.STUDENT: StudentActor,
}


def actor_for(user_id: int, role: str) -> ScopedActor:
    """Create the actor variant for a role.

    Args:
        user_id: Authenticated user id.
        role: Role name from the access token.

    Returns:
        The matching ScopedActor.

    Raises:
        AuthorizationError: If the role is unknown.
    """
    try:
        return _ACTORS[Role(role)](user_id)
    except ValueError as e:
        raise AuthorizationError("Access denied. Unknown role.") from e


def require_school_scope(scope: TenantScope) -> int | None:
    """Return the school a write is bound to.

    Args:
        scope: Resolved tenant scope.

    Returns:
        The actor's school id, None for unrestricted actors.

    Raises:
        AuthorizationError: If a restricted actor has no school.
    """
    if scope.is_empty:
        raise AuthorizationError(NO_SCHOOL_MESSAGE)
    return scope.school_id


def ensure_in_scope(scope: TenantScope, school_id: int | None) -> None:
    """Reject access to a row that belongs to another school.

    Raises:
        AuthorizationError: If the row is outside the scope.
    """
    if not scope.allows_school(school_id):
        raise AuthorizationError(OUT_OF_SCOPE_MESSAGE)


def scoped_params(params: Mapping[str, Any], scope: TenantScope) -> dict[str, Any]:
    """Copy request params with the scope's bindings forced in.

    Restricted actors get their school_id written over any client value.
    Student actors also get their own student_id.

    Args:
        params: Request query params.
        scope: Resolved tenant scope.

    Returns:
        A new params dict safe to hand to QueryBuilder.apply_filters().

    Raises:
        ValueError: If the scope is empty. Callers answer empty scopes
            with an empty result before building a query.
    """
    if scope.is_empty:
        raise ValueError("Cannot scope params with an empty tenant scope")
    scoped = dict(params)
    if scope.restricted:
        scoped["school_id"] = scope.school_id
    if scope.student_id is not None:
        scoped["student_id"] = scope.student_id
    return scoped


async def require_teacher(actor: ScopedActor, db: AsyncSession) -> Teacher:
    """Return the teacher profile of an actor that writes as a teacher.

    Raises:
        AuthorizationError: If the actor is not a teacher or has no teacher
            profile.
    """
    if not isinstance(actor, TeacherActor):
        raise AuthorizationError("Access denied. Only teachers can perform this action.")
    teacher = await actor.profile(db)
    if teacher is None:
        raise AuthorizationError("Teacher profile not found for this user.")
    return teacher
