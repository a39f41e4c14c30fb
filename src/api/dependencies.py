# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions for reads and units of work for writes
- Get the authenticated user and check role permissions
- Resolve the scoped actor of the request
- Collapse query-string params

Example:
    @router.post("")
    async def record_attendance(
        data: AttendanceBatchRequest,
        actor: ScopedActor = Depends(get_actor),
        uow: UnitOfWork = Depends(get_unit_of_work),
        _: CurrentUser = Depends(require_permission(Permission.RECORD_ATTENDANCE)),
    ):
        async with uow as db:
            ...
"""

import logging
from typing import Any, AsyncGenerator, Callable

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.api.middleware.auth import CurrentUser, get_current_user
from src.core.permissions import Permission
from src.domains.access import ScopedActor, actor_for
from src.infrastructure.database.connection import get_sessionmaker
from src.infrastructure.database.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


# =========================================================================
# Database Dependencies
# =========================================================================


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the process sessionmaker. Overridden in tests."""
    return get_sessionmaker()


async def get_db(
    factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AsyncGenerator[AsyncSession, None]:
    """Get a read-only database session.

    The session is closed when the request finishes; nothing is
    committed.

    Yields:
        AsyncSession.
    """
    async with factory() as session:
        yield session


def get_unit_of_work(
    factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> UnitOfWork:
    """Get a unit of work for a write endpoint."""
    return UnitOfWork(factory)


# =========================================================================
# Authentication Dependencies
# =========================================================================


def require_auth(request: Request) -> CurrentUser:
    """Require authenticated user.

    Raises:
        HTTPException: 401 if not authenticated.
    """
    user = get_current_user(request)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_permission(permission: Permission) -> Callable[[Request], CurrentUser]:
    """Build a dependency requiring a role permission.

    The check uses the role from the token only, so it rejects before any
    database work.

    Args:
        permission: Required permission.

    Returns:
        Dependency returning the CurrentUser.
    """

    def dependency(request: Request) -> CurrentUser:
        user = require_auth(request)
        if not user.has_permission(permission):
            logger.info("User %s (%s) lacks %s", user.id, user.role, permission.value)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied. You do not have permission to perform this action.",
            )
        return user

    return dependency


def get_actor(user: CurrentUser = Depends(require_auth)) -> ScopedActor:
    """Resolve the scoped actor of the authenticated user."""
    return actor_for(user.id, user.role)


# =========================================================================
# Query Dependencies
# =========================================================================


def get_query_params(request: Request) -> dict[str, Any]:
    """Collapse the query string to one value per key, the first one."""
    query = request.query_params
    return {key: query.getlist(key)[0] for key in query.keys()}
