# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teacher directory API endpoints.

- GET / - List teachers with search and paging (filters: school_id, specialization)
- GET /{user_id} - Get one teacher, addressed by user id

Non-admins only ever see the teachers of their own school.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_actor, get_db, get_query_params, require_permission
from src.core.permissions import Permission
from src.domains.access import ScopedActor
from src.domains.people import PeopleService
from src.models.common import Envelope, PageResponse
from src.models.people import TeacherResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=Envelope[PageResponse[TeacherResponse]],
    summary="List teachers",
    description="Search over first name, last name and email; sorted by last name by default.",
    dependencies=[Depends(require_permission(Permission.VIEW_TEACHERS))],
)
async def list_teachers(
    params: dict[str, Any] = Depends(get_query_params),
    actor: ScopedActor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[PageResponse[TeacherResponse]]:
    return Envelope(data=await PeopleService(db).list_teachers(actor, params))


@router.get(
    "/{user_id}",
    response_model=Envelope[TeacherResponse],
    summary="Get teacher",
    dependencies=[Depends(require_permission(Permission.VIEW_TEACHERS))],
)
async def get_teacher(
    user_id: int,
    actor: ScopedActor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[TeacherResponse]:
    return Envelope(data=await PeopleService(db).get_teacher(actor, user_id))
