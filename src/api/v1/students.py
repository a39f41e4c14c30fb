# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student directory API endpoints.

- GET / - List students with search and paging (filters: school_id, class_id)
- GET /{user_id} - Get one student, addressed by user id

Non-admins only ever see the students of their own school.
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
from src.models.people import StudentResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=Envelope[PageResponse[StudentResponse]],
    summary="List students",
    description="Search over first name, last name and email; sorted by last name by default.",
    dependencies=[Depends(require_permission(Permission.VIEW_STUDENTS))],
)
async def list_students(
    params: dict[str, Any] = Depends(get_query_params),
    actor: ScopedActor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[PageResponse[StudentResponse]]:
    return Envelope(data=await PeopleService(db).list_students(actor, params))


@router.get(
    "/{user_id}",
    response_model=Envelope[StudentResponse],
    summary="Get student",
    dependencies=[Depends(require_permission(Permission.VIEW_STUDENTS))],
)
async def get_student(
    user_id: int,
    actor: ScopedActor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[StudentResponse]:
    return Envelope(data=await PeopleService(db).get_student(actor, user_id))
