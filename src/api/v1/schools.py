# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School API endpoints.

- GET / - List schools (admins: all; others: their own)
- GET /{school_id} - Get school details
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_actor, get_db, get_query_params, require_permission
from src.core.permissions import Permission
from src.domains.access import ScopedActor
from src.domains.school import SchoolService
from src.models.common import Envelope, PageResponse
from src.models.school import SchoolResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=Envelope[PageResponse[SchoolResponse]],
    summary="List schools",
    dependencies=[Depends(require_permission(Permission.VIEW_SCHOOLS))],
)
async def list_schools(
    params: dict[str, Any] = Depends(get_query_params),
    actor: ScopedActor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[PageResponse[SchoolResponse]]:
    return Envelope(data=await SchoolService(db).list_schools(actor, params))


@router.get(
    "/{school_id}",
    response_model=Envelope[SchoolResponse],
    summary="Get school",
    dependencies=[Depends(require_permission(Permission.VIEW_SCHOOLS))],
)
async def get_school(
    school_id: int,
    actor: ScopedActor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[SchoolResponse]:
    return Envelope(data=await SchoolService(db).get_school(actor, school_id))
