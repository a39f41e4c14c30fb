# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Principal directory API endpoints.

- GET / - List principals with search and paging (filter: school_id)
- GET /{user_id} - Get one principal, addressed by user id

Non-admins only ever see the principals of their own school.
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
from src.models.people import PrincipalResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=Envelope[PageResponse[PrincipalResponse]],
    summary="List principals",
    description="Search over first name, last name and email; sorted by last name by default.",
    dependencies=[Depends(require_permission(Permission.VIEW_PRINCIPALS))],
)
async def list_principals(
    params: dict[str, Any] = Depends(get_query_params),
    actor: ScopedActor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[PageResponse[PrincipalResponse]]:
    return Envelope(data=await PeopleService(db).list_principals(actor, params))


@router.get(
    "/{user_id}",
    response_model=Envelope[PrincipalResponse],
    summary="Get principal",
    dependencies=[Depends(require_permission(Permission.VIEW_PRINCIPALS))],
)
async def get_principal(
    user_id: int,
    actor: ScopedActor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[PrincipalResponse]:
    return Envelope(data=await PeopleService(db).get_principal(actor, user_id))
