# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Subject API endpoints.

- GET / - List subjects with search and paging
- GET /school/{school_id} - List one school's subjects
- POST / - Create a subject
- GET /{subject_id} - Get a subject
- PUT /{subject_id} - Rename a subject
- DELETE /{subject_id} - Delete a subject

Principals, teachers and students only ever reach their own school's
subjects.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import (
    get_actor,
    get_db,
    get_query_params,
    get_unit_of_work,
    require_permission,
)
from src.api.responses import no_content
from src.core.permissions import Permission
from src.domains.access import ScopedActor
from src.domains.subject import SubjectService
from src.infrastructure.database.unit_of_work import UnitOfWork
from src.models.common import Envelope, PageResponse
from src.models.subject import SubjectCreateRequest, SubjectResponse, SubjectUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=Envelope[PageResponse[SubjectResponse]],
    summary="List subjects",
    description="Search over subject name; sorted by name by default.",
    dependencies=[Depends(require_permission(Permission.VIEW_SUBJECTS))],
)
async def list_subjects(
    params: dict[str, Any] = Depends(get_query_params),
    actor: ScopedActor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[PageResponse[SubjectResponse]]:
    return Envelope(data=await SubjectService(db).list_subjects(actor, params))


@router.get(
    "/school/{school_id}",
    response_model=Envelope[PageResponse[SubjectResponse]],
    summary="List a school's subjects",
    description="Non-admins may only name their own school.",
    dependencies=[Depends(require_permission(Permission.VIEW_SUBJECTS))],
)
async def list_school_subjects(
    school_id: int,
    params: dict[str, Any] = Depends(get_query_params),
    actor: ScopedActor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[PageResponse[SubjectResponse]]:
    return Envelope(
        data=await SubjectService(db).list_school_subjects(actor, school_id, params)
    )


@router.post(
    "",
    response_model=Envelope[SubjectResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create subject",
    description="Principals always create the subject in their own school.",
    dependencies=[Depends(require_permission(Permission.MANAGE_SUBJECTS))],
)
async def create_subject(
    data: SubjectCreateRequest,
    actor: ScopedActor = Depends(get_actor),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> Envelope[SubjectResponse]:
    async with uow as db:
        result = await SubjectService(db).create_subject(actor, data)
    return Envelope(data=result)


@router.get(
    "/{subject_id}",
    response_model=Envelope[SubjectResponse],
    summary="Get subject",
    dependencies=[Depends(require_permission(Permission.VIEW_SUBJECTS))],
)
async def get_subject(
    subject_id: int,
    actor: ScopedActor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[SubjectResponse]:
    return Envelope(data=await SubjectService(db).get_subject(actor, subject_id))


@router.put(
    "/{subject_id}",
    response_model=Envelope[SubjectResponse],
    summary="Rename subject",
    dependencies=[Depends(require_permission(Permission.MANAGE_SUBJECTS))],
)
async def update_subject(
    subject_id: int,
    data: SubjectUpdateRequest,
    actor: ScopedActor = Depends(get_actor),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> Envelope[SubjectResponse]:
    async with uow as db:
        result = await SubjectService(db).update_subject(actor, subject_id, data)
    return Envelope(data=result)


@router.delete(
    "/{subject_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete subject",
    description="Subjects still used by schedules, scores or results are kept (400).",
    dependencies=[Depends(require_permission(Permission.MANAGE_SUBJECTS))],
)
async def delete_subject(
    subject_id: int,
    actor: ScopedActor = Depends(get_actor),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> Response:
    async with uow as db:
        await SubjectService(db).delete_subject(actor, subject_id)
    return no_content()
