# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic result API endpoints.

This module provides endpoints for published final grades:
- GET / - List results (scoped to the caller, always paginated)
- POST / - Publish a class's results for one subject and period (teachers)
- DELETE /{result_id} - Delete a result
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
from src.domains.academic_result import AcademicResultService
from src.domains.access import ScopedActor
from src.infrastructure.database.unit_of_work import UnitOfWork
from src.models.academic_result import AcademicResultBatchRequest, AcademicResultResponse
from src.models.attendance import BatchWriteResponse
from src.models.common import Envelope

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=Envelope[list[AcademicResultResponse]],
    summary="List academic results",
    description=(
        "Filter by student_id, class_id, subject_id, academic_period, "
        "school_id, month and year of publication."
    ),
    dependencies=[Depends(require_permission(Permission.VIEW_ACADEMIC_RESULTS))],
)
async def list_results(
    params: dict[str, Any] = Depends(get_query_params),
    actor: ScopedActor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[list[AcademicResultResponse]]:
    return Envelope(data=await AcademicResultService(db).list_results(actor, params))


@router.post(
    "",
    response_model=Envelope[BatchWriteResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Publish academic results",
    description="Insert or update final grades for a class, subject and period. Teachers only.",
    dependencies=[Depends(require_permission(Permission.MANAGE_ACADEMIC_RESULTS))],
)
async def publish_results(
    data: AcademicResultBatchRequest,
    actor: ScopedActor = Depends(get_actor),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> Envelope[BatchWriteResponse]:
    async with uow as db:
        result = await AcademicResultService(db).publish_results(actor, data)
    return Envelope(data=result)


@router.delete(
    "/{result_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete academic result",
    dependencies=[Depends(require_permission(Permission.MANAGE_ACADEMIC_RESULTS))],
)
async def delete_result(
    result_id: int,
    actor: ScopedActor = Depends(get_actor),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> Response:
    async with uow as db:
        await AcademicResultService(db).delete_result(actor, result_id)
    return no_content()
