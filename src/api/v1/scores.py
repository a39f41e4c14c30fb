# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Score API endpoints.

This module provides endpoints for assessment scores:
- GET / - List scores (scoped to the caller)
- GET /report - Ranked score report for a class or a school
- POST / - Insert or update a batch of scores (teachers)
- DELETE /{score_id} - Delete a score
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
from src.domains.scores import ScoreService
from src.infrastructure.database.unit_of_work import UnitOfWork
from src.models.attendance import BatchWriteResponse
from src.models.common import Envelope
from src.models.score import ScoreBatchRequest, ScoreReport, ScoreResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=Envelope[list[ScoreResponse]],
    summary="List scores",
    description=(
        "Filter by class_id, student_id, subject_id, assessment_type, "
        "date_recorded, school_id, date_from and date_to."
    ),
    dependencies=[Depends(require_permission(Permission.VIEW_SCORES))],
)
async def list_scores(
    params: dict[str, Any] = Depends(get_query_params),
    actor: ScopedActor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[list[ScoreResponse]]:
    return Envelope(data=await ScoreService(db).list_scores(actor, params))


@router.get(
    "/report",
    response_model=Envelope[ScoreReport],
    summary="Score report",
    description="Averages, grades and ranks for a class (class_id) or a school (school_id).",
    dependencies=[Depends(require_permission(Permission.VIEW_SCORE_REPORTS))],
)
async def score_report(
    params: dict[str, Any] = Depends(get_query_params),
    actor: ScopedActor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[ScoreReport]:
    return Envelope(data=await ScoreService(db).get_report(actor, params))


@router.post(
    "",
    response_model=Envelope[BatchWriteResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Save scores",
    description="Insert or update a batch of scores in one statement. Teachers only.",
    dependencies=[Depends(require_permission(Permission.MANAGE_SCORES))],
)
async def save_scores(
    data: ScoreBatchRequest,
    actor: ScopedActor = Depends(get_actor),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> Envelope[BatchWriteResponse]:
    async with uow as db:
        result = await ScoreService(db).save_scores(actor, data)
    return Envelope(data=result)


@router.delete(
    "/{score_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete score",
    dependencies=[Depends(require_permission(Permission.MANAGE_SCORES))],
)
async def delete_score(
    score_id: int,
    actor: ScopedActor = Depends(get_actor),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> Response:
    async with uow as db:
        await ScoreService(db).delete_score(actor, score_id)
    return no_content()
