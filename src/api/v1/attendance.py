# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance API endpoints.

This module provides endpoints for daily class attendance:
- GET / - List attendance (scoped to the caller)
- GET /me - The calling student's own attendance
- POST / - Record a class's attendance for one day (teachers)

Example:
    POST /api/v1/attendance
    {
        "class_id": 3,
        "date": "2025-03-14",
        "records": [{"student_id": 11, "status": "present"}]
    }
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import (
    get_actor,
    get_db,
    get_query_params,
    get_unit_of_work,
    require_permission,
)
from src.core.permissions import Permission
from src.domains.access import ScopedActor
from src.domains.attendance import AttendanceService
from src.infrastructure.database.unit_of_work import UnitOfWork
from src.models.attendance import AttendanceBatchRequest, AttendanceResponse, BatchWriteResponse
from src.models.common import Envelope

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=Envelope[list[AttendanceResponse]],
    summary="List attendance",
    description=(
        "Filter by class_id, student_id, date and school_id. "
        "Paginated only when limit is given."
    ),
    dependencies=[Depends(require_permission(Permission.VIEW_ATTENDANCE))],
)
async def list_attendance(
    params: dict[str, Any] = Depends(get_query_params),
    actor: ScopedActor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[list[AttendanceResponse]]:
    return Envelope(data=await AttendanceService(db).list_attendance(actor, params))


@router.get(
    "/me",
    response_model=Envelope[list[AttendanceResponse]],
    summary="My attendance",
    description="The calling student's own attendance.",
    dependencies=[Depends(require_permission(Permission.VIEW_ATTENDANCE))],
)
async def my_attendance(
    params: dict[str, Any] = Depends(get_query_params),
    actor: ScopedActor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[list[AttendanceResponse]]:
    return Envelope(data=await AttendanceService(db).my_attendance(actor, params))


@router.post(
    "",
    response_model=Envelope[BatchWriteResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Record attendance",
    description="Insert or update one day of attendance for a class. Teachers only.",
    dependencies=[Depends(require_permission(Permission.RECORD_ATTENDANCE))],
)
async def record_attendance(
    data: AttendanceBatchRequest,
    actor: ScopedActor = Depends(get_actor),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> Envelope[BatchWriteResponse]:
    async with uow as db:
        result = await AttendanceService(db).record_attendance(actor, data)
    return Envelope(data=result)
