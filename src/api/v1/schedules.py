# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Study schedule API endpoints.

- GET / - List timetable slots (filters: class_id, teacher_id, subject_id,
  day_of_week)
- POST / - Add a slot to a class
- GET /{schedule_id} - Get a slot
- PUT /{schedule_id} - Change a slot
- DELETE /{schedule_id} - Delete a slot

teacher_id is always the teacher's user id.
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
from src.domains.schedule import ScheduleService
from src.infrastructure.database.unit_of_work import UnitOfWork
from src.models.common import Envelope, PageResponse
from src.models.schedule import ScheduleCreateRequest, ScheduleDetail, ScheduleUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=Envelope[PageResponse[ScheduleDetail]],
    summary="List schedules",
    description="Slots of the caller's school in weekday order.",
    dependencies=[Depends(require_permission(Permission.VIEW_SCHEDULES))],
)
async def list_schedules(
    params: dict[str, Any] = Depends(get_query_params),
    actor: ScopedActor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[PageResponse[ScheduleDetail]]:
    return Envelope(data=await ScheduleService(db).list_schedules(actor, params))


@router.post(
    "",
    response_model=Envelope[ScheduleDetail],
    status_code=status.HTTP_201_CREATED,
    summary="Create schedule",
    description="Teacher and subject must belong to the class's school.",
    dependencies=[Depends(require_permission(Permission.MANAGE_SCHEDULES))],
)
async def create_schedule(
    data: ScheduleCreateRequest,
    actor: ScopedActor = Depends(get_actor),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> Envelope[ScheduleDetail]:
    async with uow as db:
        result = await ScheduleService(db).create_schedule(actor, data)
    return Envelope(data=result)


@router.get(
    "/{schedule_id}",
    response_model=Envelope[ScheduleDetail],
    summary="Get schedule",
    dependencies=[Depends(require_permission(Permission.VIEW_SCHEDULES))],
)
async def get_schedule(
    schedule_id: int,
    actor: ScopedActor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[ScheduleDetail]:
    return Envelope(data=await ScheduleService(db).get_schedule(actor, schedule_id))


@router.put(
    "/{schedule_id}",
    response_model=Envelope[ScheduleDetail],
    summary="Update schedule",
    description="Only given fields change; the resulting slot is checked as a whole.",
    dependencies=[Depends(require_permission(Permission.MANAGE_SCHEDULES))],
)
async def update_schedule(
    schedule_id: int,
    data: ScheduleUpdateRequest,
    actor: ScopedActor = Depends(get_actor),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> Envelope[ScheduleDetail]:
    async with uow as db:
        result = await ScheduleService(db).update_schedule(actor, schedule_id, data)
    return Envelope(data=result)


@router.delete(
    "/{schedule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete schedule",
    dependencies=[Depends(require_permission(Permission.MANAGE_SCHEDULES))],
)
async def delete_schedule(
    schedule_id: int,
    actor: ScopedActor = Depends(get_actor),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> Response:
    async with uow as db:
        await ScheduleService(db).delete_schedule(actor, schedule_id)
    return no_content()
