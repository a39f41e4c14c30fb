# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class management API endpoints.

This module provides endpoints for class management:
- GET / - List classes with search and paging
- GET /mine - Classes the caller teaches or attends
- POST / - Create a class with its weekly schedule
- GET /{class_id} - Get class details, schedule and students
- PUT /{class_id} - Update class (schedules replaced when given)
- DELETE /{class_id} - Delete class

Student enrollment endpoints:
- POST /{class_id}/students - Enroll a student
- DELETE /{class_id}/students/{student_user_id} - Remove a student

Principals and teachers only ever reach classes of their own school.
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
    require_auth,
    require_permission,
)
from src.api.responses import no_content
from src.core.permissions import Permission
from src.domains.access import ScopedActor
from src.domains.class_ import ClassService
from src.infrastructure.database.unit_of_work import UnitOfWork
from src.models.class_ import (
    AssignStudentRequest,
    ClassCreateRequest,
    ClassDetail,
    ClassStudent,
    ClassSummary,
    ClassUpdateRequest,
)
from src.models.common import Envelope, PageResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=Envelope[PageResponse[ClassSummary]],
    summary="List classes",
    description="Search over class name and academic year; sorted by name by default.",
    dependencies=[Depends(require_permission(Permission.VIEW_CLASSES))],
)
async def list_classes(
    params: dict[str, Any] = Depends(get_query_params),
    actor: ScopedActor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[PageResponse[ClassSummary]]:
    return Envelope(data=await ClassService(db).list_classes(actor, params))


@router.get(
    "/mine",
    response_model=Envelope[list[ClassSummary]],
    summary="My classes",
    description="Classes a teacher teaches or a student is enrolled in.",
    dependencies=[Depends(require_auth)],
)
async def my_classes(
    actor: ScopedActor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[list[ClassSummary]]:
    return Envelope(data=await ClassService(db).my_classes(actor))


@router.post(
    "",
    response_model=Envelope[ClassDetail],
    status_code=status.HTTP_201_CREATED,
    summary="Create class",
    description="Non-admins always create the class in their own school.",
    dependencies=[Depends(require_permission(Permission.MANAGE_CLASSES))],
)
async def create_class(
    data: ClassCreateRequest,
    actor: ScopedActor = Depends(get_actor),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> Envelope[ClassDetail]:
    async with uow as db:
        result = await ClassService(db).create_class(actor, data)
    return Envelope(data=result)


@router.get(
    "/{class_id}",
    response_model=Envelope[ClassDetail],
    summary="Get class",
    dependencies=[Depends(require_permission(Permission.VIEW_CLASSES))],
)
async def get_class(
    class_id: int,
    actor: ScopedActor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[ClassDetail]:
    return Envelope(data=await ClassService(db).get_class(actor, class_id))


@router.put(
    "/{class_id}",
    response_model=Envelope[ClassDetail],
    summary="Update class",
    description="Only given fields change. A schedules list replaces the whole timetable.",
    dependencies=[Depends(require_permission(Permission.MANAGE_CLASSES))],
)
async def update_class(
    class_id: int,
    data: ClassUpdateRequest,
    actor: ScopedActor = Depends(get_actor),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> Envelope[ClassDetail]:
    async with uow as db:
        result = await ClassService(db).update_class(actor, class_id, data)
    return Envelope(data=result)


@router.delete(
    "/{class_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete class",
    dependencies=[Depends(require_permission(Permission.DELETE_CLASSES))],
)
async def delete_class(
    class_id: int,
    actor: ScopedActor = Depends(get_actor),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> Response:
    async with uow as db:
        await ClassService(db).delete_class(actor, class_id)
    return no_content()


@router.post(
    "/{class_id}/students",
    response_model=Envelope[ClassStudent],
    status_code=status.HTTP_201_CREATED,
    summary="Enroll student",
    description="The student is identified by their user id.",
    dependencies=[Depends(require_permission(Permission.MANAGE_CLASS_STUDENTS))],
)
async def assign_student(
    class_id: int,
    data: AssignStudentRequest,
    actor: ScopedActor = Depends(get_actor),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> Envelope[ClassStudent]:
    async with uow as db:
        result = await ClassService(db).assign_student(actor, class_id, data)
    return Envelope(data=result)


@router.delete(
    "/{class_id}/students/{student_user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Remove student",
    dependencies=[Depends(require_permission(Permission.MANAGE_CLASS_STUDENTS))],
)
async def remove_student(
    class_id: int,
    student_user_id: int,
    actor: ScopedActor = Depends(get_actor),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> Response:
    async with uow as db:
        await ClassService(db).remove_student(actor, class_id, student_user_id)
    return no_content()
