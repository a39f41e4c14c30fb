# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance request and response models."""

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

AttendanceStatus = Literal["present", "absent", "late", "permission"]


class AttendanceRecordInput(BaseModel):
    """One student's attendance in a batch."""

    student_id: int = Field(gt=0, description="Student profile id")
    status: AttendanceStatus
    remarks: str | None = Field(default=None, max_length=1000)


class AttendanceBatchRequest(BaseModel):
    """Attendance of a class for one day."""

    class_id: int = Field(gt=0)
    date: date
    records: list[AttendanceRecordInput] = Field(min_length=1)


class AttendanceResponse(BaseModel):
    """An attendance row with student and class names."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    date: date
    status: str
    remarks: str | None = None
    student_id: int
    student_name: str
    class_id: int
    class_name: str


class BatchWriteResponse(BaseModel):
    """Result of a batch write."""

    message: str
    count: int
