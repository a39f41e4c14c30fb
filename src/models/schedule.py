# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Standalone timetable slot models."""

from datetime import time

from pydantic import BaseModel, Field, model_validator

from src.models.class_ import DayOfWeek, ScheduleInput, ScheduleResponse


class ScheduleCreateRequest(ScheduleInput):
    """Add one slot to a class's timetable."""

    class_id: int = Field(gt=0)


class ScheduleUpdateRequest(BaseModel):
    """Partial slot update. At least one field must be given."""

    class_id: int | None = Field(default=None, gt=0)
    subject_id: int | None = Field(default=None, gt=0)
    teacher_id: int | None = Field(default=None, gt=0, description="User id of the teacher")
    day_of_week: DayOfWeek | None = None
    start_time: time | None = None
    end_time: time | None = None

    @model_validator(mode="after")
    def check_fields(self) -> "ScheduleUpdateRequest":
        if not self.model_fields_set:
            raise ValueError("No fields provided for update.")
        if None not in (self.start_time, self.end_time) and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ScheduleDetail(ScheduleResponse):
    """A slot with the class it belongs to."""

    class_id: int
    class_name: str
