# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class, schedule and enrollment models."""

from datetime import date, time
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, model_validator

DayOfWeek = Literal[
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]

# Blank after stripping is rejected
ClassName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
AcademicYear = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=20)]


class ScheduleInput(BaseModel):
    """A timetable slot in a class create or update request."""

    subject_id: int = Field(gt=0)
    teacher_id: int = Field(gt=0, description="User id of the teacher")
    day_of_week: DayOfWeek
    start_time: time
    end_time: time

    @model_validator(mode="after")
    def check_times(self) -> "ScheduleInput":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ClassCreateRequest(BaseModel):
    """Request to create a class.

    school_id is ignored for principals and teachers, whose own school is
    always used.
    """

    name: ClassName
    school_id: int | None = Field(default=None, gt=0)
    academic_year: AcademicYear
    start_time: time | None = None
    end_time: time | None = None
    start_date: date | None = None
    end_date: date | None = None
    schedules: list[ScheduleInput] = Field(default_factory=list)


class ClassUpdateRequest(BaseModel):
    """Partial class update.

    When schedules is given, it replaces every existing schedule; an empty
    list removes them all. Only admins may change school_id.
    """

    name: ClassName | None = None
    school_id: int | None = Field(default=None, gt=0)
    academic_year: AcademicYear | None = None
    start_time: time | None = None
    end_time: time | None = None
    start_date: date | None = None
    end_date: date | None = None
    schedules: list[ScheduleInput] | None = None


class ClassSummary(BaseModel):
    """Class row as shown in lists."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    school_id: int
    academic_year: str
    start_time: time | None = None
    end_time: time | None = None
    start_date: date | None = None
    end_date: date | None = None


class ScheduleResponse(BaseModel):
    """A timetable slot with display names."""

    id: int
    subject_id: int
    subject_name: str
    teacher_id: int = Field(description="User id of the teacher")
    teacher_name: str
    day_of_week: str
    start_time: time
    end_time: time


class ClassStudent(BaseModel):
    """An enrolled student."""

    student_id: int
    user_id: int
    first_name: str
    last_name: str
    email: str


class ClassDetail(ClassSummary):
    """Class with its timetable and enrolled students."""

    schedules: list[ScheduleResponse]
    students: list[ClassStudent]


class AssignStudentRequest(BaseModel):
    """Enroll a student, identified by their user id."""

    student_id: int = Field(gt=0, description="User id of the student")
