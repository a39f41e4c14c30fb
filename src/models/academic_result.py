# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic result request and response models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AcademicResultInput(BaseModel):
    """One student's final grade."""

    student_id: int = Field(gt=0, description="Student profile id")
    final_grade: str = Field(min_length=1, max_length=20)
    comments: str | None = Field(default=None, max_length=2000)


class AcademicResultBatchRequest(BaseModel):
    """Final grades of a class in one subject and period."""

    class_id: int = Field(gt=0)
    subject_id: int = Field(gt=0)
    academic_period: str = Field(min_length=1, max_length=50)
    results: list[AcademicResultInput] = Field(min_length=1)


class AcademicResultResponse(BaseModel):
    """A published result with display names."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    student_id: int
    student_name: str
    class_id: int
    class_name: str
    subject_id: int
    subject_name: str
    academic_period: str
    final_grade: str
    comments: str | None = None
    published_at: datetime | None = None
    published_by: str | None = None
