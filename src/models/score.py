# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Score request, response and report models."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class ScoreInput(BaseModel):
    """One assessment score in a batch."""

    student_id: int = Field(gt=0, description="Student profile id")
    class_id: int = Field(gt=0)
    subject_id: int = Field(gt=0)
    assessment_type: str = Field(min_length=1, max_length=50)
    score: float = Field(ge=0)
    date_recorded: date


class ScoreBatchRequest(BaseModel):
    """Scores to insert or update."""

    scores: list[ScoreInput] = Field(min_length=1)


class ScoreResponse(BaseModel):
    """A score row with display names."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    student_id: int
    student_name: str
    class_id: int
    class_name: str
    subject_id: int
    subject_name: str
    assessment_type: str
    score: float
    date_recorded: date


class StudentReport(BaseModel):
    """Per-student line of a score report.

    Students without any score in the report window have no average,
    grade, pass flag or rank.
    """

    student_id: int
    student_name: str
    subject_scores: dict[str, float]
    type_scores: dict[str, float]
    average_score: float | None
    grade: str | None
    passed: bool | None
    rank: int | None


class SubjectGroup(BaseModel):
    """A subject and the assessment types recorded for it."""

    subject_id: int
    subject_name: str
    assessment_types: list[str]


class SubjectPerformance(BaseModel):
    """Mean of every score recorded for one subject."""

    subject_id: int
    subject_name: str
    average_score: float
    scores_count: int


class ReportStats(BaseModel):
    """Aggregate figures of a score report."""

    total_students: int
    passed: int
    failed: int
    average_score: float
    grade_distribution: dict[str, int]
    subject_performance: list[SubjectPerformance]


class ScoreReport(BaseModel):
    """Ranked score report for a class or a school."""

    school_id: int | None
    class_id: int | None
    max_score: float
    pass_mark: float
    subject_groups: list[SubjectGroup]
    students: list[StudentReport]
    stats: ReportStats
