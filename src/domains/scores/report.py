# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Score report computation.

Pure functions over already loaded rows, so grading and ranking can be
tested without a database.

A student's average is computed in two steps: scores are averaged per
assessment type within a subject, those type averages are averaged into a
subject average, and the subject averages are averaged into the final
score. Ranks use competition ranking ("1, 2, 2, 4") over the rounded final
score; students without scores are left unranked.
"""

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from statistics import fmean

from src.core.config.settings import GradingSettings
from src.models.score import (
    ReportStats,
    ScoreReport,
    StudentReport,
    SubjectGroup,
    SubjectPerformance,
)


@dataclass(frozen=True)
class ReportStudent:
    student_id: int
    student_name: str


@dataclass(frozen=True)
class ScoreEntry:
    student_id: int
    subject_id: int
    subject_name: str
    assessment_type: str
    score: float


def grade_for(average: float, grading: GradingSettings) -> str:
    """Return the grade label for a final average."""
    for ratio, label in grading.grade_bands:
        if average >= grading.max_score * ratio:
            return label
    return grading.fallback_grade


def competition_ranks(averages: dict[int, float | None]) -> dict[int, int | None]:
    """Rank students by average, highest first, ties sharing a rank.

    Args:
        averages: Student id to rounded average, None for no score.

    Returns:
        Student id to rank, None for students without a score.
    """
    ranks: dict[int, int | None] = {sid: None for sid, avg in averages.items() if avg is None}
    scored = sorted(
        ((sid, avg) for sid, avg in averages.items() if avg is not None),
        key=lambda item: item[1],
        reverse=True,
    )
    current = 0
    previous: float | None = None
    for position, (sid, avg) in enumerate(scored, start=1):
        if previous is None or avg < previous:
            current = position
            previous = avg
        ranks[sid] = current
    return ranks


def _subject_groups(scores: Sequence[ScoreEntry]) -> list[SubjectGroup]:
    names: dict[int, str] = {}
    types: dict[int, set[str]] = defaultdict(set)
    for entry in scores:
        names[entry.subject_id] = entry.subject_name
        types[entry.subject_id].add(entry.assessment_type)
    return [
        SubjectGroup(
            subject_id=subject_id,
            subject_name=names[subject_id],
            assessment_types=sorted(types[subject_id]),
        )
        for subject_id in sorted(names, key=lambda sid: (names[sid], sid))
    ]


def _student_line(
    student: ReportStudent,
    entries: Sequence[ScoreEntry],
    grading: GradingSettings,
) -> StudentReport:
    by_subject: dict[int, dict[str, list[float]]] = defaultdict(lambda: defaultdict(list))
    subject_names: dict[int, str] = {}
    for entry in entries:
        by_subject[entry.subject_id][entry.assessment_type].append(entry.score)
        subject_names[entry.subject_id] = entry.subject_name

    type_scores: dict[str, float] = {}
    subject_scores: dict[str, float] = {}
    subject_averages: list[float] = []
    for subject_id, assessments in by_subject.items():
        type_averages = []
        for assessment_type, values in assessments.items():
            average = fmean(values)
            type_scores[f"{subject_id}-{assessment_type}"] = round(average, 2)
            type_averages.append(average)
        subject_average = fmean(type_averages)
        subject_scores[subject_names[subject_id]] = round(subject_average, 2)
        subject_averages.append(subject_average)

    if not subject_averages:
        return StudentReport(
            student_id=student.student_id,
            student_name=student.student_name,
            subject_scores={},
            type_scores={},
            average_score=None,
            grade=None,
            passed=None,
            rank=None,
        )

    final = fmean(subject_averages)
    return StudentReport(
        student_id=student.student_id,
        student_name=student.student_name,
        subject_scores=subject_scores,
        type_scores=type_scores,
        average_score=round(final, 2),
        grade=grade_for(final, grading),
        passed=final >= grading.pass_mark,
        rank=None,
    )


def _subject_performance(scores: Sequence[ScoreEntry]) -> list[SubjectPerformance]:
    values: dict[int, list[float]] = defaultdict(list)
    names: dict[int, str] = {}
    for entry in scores:
        values[entry.subject_id].append(entry.score)
        names[entry.subject_id] = entry.subject_name
    performance = [
        SubjectPerformance(
            subject_id=subject_id,
            subject_name=names[subject_id],
            average_score=round(fmean(subject_values), 2),
            scores_count=len(subject_values),
        )
        for subject_id, subject_values in values.items()
    ]
    performance.sort(key=lambda item: item.average_score, reverse=True)
    return performance


def build_score_report(
    students: Sequence[ReportStudent],
    scores: Sequence[ScoreEntry],
    grading: GradingSettings,
    school_id: int | None = None,
    class_id: int | None = None,
) -> ScoreReport:
    """Compute the ranked report for a set of students.

    Args:
        students: Students in report order.
        scores: Every score in the report window.
        grading: Grade bands and pass mark.
        school_id: School the report covers, if any.
        class_id: Class the report covers, if any.

    Returns:
        The complete ScoreReport.
    """
    per_student: dict[int, list[ScoreEntry]] = defaultdict(list)
    for entry in scores:
        per_student[entry.student_id].append(entry)

    lines = [_student_line(s, per_student.get(s.student_id, ()), grading) for s in students]
    ranks = competition_ranks({line.student_id: line.average_score for line in lines})
    for line in lines:
        line.rank = ranks.get(line.student_id)

    scored = [line for line in lines if line.average_score is not None]
    distribution: dict[str, int] = defaultdict(int)
    for line in scored:
        distribution[line.grade] += 1

    stats = ReportStats(
        total_students=len(lines),
        passed=sum(1 for line in scored if line.passed),
        failed=sum(1 for line in scored if not line.passed),
        average_score=round(fmean(line.average_score for line in scored), 2) if scored else 0.0,
        grade_distribution=dict(distribution),
        subject_performance=_subject_performance(scores),
    )

    return ScoreReport(
        school_id=school_id,
        class_id=class_id,
        max_score=grading.max_score,
        pass_mark=grading.pass_mark,
        subject_groups=_subject_groups(scores),
        students=lines,
        stats=stats,
    )
