# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Scores domain package.

This package provides assessment score functionality including:
- Batch score upsert with tenant and enrollment checks
- Scoped score listings and deletion
- Ranked score reports with configurable grade bands
"""

from src.domains.scores.report import (
    ReportStudent,
    ScoreEntry,
    build_score_report,
    competition_ranks,
    grade_for,
)
from src.domains.scores.service import (
    SCORE_INSERT_COLUMNS,
    SCORE_UPDATE_COLUMNS,
    ScoreNotFoundError,
    ScoreService,
)

__all__ = [
    "ScoreService",
    "ScoreNotFoundError",
    "SCORE_INSERT_COLUMNS",
    "SCORE_UPDATE_COLUMNS",
    "ReportStudent",
    "ScoreEntry",
    "build_score_report",
    "competition_ranks",
    "grade_for",
]
