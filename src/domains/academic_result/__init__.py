# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic result domain package."""

from src.domains.academic_result.service import (
    RESULT_INSERT_COLUMNS,
    RESULT_UPDATE_COLUMNS,
    AcademicResultNotFoundError,
    AcademicResultService,
)

__all__ = [
    "AcademicResultService",
    "AcademicResultNotFoundError",
    "RESULT_INSERT_COLUMNS",
    "RESULT_UPDATE_COLUMNS",
]
