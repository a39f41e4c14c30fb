# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance domain package."""

from src.domains.attendance.service import (
    ATTENDANCE_INSERT_COLUMNS,
    ATTENDANCE_UPDATE_COLUMNS,
    AttendanceService,
    format_display_date,
)

__all__ = [
    "AttendanceService",
    "ATTENDANCE_INSERT_COLUMNS",
    "ATTENDANCE_UPDATE_COLUMNS",
    "format_display_date",
]
