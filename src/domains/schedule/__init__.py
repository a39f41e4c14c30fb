# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Schedule domain package: single timetable slot management."""

from src.domains.schedule.service import ScheduleNotFoundError, ScheduleService

__all__ = ["ScheduleService", "ScheduleNotFoundError"]
