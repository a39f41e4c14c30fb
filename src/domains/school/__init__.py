# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School domain package."""

from src.domains.school.service import SchoolNotFoundError, SchoolService

__all__ = ["SchoolService", "SchoolNotFoundError"]
