# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class domain package.

This package provides class management functionality including:
- Class CRUD operations with weekly schedules
- Student enrollment
- The caller's own classes
"""

from src.domains.class_.service import (
    ClassNotFoundError,
    ClassService,
    StudentAlreadyEnrolledError,
)

__all__ = [
    "ClassService",
    "ClassNotFoundError",
    "StudentAlreadyEnrolledError",
]
