# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""People domain package: scoped teacher, student and principal directories."""

from src.domains.people.service import PeopleService

__all__ = ["PeopleService"]
