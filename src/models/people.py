# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teacher, student and principal directory models.

People are addressed by their user id; ``id`` is the role profile's id.
"""

from datetime import date

from pydantic import BaseModel


class PersonResponse(BaseModel):
    """A user with a role profile and the school it is assigned to."""

    id: int
    user_id: int
    first_name: str
    last_name: str
    email: str
    school_id: int | None = None
    school_name: str | None = None


class TeacherResponse(PersonResponse):
    specialization: str | None = None


class StudentResponse(PersonResponse):
    date_of_birth: date | None = None


class PrincipalResponse(PersonResponse):
    pass
