# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Subject models."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

SubjectName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]


class SubjectCreateRequest(BaseModel):
    """Request to create a subject.

    school_id is ignored for principals, whose own school is always used.
    """

    name: SubjectName
    school_id: int | None = Field(default=None, gt=0)


class SubjectUpdateRequest(BaseModel):
    name: SubjectName


class SubjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    school_id: int
