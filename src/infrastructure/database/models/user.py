# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User accounts and role profiles.

A user holds exactly one role. Principals, teachers and students each have
a profile row mapping the user to a school; admins have no profile. The
profile's school_id is what tenant scoping is resolved from, and it is
nullable because accounts can exist before they are assigned to a school.
"""

from datetime import date
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Date, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, IdMixin, TimestampMixin

if TYPE_CHECKING:
    from src.infrastructure.database.models.school import School


class User(IdMixin, TimestampMixin, Base):
    """An account that can authenticate."""

    __tablename__ = "users"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, index=True)


class Principal(IdMixin, Base):
    """Principal profile."""

    __tablename__ = "principals"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    school_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("schools.id", ondelete="SET NULL"), nullable=True, index=True
    )

    user: Mapped[User] = relationship(lazy="joined")
    school: Mapped[Optional["School"]] = relationship()


class Teacher(IdMixin, Base):
    """Teacher profile."""

    __tablename__ = "teachers"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    school_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("schools.id", ondelete="SET NULL"), nullable=True, index=True
    )
    specialization: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    user: Mapped[User] = relationship(lazy="joined")
    school: Mapped[Optional["School"]] = relationship()


class Student(IdMixin, Base):
    """Student profile."""

    __tablename__ = "students"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    school_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("schools.id", ondelete="SET NULL"), nullable=True, index=True
    )
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    user: Mapped[User] = relationship(lazy="joined")
    school: Mapped[Optional["School"]] = relationship()
