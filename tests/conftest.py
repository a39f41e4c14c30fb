# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests (mocked sessions, pure functions)
- Database tests against a throwaway SQLite file
- API tests through the full FastAPI stack
"""

import os
from collections.abc import AsyncGenerator, Callable
from dataclasses import dataclass
from datetime import date, time
from pathlib import Path
from unittest.mock import patch

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from src.core.config import JWTSettings, RateLimitSettings, Settings, clear_settings_cache
from src.domains.auth.jwt import JWTManager
from src.infrastructure.database.connection import create_engine_from_url, create_sessionmaker
from src.infrastructure.database.models import (
    Base,
    Class,
    Principal,
    School,
    Student,
    StudentClassMap,
    StudySchedule,
    Subject,
    Teacher,
    TeacherClassMap,
    User,
)

TEST_JWT_SECRET = "test-secret-key-for-testing-only"


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def test_environment() -> dict[str, str]:
    """Provide test environment variables.

    Returns:
        Dictionary of environment variables for testing.
    """
    return {
        "ENVIRONMENT": "development",
        "DEBUG": "false",
        "LOG_LEVEL": "WARNING",
        "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
        "JWT_SECRET_KEY": TEST_JWT_SECRET,
        "JWT_ALGORITHM": "HS256",
        "RATE_LIMIT_ENABLED": "false",
    }


@pytest.fixture
def settings(test_environment: dict[str, str]) -> Settings:
    """Settings built from the test environment, bypassing the cache."""
    with patch.dict(os.environ, test_environment):
        clear_settings_cache()
        built = Settings(
            _env_file=None,
            jwt=JWTSettings(secret_key=TEST_JWT_SECRET),
            rate_limit=RateLimitSettings(enabled=False),
        )
    clear_settings_cache()
    return built


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (uses a SQLite file)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a SQLite database file with every table."""
    engine = create_engine_from_url(f"sqlite+aiosqlite:///{tmp_path / 'school.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Sessionmaker bound to the test database."""
    return create_sessionmaker(engine)


@pytest_asyncio.fixture(scope="function")
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """A plain session on the test database, closed after the test."""
    async with session_factory() as session:
        yield session


# =============================================================================
# Seed Data
# =============================================================================


@dataclass(frozen=True)
class Seed:
    """Ids of the rows written by the ``seeded`` fixture.

    Two schools are seeded. School 5 has a principal, a teacher, three
    students (two enrolled in class 2) and two subjects. School 9 mirrors
    it with one of each. One teacher has no school at all.
    """

    admin_user: int = 1
    school_a: int = 5
    school_b: int = 9
    principal_a_user: int = 10
    principal_b_user: int = 11
    teacher_a_user: int = 20
    teacher_b_user: int = 21
    unassigned_teacher_user: int = 22
    teacher_a: int = 7
    teacher_b: int = 8
    student_a1_user: int = 30
    student_a2_user: int = 31
    student_b1_user: int = 32
    student_a3_user: int = 33
    student_a1: int = 1
    student_a2: int = 2
    student_b1: int = 3
    student_a3: int = 4
    class_a: int = 2
    class_b: int = 12
    math_a: int = 3
    physics_a: int = 4
    chemistry_b: int = 6


SEED = Seed()


def _user(user_id: int, first: str, last: str, role: str) -> User:
    return User(
        id=user_id,
        first_name=first,
        last_name=last,
        email=f"{first.lower()}.{last.lower()}@example.com",
        role=role,
    )


def seed_rows() -> list[list[object]]:
    """Build the shared test dataset, one group per foreign key level."""
    s = SEED
    return [
        [
            School(id=s.school_a, name="Riverside High", address="1 River Rd"),
            School(id=s.school_b, name="Hilltop Academy", address="9 Hill St"),
            _user(s.admin_user, "Ada", "Admin", "admin"),
            _user(s.principal_a_user, "Paula", "Rivers", "principal"),
            _user(s.principal_b_user, "Peter", "Hill", "principal"),
            _user(s.teacher_a_user, "Tom", "Baker", "teacher"),
            _user(s.teacher_b_user, "Tina", "Stone", "teacher"),
            _user(s.unassigned_teacher_user, "Uma", "Nowhere", "teacher"),
            _user(s.student_a1_user, "Alice", "Smith", "student"),
            _user(s.student_a2_user, "Bob", "Jones", "student"),
            _user(s.student_b1_user, "Carol", "White", "student"),
            _user(s.student_a3_user, "Dan", "Brown", "student"),
        ],
        [
            Principal(id=1, user_id=s.principal_a_user, school_id=s.school_a),
            Principal(id=2, user_id=s.principal_b_user, school_id=s.school_b),
            Teacher(id=s.teacher_a, user_id=s.teacher_a_user, school_id=s.school_a),
            Teacher(id=s.teacher_b, user_id=s.teacher_b_user, school_id=s.school_b),
            Teacher(id=9, user_id=s.unassigned_teacher_user, school_id=None),
            Student(id=s.student_a1, user_id=s.student_a1_user, school_id=s.school_a),
            Student(id=s.student_a2, user_id=s.student_a2_user, school_id=s.school_a),
            Student(id=s.student_b1, user_id=s.student_b1_user, school_id=s.school_b),
            Student(id=s.student_a3, user_id=s.student_a3_user, school_id=s.school_a),
            Subject(id=s.math_a, name="Mathematics", school_id=s.school_a),
            Subject(id=s.physics_a, name="Physics", school_id=s.school_a),
            Subject(id=s.chemistry_b, name="Chemistry", school_id=s.school_b),
            Class(
                id=s.class_a,
                name="10A",
                school_id=s.school_a,
                academic_year="2024-2025",
                start_date=date(2024, 9, 1),
            ),
            Class(id=s.class_b, name="11B", school_id=s.school_b, academic_year="2024-2025"),
        ],
        [
            StudentClassMap(student_id=s.student_a1, class_id=s.class_a),
            StudentClassMap(student_id=s.student_a2, class_id=s.class_a),
            StudentClassMap(student_id=s.student_b1, class_id=s.class_b),
            StudySchedule(
                class_id=s.class_a,
                teacher_id=s.teacher_a,
                subject_id=s.math_a,
                day_of_week="Monday",
                start_time=time(8, 0),
                end_time=time(9, 0),
            ),
            TeacherClassMap(teacher_id=s.teacher_a, class_id=s.class_a),
            TeacherClassMap(teacher_id=s.teacher_b, class_id=s.class_b),
        ],
    ]


@pytest_asyncio.fixture(scope="function")
async def seeded(session_factory: async_sessionmaker[AsyncSession]) -> Seed:
    """Write the shared dataset and return its ids."""
    async with session_factory() as session:
        for group in seed_rows():
            session.add_all(group)
            await session.flush()
        await session.commit()
    return SEED


# =============================================================================
# Token Fixtures
# =============================================================================


@pytest.fixture
def jwt_manager() -> JWTManager:
    """JWT manager signing with the test secret."""
    return JWTManager(JWTSettings(secret_key=TEST_JWT_SECRET))


@pytest.fixture
def auth_headers(jwt_manager: JWTManager) -> Callable[[int, str], dict[str, str]]:
    """Build Authorization headers for a user id and role."""

    def build(user_id: int, role: str) -> dict[str, str]:
        token = jwt_manager.create_access_token(user_id, role)
        return {"Authorization": f"Bearer {token}"}

    return build
