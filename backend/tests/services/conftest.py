"""Service test fixtures — async SQLite database, seeded academic data, FastAPI test client.

Invariants:
    - Every test gets a fresh file-backed SQLite database under tmp_path
    - Engines come from db/session.create_engine, so tests run with BEGIN IMMEDIATE
    - get_db dependency overridden to use the test session factory
    - db_manager patched so the enrollment service wiring reaches the test database

Design Decisions:
    - File database over :memory:: aiosqlite shares one connection for :memory:,
      which would hide the locking that concurrent enrollments rely on
    - Seeding helpers return plain ids (str) since the service speaks in ids
"""

from datetime import datetime
from uuid import UUID

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select

from siakad.db.base import Base
from siakad.db.session import create_engine, create_session_factory
from siakad.infrastructure.database import get_db, DatabaseSessionManager
from siakad.infrastructure.enrollment_repository import SqlAlchemyEnrollmentGateway
from siakad.infrastructure.transaction import SqlAlchemyTransactionRunner
from siakad.models.course import Course
from siakad.models.course_offering import CourseOffering
from siakad.models.academic_year import AcademicYear
from siakad.models.course_registration import CourseRegistration
from siakad.models.semester import Semester
from siakad.models.user import User
from siakad.services.enrollment_service import EnrollmentConfig, EnrollmentService
import siakad.infrastructure.database as db_module
from siakad.main import app


@pytest.fixture
async def test_engine(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'siakad.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return create_session_factory(test_engine)


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def gateway(test_session_factory):
    return SqlAlchemyEnrollmentGateway(test_session_factory)


@pytest.fixture
def enrollment_service(test_session_factory, gateway):
    return EnrollmentService(
        gateway,
        SqlAlchemyTransactionRunner(test_session_factory),
        EnrollmentConfig(timeout_seconds=10.0),
    )


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    # get_enrollment_service resolves the session factory through db_manager
    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


# ==============================================================================
# Seeding
# ==============================================================================


@pytest.fixture
def seed_student(test_session_factory):
    """Insert a student user; returns its id as str."""
    counter = {"n": 0}

    async def _seed() -> str:
        counter["n"] += 1
        async with test_session_factory() as db:
            user = User(email=f"student{counter['n']}@siakad.test")
            db.add(user)
            await db.commit()
            return str(user.id)

    return _seed


@pytest.fixture
def seed_semester(test_session_factory):
    """Insert an academic year with one semester; returns the semester id as str."""
    counter = {"n": 0}

    async def _seed(code: str | None = None) -> str:
        counter["n"] += 1
        async with test_session_factory() as db:
            year = AcademicYear(
                code=f"2025/{counter['n']}",
                start_time=datetime(2025, 8, 1),
                end_time=datetime(2026, 7, 31),
            )
            db.add(year)
            await db.flush()
            semester = Semester(
                academic_year_id=year.id,
                code=code or "GANJIL",
                start_time=datetime(2025, 9, 1),
                end_time=datetime(2026, 1, 31),
            )
            db.add(semester)
            await db.commit()
            return str(semester.id)

    return _seed


@pytest.fixture
def seed_offering(test_session_factory, seed_semester):
    """Insert a course with one offering; returns the offering id as str.

    Offerings share one semester unless semester_id is given.
    """
    counter = {"n": 0}
    default_semester: list[str] = []

    async def _seed(
        *, capacity: int = 10, credit: int = 3,
        start_time: datetime | None = datetime(2025, 9, 8, 9, 0),
        code: str | None = None,
        semester_id: str | None = None,
    ) -> str:
        counter["n"] += 1
        if semester_id is None:
            if not default_semester:
                default_semester.append(await seed_semester())
            semester_id = default_semester[0]
        async with test_session_factory() as db:
            course = Course(
                code=code or f"IF{counter['n']:03d}",
                name=f"Course {counter['n']}",
                credit=credit,
            )
            db.add(course)
            await db.flush()
            offering = CourseOffering(
                semester_id=UUID(semester_id),
                course_id=course.id,
                section_code="A",
                capacity=capacity,
                start_time=start_time,
            )
            db.add(offering)
            await db.commit()
            return str(offering.id)

    return _seed


@pytest.fixture
def seed_registration(test_session_factory):
    """Insert a registration directly, bypassing the service."""
    async def _seed(student_id: str, offering_id: str) -> None:
        async with test_session_factory() as db:
            db.add(CourseRegistration(
                student_id=UUID(student_id),
                course_offering_id=UUID(offering_id),
            ))
            await db.commit()

    return _seed


@pytest.fixture
def count_registrations(test_session_factory):
    """Count stored registrations, optionally for one offering."""
    async def _count(offering_id: str | None = None) -> int:
        query = select(func.count()).select_from(CourseRegistration)
        if offering_id is not None:
            query = query.where(
                CourseRegistration.course_offering_id == UUID(offering_id),
            )
        async with test_session_factory() as db:
            return await db.scalar(query)

    return _count
