"""Enrollment Gateway — SQLAlchemy implementation of the EnrollmentGateway protocol.

Invariants:
    - With a handle, every statement runs on that session (same transaction, same snapshot)
    - Without a handle, each call runs in its own short transaction
    - get_offering_with_course locks the offering row (FOR UPDATE) inside a transaction
    - Ids that are not UUIDs name no row: reads report "absent", never raise
    - Unique-constraint rejections surface as UniqueConstraintViolation; every other
      database failure propagates as the original SQLAlchemy exception

Design Decisions:
    - Row lock on the offering serializes competing enrollments: the capacity count
      and the insert that follows it cannot interleave with another enrollment
      into the same offering (ADR: row-lock isolation strategy)
    - Returns frozen domain snapshots, never ORM instances: core stays free of SQLAlchemy
"""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import Select, exists, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from siakad.core.domain_types import (
    CourseOfferingId, EnrolledSlot, EnrollmentId, EnrollmentRecord,
    OfferingDetails, StudentId,
)
from siakad.core.repository_protocols import UniqueConstraintViolation
from siakad.models.course import Course
from siakad.models.course_offering import CourseOffering
from siakad.models.course_registration import (
    ENROLLMENT_UNIQUE_CONSTRAINT, CourseRegistration,
)

_PG_UNIQUE_VIOLATION = "23505"


def _as_uuid(value: str | uuid.UUID) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


def _parse_uuid(value: str | uuid.UUID) -> uuid.UUID | None:
    """None for ids that cannot name a row."""
    try:
        return _as_uuid(value)
    except ValueError:
        return None


def offering_with_course_query(course_offering_id: uuid.UUID, *, lock: bool) -> Select:
    """Offering joined to its course; lock=True takes the offering row lock."""
    query = (
        select(
            CourseOffering.id,
            CourseOffering.capacity,
            CourseOffering.start_time,
            Course.credit,
        )
        .join(Course, CourseOffering.course_id == Course.id)
        .where(CourseOffering.id == course_offering_id)
    )
    if lock:
        query = query.with_for_update(of=CourseOffering)
    return query


def is_unique_violation(exc: IntegrityError) -> bool:
    """Distinguish UNIQUE rejections from FK/NOT NULL/CHECK failures."""
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code is not None:
        return code == _PG_UNIQUE_VIOLATION
    # SQLite reports "UNIQUE constraint failed: <table>.<column>"
    return "unique constraint" in str(orig).lower()


class SqlAlchemyEnrollmentGateway:
    """Reads and writes enrollment data through an AsyncSession."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _use(self, tx: AsyncSession | None) -> AsyncIterator[AsyncSession]:
        if tx is not None:
            yield tx
            return
        async with self._session_factory() as session:
            async with session.begin():
                yield session

    async def enrollment_exists(
        self, tx: AsyncSession | None, student_id: str, course_offering_id: str,
    ) -> bool:
        student_uuid = _parse_uuid(student_id)
        offering_uuid = _parse_uuid(course_offering_id)
        if student_uuid is None or offering_uuid is None:
            return False
        query = select(
            exists().where(
                CourseRegistration.student_id == student_uuid,
                CourseRegistration.course_offering_id == offering_uuid,
            ),
        )
        async with self._use(tx) as db:
            return bool(await db.scalar(query))

    async def get_offering_with_course(
        self, tx: AsyncSession | None, course_offering_id: str,
    ) -> OfferingDetails | None:
        offering_uuid = _parse_uuid(course_offering_id)
        if offering_uuid is None:
            return None
        query = offering_with_course_query(offering_uuid, lock=tx is not None)
        async with self._use(tx) as db:
            row = (await db.execute(query)).one_or_none()
        if row is None:
            return None
        return OfferingDetails(
            course_offering_id=str(row.id),
            capacity=row.capacity,
            credit=row.credit,
            start_time=row.start_time,
        )

    async def count_active_enrollments(
        self, tx: AsyncSession | None, course_offering_id: str,
    ) -> int:
        query = (
            select(func.count())
            .select_from(CourseRegistration)
            .where(
                CourseRegistration.course_offering_id == _as_uuid(course_offering_id),
            )
        )
        async with self._use(tx) as db:
            return int(await db.scalar(query) or 0)

    async def list_student_enrollments_with_details(
        self, tx: AsyncSession | None, student_id: str,
        *, exclude_offering_id: str | None = None,
    ) -> list[EnrolledSlot]:
        query = (
            select(
                CourseRegistration.course_offering_id,
                CourseOffering.start_time,
                Course.credit,
            )
            .join(
                CourseOffering,
                CourseRegistration.course_offering_id == CourseOffering.id,
            )
            .join(Course, CourseOffering.course_id == Course.id)
            .where(CourseRegistration.student_id == _as_uuid(student_id))
            .order_by(CourseRegistration.created_at)
        )
        if exclude_offering_id is not None:
            query = query.where(
                CourseRegistration.course_offering_id != _as_uuid(exclude_offering_id),
            )
        async with self._use(tx) as db:
            rows = (await db.execute(query)).all()
        return [
            EnrolledSlot(
                course_offering_id=str(row.course_offering_id),
                start_time=row.start_time,
                credit=row.credit,
            )
            for row in rows
        ]

    async def create_enrollment(
        self, tx: AsyncSession | None, student_id: str, course_offering_id: str,
    ) -> EnrollmentRecord:
        registration = CourseRegistration(
            student_id=_as_uuid(student_id),
            course_offering_id=_as_uuid(course_offering_id),
        )
        async with self._use(tx) as db:
            db.add(registration)
            try:
                await db.flush()
            except IntegrityError as e:
                if is_unique_violation(e):
                    raise UniqueConstraintViolation(
                        ENROLLMENT_UNIQUE_CONSTRAINT, e,
                    ) from e
                raise
        return EnrollmentRecord(
            id=EnrollmentId(str(registration.id)),
            student_id=StudentId(str(registration.student_id)),
            course_offering_id=CourseOfferingId(str(registration.course_offering_id)),
            created_at=registration.created_at,
        )
