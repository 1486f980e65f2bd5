"""Enrollment against a real database — SQL gateway, transaction runner, and service together.

Invariants:
    - Registrations for an offering never exceed its capacity, even under concurrency
    - A rejected attempt leaves no registration behind
    - The UNIQUE constraint surfaces as UniqueConstraintViolation from the gateway

Design Decisions:
    - Concurrency exercised with asyncio.gather over distinct sessions: SQLite's
      BEGIN IMMEDIATE serializes them the way FOR UPDATE does on PostgreSQL
"""

import asyncio
from datetime import datetime
from uuid import UUID

import pytest
from sqlalchemy.dialects import postgresql

from siakad.core.errors import (
    CapacityExceededError,
    DuplicateEnrollmentError,
    InvalidCourseDataError,
    OfferingNotFoundError,
    ScheduleConflictError,
)
from siakad.core.repository_protocols import UniqueConstraintViolation
from siakad.infrastructure.enrollment_repository import offering_with_course_query


NINE_AM = datetime(2025, 9, 8, 9, 0)


# ==============================================================================
# End-to-end pipeline
# ==============================================================================


async def test_enroll_persists_registration(
    enrollment_service, seed_student, seed_offering, count_registrations,
):
    student = await seed_student()
    offering = await seed_offering(capacity=2)

    record = await enrollment_service.enroll_student(student, offering)

    assert record.student_id == student
    assert record.course_offering_id == offering
    assert record.id
    assert await count_registrations(offering) == 1


async def test_second_attempt_is_duplicate(
    enrollment_service, seed_student, seed_offering, count_registrations,
):
    student = await seed_student()
    offering = await seed_offering()
    await enrollment_service.enroll_student(student, offering)

    with pytest.raises(DuplicateEnrollmentError):
        await enrollment_service.enroll_student(student, offering)
    assert await count_registrations(offering) == 1


async def test_unknown_offering(enrollment_service, seed_student):
    student = await seed_student()
    with pytest.raises(OfferingNotFoundError):
        await enrollment_service.enroll_student(
            student, "00000000-0000-0000-0000-000000000000",
        )


async def test_offering_without_start_time_is_rejected(
    enrollment_service, seed_student, seed_offering, count_registrations,
):
    student = await seed_student()
    offering = await seed_offering(start_time=None)

    with pytest.raises(InvalidCourseDataError):
        await enrollment_service.enroll_student(student, offering)
    assert await count_registrations() == 0


async def test_full_offering_rejected_with_counts(
    enrollment_service, seed_student, seed_offering, seed_registration,
    count_registrations,
):
    offering = await seed_offering(capacity=2)
    for _ in range(2):
        await seed_registration(await seed_student(), offering)

    with pytest.raises(CapacityExceededError) as exc:
        await enrollment_service.enroll_student(await seed_student(), offering)

    assert (exc.value.current_count, exc.value.max_capacity) == (2, 2)
    assert await count_registrations(offering) == 2


async def test_schedule_conflict_leaves_no_row(
    enrollment_service, seed_student, seed_offering, count_registrations,
):
    student = await seed_student()
    morning = await seed_offering(credit=3, start_time=NINE_AM)
    overlapping = await seed_offering(
        credit=2, start_time=datetime(2025, 9, 8, 11, 29),
    )
    await enrollment_service.enroll_student(student, morning)

    with pytest.raises(ScheduleConflictError) as exc:
        await enrollment_service.enroll_student(student, overlapping)

    assert exc.value.new_course_time == "11:29-13:09"
    assert exc.value.existing_course_time == "09:00-11:30"
    assert await count_registrations(overlapping) == 0


async def test_adjacent_courses_both_enroll(
    enrollment_service, seed_student, seed_offering, count_registrations,
):
    student = await seed_student()
    morning = await seed_offering(credit=3, start_time=NINE_AM)
    after = await seed_offering(credit=2, start_time=datetime(2025, 9, 8, 11, 30))

    await enrollment_service.enroll_student(student, morning)
    await enrollment_service.enroll_student(student, after)

    assert await count_registrations() == 2


# ==============================================================================
# Concurrency
# ==============================================================================


async def test_concurrent_enrollments_respect_capacity(
    enrollment_service, seed_student, seed_offering, count_registrations,
):
    offering = await seed_offering(capacity=1)
    students = [await seed_student() for _ in range(5)]

    results = await asyncio.gather(
        *(enrollment_service.enroll_student(s, offering) for s in students),
        return_exceptions=True,
    )

    successes = [r for r in results if not isinstance(r, BaseException)]
    rejections = [r for r in results if isinstance(r, CapacityExceededError)]
    assert len(successes) == 1
    assert len(rejections) == 4
    assert await count_registrations(offering) == 1


async def test_concurrent_duplicate_requests_admit_one(
    enrollment_service, seed_student, seed_offering, count_registrations,
):
    student = await seed_student()
    offering = await seed_offering(capacity=10)

    results = await asyncio.gather(
        *(enrollment_service.enroll_student(student, offering) for _ in range(3)),
        return_exceptions=True,
    )

    successes = [r for r in results if not isinstance(r, BaseException)]
    duplicates = [r for r in results if isinstance(r, DuplicateEnrollmentError)]
    assert len(successes) == 1
    assert len(duplicates) == 2
    assert await count_registrations(offering) == 1


# ==============================================================================
# Gateway
# ==============================================================================


async def test_gateway_standalone_calls(
    gateway, seed_student, seed_offering, seed_registration,
):
    student = await seed_student()
    offering = await seed_offering(capacity=7, credit=2)
    await seed_registration(student, offering)

    assert await gateway.enrollment_exists(None, student, offering)
    assert await gateway.count_active_enrollments(None, offering) == 1

    details = await gateway.get_offering_with_course(None, offering)
    assert details.capacity == 7
    assert details.credit == 2
    assert details.start_time.replace(tzinfo=None) == NINE_AM

    slots = await gateway.list_student_enrollments_with_details(None, student)
    assert [s.course_offering_id for s in slots] == [offering]
    assert slots[0].credit == 2


async def test_gateway_excludes_target_offering(
    gateway, seed_student, seed_offering, seed_registration,
):
    student = await seed_student()
    first = await seed_offering()
    second = await seed_offering()
    await seed_registration(student, first)
    await seed_registration(student, second)

    slots = await gateway.list_student_enrollments_with_details(
        None, student, exclude_offering_id=first,
    )
    assert [s.course_offering_id for s in slots] == [second]


async def test_gateway_missing_offering_returns_none(gateway):
    assert await gateway.get_offering_with_course(
        None, "00000000-0000-0000-0000-000000000000",
    ) is None


async def test_unique_constraint_surfaces_as_violation(
    gateway, seed_student, seed_offering, seed_registration,
):
    student = await seed_student()
    offering = await seed_offering()
    await seed_registration(student, offering)

    with pytest.raises(UniqueConstraintViolation) as exc:
        await gateway.create_enrollment(None, student, offering)
    assert exc.value.constraint == "uq_course_registrations_student_offering"


def test_offering_lock_renders_for_update_on_postgresql():
    query = offering_with_course_query(
        UUID("00000000-0000-0000-0000-000000000001"), lock=True,
    )
    sql = str(query.compile(dialect=postgresql.dialect()))
    assert "FOR UPDATE OF course_offerings" in sql


def test_standalone_offering_read_takes_no_lock():
    query = offering_with_course_query(
        UUID("00000000-0000-0000-0000-000000000001"), lock=False,
    )
    assert "FOR UPDATE" not in str(query.compile(dialect=postgresql.dialect()))


# ==============================================================================
# Malformed ids
# ==============================================================================


async def test_malformed_offering_id_is_not_found(
    enrollment_service, seed_student, count_registrations,
):
    student = await seed_student()

    with pytest.raises(OfferingNotFoundError) as exc:
        await enrollment_service.enroll_student(student, "not-a-uuid")

    assert not exc.value.retryable
    assert await count_registrations() == 0


async def test_gateway_reads_treat_malformed_ids_as_absent(gateway, seed_offering):
    offering = await seed_offering()

    assert await gateway.get_offering_with_course(None, "not-a-uuid") is None
    assert not await gateway.enrollment_exists(None, "not-a-uuid", offering)
