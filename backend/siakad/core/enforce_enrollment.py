"""Enrollment Rule Enforcement — pure checks behind each step of the enrollment pipeline.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - Return an EnrollmentError on violation, None on success (the caller raises)
    - Integrity guard order: capacity, credit, start time
    - Existing enrollments with missing start time or non-positive credit never block

Design Decisions:
    - Return errors instead of raising: the service decides when to raise, so each
      rule is testable without pytest.raises plumbing (ADR: Functional Core)
    - Conflict search returns the FIRST conflict in gateway order: deterministic details
"""

from collections.abc import Iterable
from datetime import datetime

from siakad.core.domain_types import EnrolledSlot, OfferingDetails
from siakad.core.errors import (
    CapacityExceededError,
    DuplicateEnrollmentError,
    EnrollmentError,
    InvalidCourseDataError,
    InvalidTimestampError,
    ScheduleConflictError,
)
from siakad.core.schedule import TimeRange, course_time_range


def check_not_enrolled(
    already_enrolled: bool, student_id: str, course_offering_id: str,
) -> EnrollmentError | None:
    """Rule 1: at most one enrollment per (student, offering)."""
    if already_enrolled:
        return DuplicateEnrollmentError(student_id, course_offering_id)
    return None


def check_offering_integrity(offering: OfferingDetails) -> EnrollmentError | None:
    """Reject offerings whose stored data cannot be enrolled against."""
    if offering.capacity <= 0:
        return InvalidCourseDataError("capacity", "must be greater than 0")
    if offering.credit <= 0:
        return InvalidCourseDataError("credit", "must be greater than 0")
    if offering.start_time is None:
        return InvalidCourseDataError("start time", "is not set")
    return None


def check_capacity(current_count: int, capacity: int) -> EnrollmentError | None:
    """Rule 2: a seat must remain (count < capacity)."""
    if current_count >= capacity:
        return CapacityExceededError(current_count, capacity)
    return None


def _require_timestamp(value: object, where: str) -> datetime:
    if not isinstance(value, datetime):
        raise InvalidTimestampError(where)
    return value


def candidate_time_range(offering: OfferingDetails) -> TimeRange:
    """Derived interval of the offering being enrolled into.

    Raises InvalidTimestampError when start_time is not a timestamp.
    """
    start = _require_timestamp(offering.start_time, "new course start time")
    return course_time_range(start, offering.credit)


def is_schedulable(slot: EnrolledSlot) -> bool:
    """Pre-existing bad rows are skipped, not treated as blocking errors."""
    return slot.start_time is not None and slot.credit > 0


def find_schedule_conflict(
    candidate: TimeRange, existing: Iterable[EnrolledSlot],
) -> EnrollmentError | None:
    """Rule 3: candidate must not overlap any well-formed existing enrollment."""
    for slot in existing:
        if not is_schedulable(slot):
            continue
        start = _require_timestamp(slot.start_time, "existing course start time")
        taken = course_time_range(start, slot.credit)
        if candidate.overlaps(taken):
            return ScheduleConflictError(candidate.label(), taken.label())
    return None
