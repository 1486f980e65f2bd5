"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - StudentId, CourseOfferingId, EnrollmentId wrap UUID strings
    - Gateway read results are frozen snapshots: core never mutates them
    - All valid states encoded as Enums, no raw integer matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - start_time stays Optional on snapshots: the integrity guard decides what missing means
"""

from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

StudentId = NewType("StudentId", str)
CourseOfferingId = NewType("CourseOfferingId", str)
EnrollmentId = NewType("EnrollmentId", str)


# ─── Constants ───────────────────────────────────────────────────

MINUTES_PER_CREDIT = 50


# ─── Enums ───────────────────────────────────────────────────────

class UserRole(IntEnum):
    """User roles — maps to DB `users.role` column."""
    ADMIN = 1
    COORDINATOR = 2
    STUDENT = 3


# ─── Gateway Snapshots ───────────────────────────────────────────

@dataclass(frozen=True)
class OfferingDetails:
    """Course offering joined with its course, as read inside a transaction."""
    course_offering_id: str
    capacity: int
    credit: int
    start_time: datetime | None


@dataclass(frozen=True)
class EnrolledSlot:
    """One of the student's existing enrollments, reduced to its schedule."""
    course_offering_id: str
    start_time: datetime | None
    credit: int


@dataclass(frozen=True)
class EnrollmentRecord:
    """Committed enrollment row."""
    id: EnrollmentId
    student_id: StudentId
    course_offering_id: CourseOfferingId
    created_at: datetime | None = None
