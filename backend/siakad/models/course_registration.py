"""CourseRegistration ORM — the enrollment link between a student and an offering.

Invariants:
    - UNIQUE (student_id, course_offering_id): last line of defence against
      concurrent duplicate inserts
    - Rows are created only by the enrollment service; there is no update path

Design Decisions:
    - No soft-delete column: every stored registration counts as active
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from siakad.db.base import Base

ENROLLMENT_UNIQUE_CONSTRAINT = "uq_course_registrations_student_offering"


class CourseRegistration(Base):
    """Enrollment of one student in one course offering."""
    __tablename__ = "course_registrations"
    __table_args__ = (
        UniqueConstraint(
            "student_id", "course_offering_id",
            name=ENROLLMENT_UNIQUE_CONSTRAINT,
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False,
    )
    course_offering_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("course_offerings.id"), nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
