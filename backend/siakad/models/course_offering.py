"""CourseOffering ORM — one enrollable, scheduled section of a course.

Invariants:
    - Always belongs to a Course (course_id FK) and a Semester (semester_id FK)
    - (semester_id, course_id, section_code) is unique: a section code can be
      reused for the same course in a later semester
    - capacity bounds the number of registrations

Design Decisions:
    - start_time nullable at the ORM level: rows imported from legacy sources may
      lack it, and the enrollment integrity guard rejects them explicitly
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from siakad.db.base import Base


class CourseOffering(Base):
    """Scheduled course section with fixed capacity and start time."""
    __tablename__ = "course_offerings"
    __table_args__ = (
        UniqueConstraint(
            "semester_id", "course_id", "section_code",
            name="uq_course_offerings_semester_course_section",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    semester_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("semesters.id"), nullable=False,
    )
    course_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("courses.id"), nullable=False,
    )
    section_code: Mapped[str] = mapped_column(String(255), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    course: Mapped["Course"] = relationship(
        "Course", back_populates="offerings", lazy="selectin",
    )
    semester: Mapped["Semester"] = relationship("Semester")
