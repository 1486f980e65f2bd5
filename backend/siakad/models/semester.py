"""Semester ORM — the term a course offering is scheduled in.

Invariants:
    - Always belongs to an AcademicYear (academic_year_id FK)
    - (academic_year_id, code) is unique
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from siakad.db.base import Base


class Semester(Base):
    """Term within an academic year."""
    __tablename__ = "semesters"
    __table_args__ = (
        UniqueConstraint(
            "academic_year_id", "code",
            name="uq_semesters_academic_year_code",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    academic_year_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("academic_years.id"), nullable=False,
    )
    code: Mapped[str] = mapped_column(String(255), nullable=False)
    start_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    end_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    academic_year: Mapped["AcademicYear"] = relationship(
        "AcademicYear", back_populates="semesters",
    )
