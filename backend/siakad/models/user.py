"""User ORM — accounts for admins, coordinators, and students.

Invariants:
    - id is UUID primary key
    - role is one of UserRole (1 admin, 2 coordinator, 3 student)

Design Decisions:
    - Students are users with role=3: enrollment FKs point at users.id
    - Credentials live with the auth subsystem, not here
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from siakad.core.domain_types import UserRole
from siakad.db.base import Base


class User(Base):
    """User account."""
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[int] = mapped_column(
        Integer, nullable=False, default=UserRole.STUDENT.value,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
