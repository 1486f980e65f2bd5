"""Academic schema — users, academic_years, semesters, courses, course_offerings, course_registrations.

Revision ID: 001_academic_schema
Revises: None
Create Date: 2025-09-04

course_registrations carries the UNIQUE (student_id, course_offering_id)
constraint the enrollment service relies on to reject concurrent duplicates.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_academic_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("role", sa.Integer, nullable=False, server_default="3"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "academic_years",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("code", sa.String(255), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "semesters",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("academic_year_id", UUID(as_uuid=True), sa.ForeignKey("academic_years.id"), nullable=False),
        sa.Column("code", sa.String(255), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("academic_year_id", "code", name="uq_semesters_academic_year_code"),
    )

    op.create_table(
        "courses",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("code", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("credit", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "course_offerings",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("semester_id", UUID(as_uuid=True), sa.ForeignKey("semesters.id"), nullable=False),
        sa.Column("course_id", UUID(as_uuid=True), sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("section_code", sa.String(255), nullable=False),
        sa.Column("capacity", sa.Integer, nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "semester_id", "course_id", "section_code",
            name="uq_course_offerings_semester_course_section",
        ),
    )

    op.create_table(
        "course_registrations",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("student_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("course_offering_id", UUID(as_uuid=True), sa.ForeignKey("course_offerings.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "student_id", "course_offering_id",
            name="uq_course_registrations_student_offering",
        ),
    )
    op.create_index(
        "ix_course_registrations_course_offering_id",
        "course_registrations", ["course_offering_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_course_registrations_course_offering_id", "course_registrations")
    op.drop_table("course_registrations")
    op.drop_table("course_offerings")
    op.drop_table("semesters")
    op.drop_table("courses")
    op.drop_table("academic_years")
    op.drop_table("users")
