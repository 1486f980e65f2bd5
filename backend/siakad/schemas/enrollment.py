"""Enrollment Schemas — request/response bodies for the enrollment endpoint."""

from uuid import UUID

from pydantic import BaseModel


class EnrollmentCreate(BaseModel):
    """Enrollment request — the student being enrolled."""
    student_id: UUID


class EnrollmentResponse(BaseModel):
    message: str
    enrollment_id: UUID
    student_id: UUID
    course_offering_id: UUID
