"""Course Enrollment — HTTP entry point of the enrollment transaction engine.

Invariants:
    - Path and body ids are UUID-validated by FastAPI before the service runs
    - EnrollmentError propagates to the global SiakadError handler (status from its kind)
    - One EnrollmentService per request; no state shared between requests

Design Decisions:
    - get_enrollment_service is a dependency so tests swap in fakes via dependency_overrides
    - Student identity taken from the body: authentication is owned upstream
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status

from siakad.config import get_settings
from siakad.infrastructure.database import get_db_manager
from siakad.infrastructure.enrollment_repository import SqlAlchemyEnrollmentGateway
from siakad.infrastructure.transaction import SqlAlchemyTransactionRunner
from siakad.schemas.enrollment import EnrollmentCreate, EnrollmentResponse
from siakad.services.enrollment_service import EnrollmentConfig, EnrollmentService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/course-offerings", tags=["enrollments"])


def get_enrollment_service() -> EnrollmentService:
    """Wire the service against the process database manager."""
    session_factory = get_db_manager().session_factory
    return EnrollmentService(
        SqlAlchemyEnrollmentGateway(session_factory),
        SqlAlchemyTransactionRunner(session_factory),
        EnrollmentConfig(timeout_seconds=get_settings().enrollment_timeout_seconds),
    )


@router.post(
    "/{course_offering_id}/enrollments",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def enroll_in_course_offering(
    course_offering_id: UUID,
    body: EnrollmentCreate,
    service: EnrollmentService = Depends(get_enrollment_service),
):
    """Enroll a student in a course offering."""
    record = await service.enroll_student(
        str(body.student_id), str(course_offering_id),
    )
    return EnrollmentResponse(
        message="Successfully enrolled in course offering",
        enrollment_id=UUID(record.id),
        student_id=UUID(record.student_id),
        course_offering_id=UUID(record.course_offering_id),
    )
