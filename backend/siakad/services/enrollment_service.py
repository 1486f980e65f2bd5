"""Enrollment Service — the transactional validator that admits a student into a course offering.

Invariants:
    - The whole pipeline runs inside ONE run_in_transaction call
    - The offering row is fetched (and locked) before any other read
    - Fixed check order, first failure wins: duplicate → offering not found →
      integrity guard → capacity → schedule overlap → insert
    - Business-rule and data-validation errors are raised verbatim, never recovered
    - Gateway failures become DatabaseOperationError naming the step, cause chained
    - A unique-constraint rejection on insert is a lost duplicate race → DuplicateEnrollmentError
    - No retries, no in-memory state between calls

Design Decisions:
    - Rules live in core/enforce_enrollment.py as pure functions; this module only
      sequences IO around them (ADR: impureim sandwich)
    - The overlap scan excludes the target offering: a concurrent duplicate must reach
      the insert and fail on the UNIQUE constraint, not masquerade as a schedule conflict
    - EnrollmentConfig injected at construction; nothing read from global settings here
"""

import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import TypeVar

from siakad.core.domain_types import EnrollmentRecord
from siakad.core.enforce_enrollment import (
    candidate_time_range,
    check_capacity,
    check_not_enrolled,
    check_offering_integrity,
    find_schedule_conflict,
)
from siakad.core.errors import (
    DatabaseOperationError,
    DuplicateEnrollmentError,
    EnrollmentError,
    ErrorContext,
    OfferingNotFoundError,
    is_system_error,
)
from siakad.core.repository_protocols import (
    EnrollmentGateway,
    TransactionHandle,
    TransactionRunner,
    UniqueConstraintViolation,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class EnrollmentConfig:
    """Explicit engine configuration, passed at construction."""
    timeout_seconds: float | None = 10.0


class EnrollmentService:
    """Validates and commits enrollments atomically."""

    def __init__(
        self,
        gateway: EnrollmentGateway,
        transactions: TransactionRunner,
        config: EnrollmentConfig | None = None,
    ):
        self._gateway = gateway
        self._transactions = transactions
        self._config = config or EnrollmentConfig()

    async def enroll_student(
        self, student_id: str, course_offering_id: str,
    ) -> EnrollmentRecord:
        """Enroll a student after validating duplicate, capacity, and schedule rules.

        Raises:
            EnrollmentError: one of the eight enrollment kinds; see core/errors.py.
        """
        log_extra = {
            "student_id": student_id, "course_offering_id": course_offering_id,
        }

        async def _enroll(tx: TransactionHandle) -> EnrollmentRecord:
            return await self._enroll_in_transaction(
                tx, student_id, course_offering_id,
            )

        try:
            record = await self._transactions.run_in_transaction(
                _enroll, timeout=self._config.timeout_seconds,
            )
        except EnrollmentError as e:
            e.context.student_id = student_id
            e.context.course_offering_id = course_offering_id
            self._log_rejection(e, log_extra)
            raise

        logger.info(
            "Student enrolled",
            extra={**log_extra, "enrollment_id": record.id},
        )
        return record

    async def _enroll_in_transaction(
        self, tx: TransactionHandle, student_id: str, course_offering_id: str,
    ) -> EnrollmentRecord:
        # Lock first: every read below must see competing enrollments as committed
        offering = await self._gateway_call(
            "get course offering details",
            self._gateway.get_offering_with_course(tx, course_offering_id),
        )

        # Rule 1: no duplicate enrollment
        already_enrolled = await self._gateway_call(
            "check enrollment existence",
            self._gateway.enrollment_exists(tx, student_id, course_offering_id),
        )
        _raise_if(check_not_enrolled(
            already_enrolled, student_id, course_offering_id,
        ))

        if offering is None:
            raise OfferingNotFoundError(course_offering_id)
        _raise_if(check_offering_integrity(offering))

        # Rule 2: capacity
        current_count = await self._gateway_call(
            "count current enrollments",
            self._gateway.count_active_enrollments(tx, course_offering_id),
        )
        _raise_if(check_capacity(current_count, offering.capacity))

        # Rule 3: schedule overlap
        existing = await self._gateway_call(
            "get student's existing enrollments",
            self._gateway.list_student_enrollments_with_details(
                tx, student_id, exclude_offering_id=course_offering_id,
            ),
        )
        candidate = candidate_time_range(offering)
        _raise_if(find_schedule_conflict(candidate, existing))

        try:
            return await self._gateway_call(
                "create enrollment",
                self._gateway.create_enrollment(tx, student_id, course_offering_id),
            )
        except UniqueConstraintViolation as e:
            logger.warning(
                "Lost concurrent duplicate enrollment race",
                extra={
                    "student_id": student_id,
                    "course_offering_id": course_offering_id,
                },
            )
            raise DuplicateEnrollmentError(
                student_id, course_offering_id,
            ) from e

    @staticmethod
    async def _gateway_call(operation: str, call: Awaitable[T]) -> T:
        """Await a gateway call, classifying infrastructure failures."""
        try:
            return await call
        except (EnrollmentError, UniqueConstraintViolation):
            raise
        except Exception as e:
            raise DatabaseOperationError(
                operation, e, ErrorContext(operation=operation),
            ) from e

    @staticmethod
    def _log_rejection(error: EnrollmentError, extra: dict) -> None:
        extra = {**extra, "error_code": error.code}
        if is_system_error(error):
            logger.error(
                f"Enrollment failed: {error.message}",
                extra=extra, exc_info=error.__cause__ is not None,
            )
        else:
            logger.warning(f"Enrollment rejected: {error.message}", extra=extra)


def _raise_if(error: EnrollmentError | None) -> None:
    if error is not None:
        raise error
