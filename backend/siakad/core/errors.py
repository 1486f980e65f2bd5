"""Error Hierarchy — typed, categorized exceptions for SIAKAD failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Enrollment errors carry exactly one EnrollmentErrorKind; the set of kinds is closed
    - Business-rule and data-validation errors are 4xx; system errors are 5xx and retryable
    - to_response() produces the REST envelope; system causes never reach the envelope

Design Decisions:
    - Single hierarchy with SiakadError base: FastAPI global handler catches all (ADR: uniform error shape)
    - One subclass per kind plus an enum tag: callers may use isinstance or `match err.kind`
    - Classification predicates over message inspection (ADR: no string dispatch)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    DATA_VALIDATION = "data_validation"
    SYSTEM = "system"
    INTERNAL = "internal"


class EnrollmentErrorKind(str, Enum):
    """Closed set of enrollment failure kinds."""
    # Business rule violations
    DUPLICATE_ENROLLMENT = "DUPLICATE_ENROLLMENT"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    SCHEDULE_CONFLICT = "SCHEDULE_CONFLICT"
    # Data validation errors
    COURSE_OFFERING_NOT_FOUND = "COURSE_OFFERING_NOT_FOUND"
    INVALID_COURSE_DATA = "INVALID_COURSE_DATA"
    INVALID_TIMESTAMP = "INVALID_TIMESTAMP"
    # System errors
    DATABASE_OPERATION = "DATABASE_OPERATION"
    TRANSACTION_FAILED = "TRANSACTION_FAILED"

    @property
    def category(self) -> ErrorCategory:
        return _KIND_CATEGORIES[self]


_KIND_CATEGORIES: dict[EnrollmentErrorKind, ErrorCategory] = {
    EnrollmentErrorKind.DUPLICATE_ENROLLMENT: ErrorCategory.BUSINESS_RULE,
    EnrollmentErrorKind.CAPACITY_EXCEEDED: ErrorCategory.BUSINESS_RULE,
    EnrollmentErrorKind.SCHEDULE_CONFLICT: ErrorCategory.BUSINESS_RULE,
    EnrollmentErrorKind.COURSE_OFFERING_NOT_FOUND: ErrorCategory.DATA_VALIDATION,
    EnrollmentErrorKind.INVALID_COURSE_DATA: ErrorCategory.DATA_VALIDATION,
    EnrollmentErrorKind.INVALID_TIMESTAMP: ErrorCategory.DATA_VALIDATION,
    EnrollmentErrorKind.DATABASE_OPERATION: ErrorCategory.SYSTEM,
    EnrollmentErrorKind.TRANSACTION_FAILED: ErrorCategory.SYSTEM,
}


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    student_id: str | None = None
    course_offering_id: str | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None


class SiakadError(Exception):
    """Base exception for all SIAKAD errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "student_id": self.context.student_id,
                    "course_offering_id": self.context.course_offering_id,
                },
            }
        }


# ─── Enrollment Errors ──────────────────────────────────────────

class EnrollmentError(SiakadError):
    """Base for every failure of the enrollment transaction engine."""

    def __init__(
        self,
        kind: EnrollmentErrorKind,
        message: str,
        details: dict[str, Any],
        http_status: int,
        context: ErrorContext | None = None,
    ):
        severity = (
            ErrorSeverity.CRITICAL if kind.category is ErrorCategory.SYSTEM
            else ErrorSeverity.ERROR
        )
        super().__init__(
            message, kind.value, kind.category, severity, context, http_status,
        )
        self.kind = kind
        self.details = details

    @property
    def retryable(self) -> bool:
        return self.category is ErrorCategory.SYSTEM

    def to_response(self) -> dict:
        response = super().to_response()
        if not self.retryable:
            response["error"]["details"] = dict(self.details)
        return response


class DuplicateEnrollmentError(EnrollmentError):
    """Student already holds an enrollment in the offering."""
    def __init__(
        self, student_id: str, course_offering_id: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            EnrollmentErrorKind.DUPLICATE_ENROLLMENT,
            "Student is already enrolled in this course offering",
            {"student_id": student_id, "course_offering_id": course_offering_id},
            409, context,
        )


class CapacityExceededError(EnrollmentError):
    """Offering has no seat left."""
    def __init__(
        self, current_count: int, max_capacity: int,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            EnrollmentErrorKind.CAPACITY_EXCEEDED,
            f"Course offering is at full capacity ({current_count}/{max_capacity})",
            {"current_enrollment": current_count, "max_capacity": max_capacity},
            409, context,
        )
        self.current_count = current_count
        self.max_capacity = max_capacity


class ScheduleConflictError(EnrollmentError):
    """Candidate time range overlaps an existing enrollment."""
    def __init__(
        self, new_course_time: str, existing_course_time: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            EnrollmentErrorKind.SCHEDULE_CONFLICT,
            f"Schedule conflict: new course ({new_course_time}) overlaps "
            f"with existing enrollment ({existing_course_time})",
            {
                "new_course_time": new_course_time,
                "existing_course_time": existing_course_time,
            },
            409, context,
        )
        self.new_course_time = new_course_time
        self.existing_course_time = existing_course_time


class OfferingNotFoundError(EnrollmentError):
    """Requested course offering does not exist."""
    def __init__(
        self, course_offering_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            EnrollmentErrorKind.COURSE_OFFERING_NOT_FOUND,
            "Course offering not found",
            {"course_offering_id": course_offering_id},
            404, context,
        )


class InvalidCourseDataError(EnrollmentError):
    """Offering row violates its own integrity rules (upstream corruption)."""
    def __init__(
        self, field_name: str, reason: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            EnrollmentErrorKind.INVALID_COURSE_DATA,
            f"Invalid course offering: {field_name} {reason}",
            {"invalid_field": field_name, "reason": reason},
            422, context,
        )
        self.field_name = field_name


class InvalidTimestampError(EnrollmentError):
    """Timestamp present but unusable."""
    def __init__(self, where: str, context: ErrorContext | None = None):
        super().__init__(
            EnrollmentErrorKind.INVALID_TIMESTAMP,
            f"Invalid timestamp: {where}",
            {"context": where},
            422, context,
        )


class DatabaseOperationError(EnrollmentError):
    """A gateway call failed for infrastructure reasons."""
    def __init__(
        self, operation: str, cause: BaseException | None = None,
        context: ErrorContext | None = None,
    ):
        details: dict[str, Any] = {"operation": operation}
        if cause is not None:
            details["cause_error"] = str(cause)
        super().__init__(
            EnrollmentErrorKind.DATABASE_OPERATION,
            f"Database operation failed: {operation}",
            details, 503, context,
        )
        self.operation = operation
        self.cause = cause


class TransactionFailedError(EnrollmentError):
    """Begin, commit, or deadline of the unit of work failed."""
    def __init__(
        self, operation: str, cause: BaseException | None = None,
        context: ErrorContext | None = None,
    ):
        details: dict[str, Any] = {"operation": operation}
        if cause is not None:
            details["cause_error"] = str(cause)
        super().__init__(
            EnrollmentErrorKind.TRANSACTION_FAILED,
            "Transaction failed during enrollment process",
            details, 503, context,
        )
        self.operation = operation
        self.cause = cause


# ─── Classification ─────────────────────────────────────────────

def error_kind(exc: BaseException) -> EnrollmentErrorKind | None:
    """Kind of an enrollment error, None for anything else."""
    if isinstance(exc, EnrollmentError):
        return exc.kind
    return None


def is_business_rule_violation(exc: BaseException) -> bool:
    kind = error_kind(exc)
    return kind is not None and kind.category is ErrorCategory.BUSINESS_RULE


def is_data_validation_error(exc: BaseException) -> bool:
    kind = error_kind(exc)
    return kind is not None and kind.category is ErrorCategory.DATA_VALIDATION


def is_system_error(exc: BaseException) -> bool:
    kind = error_kind(exc)
    return kind is not None and kind.category is ErrorCategory.SYSTEM
