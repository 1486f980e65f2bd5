"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell; dependency arrows point inward only
    - Every gateway method takes the transaction handle as first argument;
      None means "run standalone in a short transaction of its own"
    - Inside one handle, all reads see the state the eventual write commits against

Design Decisions:
    - Protocol over ABC: structural subtyping, fakes in tests need no inheritance
    - One gateway interface instead of plain + *_tx twins (ADR: no interface duplication)
    - TransactionHandle is opaque to core: only the shell knows it is an AsyncSession
"""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeVar

from siakad.core.domain_types import (
    EnrolledSlot, EnrollmentRecord, OfferingDetails,
)

TransactionHandle = Any

T = TypeVar("T")


class UniqueConstraintViolation(Exception):
    """Raised by a gateway when a write is rejected by a UNIQUE constraint."""

    def __init__(self, constraint: str, cause: BaseException | None = None):
        super().__init__(f"unique constraint violated: {constraint}")
        self.constraint = constraint
        self.cause = cause


class EnrollmentGateway(Protocol):
    """Contract for enrollment persistence — implemented by shell."""
    async def enrollment_exists(
        self, tx: TransactionHandle | None,
        student_id: str, course_offering_id: str,
    ) -> bool: ...

    async def get_offering_with_course(
        self, tx: TransactionHandle | None, course_offering_id: str,
    ) -> OfferingDetails | None: ...

    async def count_active_enrollments(
        self, tx: TransactionHandle | None, course_offering_id: str,
    ) -> int: ...

    async def list_student_enrollments_with_details(
        self, tx: TransactionHandle | None, student_id: str,
        *, exclude_offering_id: str | None = None,
    ) -> list[EnrolledSlot]: ...

    async def create_enrollment(
        self, tx: TransactionHandle | None,
        student_id: str, course_offering_id: str,
    ) -> EnrollmentRecord: ...


class TransactionRunner(Protocol):
    """Contract for the unit-of-work boundary — implemented by shell."""
    async def run_in_transaction(
        self,
        fn: Callable[[TransactionHandle], Awaitable[T]],
        *,
        timeout: float | None = None,
    ) -> T: ...
