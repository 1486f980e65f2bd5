"""In-memory EnrollmentGateway and TransactionRunner for pipeline tests.

Provides:
    - InMemoryEnrollmentGateway: offerings + registrations in dicts/lists, records
      every call with the handle it received, injectable failures per method
    - InlineTransactionRunner: stages writes on a FakeTransaction, applies them
      on commit, discards them on rollback

Writes are visible to later reads in the same transaction and to everyone after
commit, mirroring READ COMMITTED for a single writer.
"""

from datetime import datetime, timezone
from uuid import uuid4

from siakad.core.domain_types import (
    CourseOfferingId, EnrolledSlot, EnrollmentId, EnrollmentRecord,
    OfferingDetails, StudentId,
)
from siakad.core.errors import TransactionFailedError
from siakad.core.repository_protocols import UniqueConstraintViolation


class FakeTransaction:
    def __init__(self):
        self.pending: list[tuple[str, str]] = []
        self.committed = False
        self.rolled_back = False


class InMemoryEnrollmentGateway:
    def __init__(self):
        self.offerings: dict[str, OfferingDetails] = {}
        self.enrollments: list[tuple[str, str]] = []
        self.failures: dict[str, Exception] = {}
        self.lose_duplicate_race = False
        self.calls: list[str] = []
        self.handles: list[object] = []

    # -- seeding --------------------------------------------------------

    def add_offering(
        self, offering_id: str, *, capacity=10, credit=3, start_time=None,
    ) -> OfferingDetails:
        offering = OfferingDetails(
            course_offering_id=offering_id,
            capacity=capacity,
            credit=credit,
            start_time=start_time,
        )
        self.offerings[offering_id] = offering
        return offering

    def seed_enrollment(self, student_id: str, offering_id: str) -> None:
        self.enrollments.append((student_id, offering_id))

    # -- helpers --------------------------------------------------------

    def _enter(self, name: str, tx) -> None:
        self.calls.append(name)
        self.handles.append(tx)
        if name in self.failures:
            raise self.failures[name]

    def _visible(self, tx) -> list[tuple[str, str]]:
        pending = tx.pending if isinstance(tx, FakeTransaction) else []
        return self.enrollments + pending

    # -- EnrollmentGateway ---------------------------------------------

    async def enrollment_exists(self, tx, student_id, course_offering_id):
        self._enter("enrollment_exists", tx)
        return (student_id, course_offering_id) in self._visible(tx)

    async def get_offering_with_course(self, tx, course_offering_id):
        self._enter("get_offering_with_course", tx)
        return self.offerings.get(course_offering_id)

    async def count_active_enrollments(self, tx, course_offering_id):
        self._enter("count_active_enrollments", tx)
        return sum(1 for _, o in self._visible(tx) if o == course_offering_id)

    async def list_student_enrollments_with_details(
        self, tx, student_id, *, exclude_offering_id=None,
    ):
        self._enter("list_student_enrollments_with_details", tx)
        slots = []
        for s, o in self._visible(tx):
            if s != student_id or o == exclude_offering_id:
                continue
            offering = self.offerings[o]
            slots.append(EnrolledSlot(
                course_offering_id=o,
                start_time=offering.start_time,
                credit=offering.credit,
            ))
        return slots

    async def create_enrollment(self, tx, student_id, course_offering_id):
        self._enter("create_enrollment", tx)
        if self.lose_duplicate_race:
            raise UniqueConstraintViolation("uq_course_registrations_student_offering")
        link = (student_id, course_offering_id)
        if isinstance(tx, FakeTransaction):
            tx.pending.append(link)
        else:
            self.enrollments.append(link)
        return EnrollmentRecord(
            id=EnrollmentId(str(uuid4())),
            student_id=StudentId(student_id),
            course_offering_id=CourseOfferingId(course_offering_id),
            created_at=datetime.now(timezone.utc),
        )


class InlineTransactionRunner:
    def __init__(self, gateway: InMemoryEnrollmentGateway):
        self._gateway = gateway
        self.commit_error: Exception | None = None
        self.transactions: list[FakeTransaction] = []
        self.timeouts: list[float | None] = []

    async def run_in_transaction(self, fn, *, timeout=None):
        tx = FakeTransaction()
        self.transactions.append(tx)
        self.timeouts.append(timeout)
        try:
            result = await fn(tx)
        except BaseException:
            tx.rolled_back = True
            raise
        if self.commit_error is not None:
            tx.rolled_back = True
            raise TransactionFailedError("commit", self.commit_error)
        self._gateway.enrollments.extend(tx.pending)
        tx.committed = True
        return result
