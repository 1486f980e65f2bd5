"""ORM Models — SQLAlchemy declarative models for the academic schema.

Invariants:
    - All models inherit from Base (db/base.py)
    - CourseRegistration is the enrollment link; (student_id, course_offering_id) is unique

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from siakad.models.user import User  # noqa: F401
from siakad.models.academic_year import AcademicYear  # noqa: F401
from siakad.models.semester import Semester  # noqa: F401
from siakad.models.course import Course  # noqa: F401
from siakad.models.course_offering import CourseOffering  # noqa: F401
from siakad.models.course_registration import CourseRegistration  # noqa: F401
