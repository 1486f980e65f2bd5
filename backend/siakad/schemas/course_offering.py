"""Course Offering Schemas — listing rows and pagination metadata.

Invariants:
    - total_pages = ceil(total_records / page_size), 0 when there are no records
"""

import math
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class CourseOfferingResponse(BaseModel):
    id: UUID
    course_code: str
    course_name: str
    semester_code: str
    section_code: str
    capacity: int
    start_time: datetime | None


class PaginationMetadata(BaseModel):
    page: int = Field(ge=1)
    page_size: int = Field(ge=1)
    total_records: int = Field(ge=0)
    total_pages: int = Field(ge=0)

    @classmethod
    def build(cls, page: int, page_size: int, total_records: int) -> "PaginationMetadata":
        return cls(
            page=page,
            page_size=page_size,
            total_records=total_records,
            total_pages=math.ceil(total_records / page_size),
        )


class CourseOfferingPage(BaseModel):
    course_offerings: list[CourseOfferingResponse]
    pagination: PaginationMetadata
