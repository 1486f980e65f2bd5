"""Course Offerings — read-only paginated listing.

Invariants:
    - page < 1 is treated as 1; page_size < 1 as 10; page_size capped at 100
    - Ordered by start time, then section code, for stable pages

Design Decisions:
    - Lenient paging over 422s: out-of-range values are clamped, not rejected
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from siakad.infrastructure.database import get_db
from siakad.models.course import Course
from siakad.models.course_offering import CourseOffering
from siakad.models.semester import Semester
from siakad.schemas.course_offering import (
    CourseOfferingPage, CourseOfferingResponse, PaginationMetadata,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/course-offerings", tags=["course-offerings"])

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def normalize_paging(page: int, page_size: int) -> tuple[int, int]:
    if page < 1:
        page = 1
    if page_size < 1:
        page_size = DEFAULT_PAGE_SIZE
    return page, min(page_size, MAX_PAGE_SIZE)


@router.get("", response_model=CourseOfferingPage)
async def list_course_offerings(
    page: int = Query(1),
    page_size: int = Query(DEFAULT_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
):
    """List course offerings with their course, paginated."""
    page, page_size = normalize_paging(page, page_size)

    query = (
        select(CourseOffering, Course, Semester)
        .join(Course, CourseOffering.course_id == Course.id)
        .join(Semester, CourseOffering.semester_id == Semester.id)
        .order_by(CourseOffering.start_time, CourseOffering.section_code)
        .limit(page_size)
        .offset((page - 1) * page_size)
    )
    rows = (await db.execute(query)).all()
    total = await db.scalar(select(func.count()).select_from(CourseOffering))

    return CourseOfferingPage(
        course_offerings=[
            CourseOfferingResponse(
                id=offering.id,
                course_code=course.code,
                course_name=course.name,
                semester_code=semester.code,
                section_code=offering.section_code,
                capacity=offering.capacity,
                start_time=offering.start_time,
            )
            for offering, course, semester in rows
        ],
        pagination=PaginationMetadata.build(page, page_size, total or 0),
    )
