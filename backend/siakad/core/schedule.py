"""Schedule Arithmetic — derived class intervals and overlap detection.

Invariants:
    - All functions are PURE: no IO, no async, no DB
    - A course occupies the half-open interval [start, start + credit * 50 min)
    - Adjacent intervals (end1 == start2) do NOT overlap

Design Decisions:
    - TimeRange as frozen dataclass: hashable, comparable, formats itself for error details
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from siakad.core.domain_types import MINUTES_PER_CREDIT


@dataclass(frozen=True)
class TimeRange:
    """Half-open time interval [start, end)."""
    start: datetime
    end: datetime

    def overlaps(self, other: "TimeRange") -> bool:
        return has_time_overlap(self.start, self.end, other.start, other.end)

    def label(self) -> str:
        """Human-readable "HH:MM-HH:MM" form used in conflict details."""
        return f"{self.start:%H:%M}-{self.end:%H:%M}"


def calculate_course_end_time(start_time: datetime, credits: int) -> datetime:
    """End of a course: start + credits * 50 minutes. No duration for credits <= 0."""
    if credits <= 0:
        return start_time
    return start_time + timedelta(minutes=credits * MINUTES_PER_CREDIT)


def course_time_range(start_time: datetime, credits: int) -> TimeRange:
    return TimeRange(start_time, calculate_course_end_time(start_time, credits))


def has_time_overlap(
    start1: datetime, end1: datetime, start2: datetime, end2: datetime,
) -> bool:
    """[start1, end1) and [start2, end2) overlap iff start1 < end2 and start2 < end1."""
    return start1 < end2 and start2 < end1
