"""Course lookups and course enrollment rows shared by the student workflows."""

from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.models import Course, CourseEnrollee


async def get_course(db: AsyncSession, course_id: int) -> Optional[Course]:
    result = await db.execute(select(Course).where(Course.course_id == course_id))
    return result.scalar_one_or_none()


async def is_enrolled(db: AsyncSession, student_id: str, course_id: int) -> bool:
    result = await db.execute(
        select(CourseEnrollee.enrollee_id).where(
            CourseEnrollee.student_id == student_id,
            CourseEnrollee.course_id == course_id,
        )
    )
    return result.first() is not None


async def add_enrollment(
    db: AsyncSession,
    student_id: str,
    course_id: int,
    today: Optional[date] = None,
) -> CourseEnrollee:
    """Insert the (student, course) row. Does not commit; caller owns the transaction."""
    enrollee = CourseEnrollee(
        student_id=student_id,
        course_id=course_id,
        enrollment_date=today or date.today(),
    )
    db.add(enrollee)
    await db.flush()
    return enrollee
