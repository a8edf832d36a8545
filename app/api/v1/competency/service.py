"""
Competency assessments: the failing placeholder seeded at enrollment, scored attempts
recorded later, and per-course progress.
Attempt numbers run 1, 2, 3, ... per (student, course, competency type).
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import CompetencyDefaults, settings
from app.core.enums import ExamStatus
from app.core.exceptions import NotFoundError, ValidationError
from app.core.models import CompetencyAssessment, CompetencyType
from app.db.transaction import transaction

from app.api.v1.courses import service as course_service

from .schemas import (
    CompetencyAssessmentCreate,
    CompetencyAssessmentCreateResponse,
    CompetencyAssessmentInfo,
    CompetencyAssessmentRecord,
    CompetencyProgressItem,
    CourseCompetencyResponse,
)

logger = logging.getLogger(__name__)

INITIAL_SCORE = Decimal("0.00")


def _to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    return value if isinstance(value, Decimal) else Decimal(str(value))


async def get_competency_type_by_name(db: AsyncSession, type_name: str) -> Optional[CompetencyType]:
    result = await db.execute(select(CompetencyType).where(CompetencyType.type_name == type_name))
    return result.scalars().first()


async def _resolve_competency_type(
    db: AsyncSession,
    type_name: str,
    defaults: CompetencyDefaults,
) -> Tuple[int, str, Decimal]:
    """(type_id, type_name, passing_score); configured defaults when the type row is missing."""
    ct = await get_competency_type_by_name(db, type_name)
    if ct:
        return ct.type_id, ct.type_name, _to_decimal(ct.passing_score)
    logger.warning(
        "Competency type %r not found; using fallback type_id=%s passing_score=%s",
        type_name,
        defaults.type_id,
        defaults.passing_score,
    )
    return defaults.type_id, defaults.type_name, defaults.passing_score


async def next_attempt_number(
    db: AsyncSession,
    student_id: str,
    course_id: int,
    competency_type_id: int,
) -> int:
    result = await db.execute(
        select(func.coalesce(func.max(CompetencyAssessment.attempt_number), 0)).where(
            CompetencyAssessment.student_id == student_id,
            CompetencyAssessment.course_id == course_id,
            CompetencyAssessment.competency_type_id == competency_type_id,
        )
    )
    return int(result.scalar() or 0) + 1


async def seed_assessment(
    db: AsyncSession,
    student_id: str,
    course_id: int,
    competency_type_name: Optional[str] = None,
    defaults: Optional[CompetencyDefaults] = None,
    notes: Optional[str] = None,
    today: Optional[date] = None,
) -> CompetencyAssessmentInfo:
    """
    Insert a failing placeholder attempt (score 0.00) for the student/course.
    Each call adds a new attempt; re-enrollment and course changes continue the sequence.
    Does not commit; caller owns the transaction.
    """
    type_name = competency_type_name or settings.default_competency_type
    defaults = defaults or settings.competency_defaults
    type_id, resolved_name, passing_score = await _resolve_competency_type(db, type_name, defaults)
    attempt = await next_attempt_number(db, student_id, course_id, type_id)

    if notes is None:
        if attempt == 1:
            notes = f"Initial {resolved_name} competency assessment for course {course_id}"
        else:
            notes = f"{resolved_name} competency assessment for course {course_id} (attempt {attempt})"

    db.add(
        CompetencyAssessment(
            student_id=student_id,
            course_id=course_id,
            competency_type_id=type_id,
            attempt_number=attempt,
            score=INITIAL_SCORE,
            passing_score=passing_score,
            exam_status=ExamStatus.failed.value,
            assessment_date=today or date.today(),
            notes=notes,
        )
    )
    await db.flush()
    return CompetencyAssessmentInfo(
        type=resolved_name,
        course_id=course_id,
        score=float(INITIAL_SCORE),
        status=ExamStatus.failed,
        attempt=attempt,
    )


async def add_assessment(
    db: AsyncSession,
    payload: CompetencyAssessmentCreate,
    today: Optional[date] = None,
) -> CompetencyAssessmentCreateResponse:
    """Record a scored attempt. Status is completed when score reaches the type's passing score."""
    student_id = (payload.student_id or "").strip()
    if not student_id or payload.course_id is None or payload.competency_type_id is None:
        raise ValidationError("student_id, course_id, and competency_type_id are required")

    async with transaction(db):
        if not await course_service.is_enrolled(db, student_id, payload.course_id):
            raise ValidationError("Student is not enrolled in this course")
        ct = await db.get(CompetencyType, payload.competency_type_id)
        if not ct:
            raise NotFoundError("Invalid competency type")

        score = payload.score if payload.score is not None else INITIAL_SCORE
        passing_score = _to_decimal(ct.passing_score)
        is_passed = score >= passing_score
        exam_status = ExamStatus.completed if is_passed else ExamStatus.failed
        attempt = await next_attempt_number(db, student_id, payload.course_id, ct.type_id)
        db.add(
            CompetencyAssessment(
                student_id=student_id,
                course_id=payload.course_id,
                competency_type_id=ct.type_id,
                attempt_number=attempt,
                score=score,
                passing_score=passing_score,
                exam_status=exam_status.value,
                assessment_date=today or date.today(),
                notes=(payload.notes or "").strip()
                or f"{ct.type_name} competency assessment attempt {attempt}",
            )
        )
        await db.flush()
        record = CompetencyAssessmentRecord(
            student_id=student_id,
            course_id=payload.course_id,
            competency_type=ct.type_name,
            attempt_number=attempt,
            score=float(score),
            passing_score=float(passing_score),
            status=exam_status,
            is_passed=is_passed,
        )

    logger.info(
        "Recorded %s attempt %s for student %s course %s: %s",
        record.competency_type,
        attempt,
        student_id,
        payload.course_id,
        exam_status.value,
    )
    return CompetencyAssessmentCreateResponse(
        message="Competency assessment added successfully",
        assessment=record,
    )


async def get_course_competency(
    db: AsyncSession,
    student_id: str,
    course_id: int,
) -> CourseCompetencyResponse:
    result = await db.execute(
        select(CompetencyAssessment, CompetencyType.type_name)
        .outerjoin(CompetencyType, CompetencyType.type_id == CompetencyAssessment.competency_type_id)
        .where(
            CompetencyAssessment.student_id == student_id,
            CompetencyAssessment.course_id == course_id,
        )
        .order_by(CompetencyAssessment.competency_type_id, CompetencyAssessment.attempt_number)
    )
    rows = result.all()
    if not rows:
        raise NotFoundError("No competency data found for this student and course")

    grouped: Dict[int, List[Tuple[CompetencyAssessment, Optional[str]]]] = {}
    for assessment, type_name in rows:
        grouped.setdefault(assessment.competency_type_id, []).append((assessment, type_name))

    items: List[CompetencyProgressItem] = []
    for type_id, attempts in grouped.items():
        latest, type_name = attempts[-1]
        items.append(
            CompetencyProgressItem(
                competency_type_id=type_id,
                competency_type=type_name or f"Competency {type_id}",
                attempts=len(attempts),
                latest_attempt=latest.attempt_number,
                latest_status=ExamStatus(latest.exam_status),
                best_score=float(max(_to_decimal(a.score) for a, _ in attempts)),
                passing_score=float(_to_decimal(latest.passing_score)),
                is_passed=any(a.exam_status == ExamStatus.completed.value for a, _ in attempts),
            )
        )
    passed = sum(1 for item in items if item.is_passed)
    return CourseCompetencyResponse(
        student_id=student_id,
        course_id=course_id,
        competencies=items,
        completion_rate=round(passed * 100.0 / len(items), 2),
    )
