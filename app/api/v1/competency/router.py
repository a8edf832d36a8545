from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import CompetencyAssessmentCreate, CompetencyAssessmentCreateResponse, CourseCompetencyResponse
from . import service

router = APIRouter(prefix="/api/v1/students", tags=["competency"])


@router.post(
    "/competency-assessments",
    response_model=CompetencyAssessmentCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_competency_assessment(
    payload: CompetencyAssessmentCreate,
    db: AsyncSession = Depends(get_db),
) -> CompetencyAssessmentCreateResponse:
    """Record a scored competency attempt for an enrolled student."""
    try:
        return await service.add_assessment(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{student_id}/courses/{course_id}/competency",
    response_model=CourseCompetencyResponse,
)
async def get_student_course_competency(
    student_id: str,
    course_id: int,
    db: AsyncSession = Depends(get_db),
) -> CourseCompetencyResponse:
    try:
        return await service.get_course_competency(db, student_id, course_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
