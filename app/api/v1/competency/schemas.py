"""Competency assessment schemas."""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from app.core.enums import ExamStatus


class CompetencyAssessmentInfo(BaseModel):
    """Summary of a seeded assessment, embedded in enrollment responses."""

    type: str
    course_id: int
    score: float
    status: ExamStatus
    attempt: int
    course_name: Optional[str] = None


class CompetencyAssessmentCreate(BaseModel):
    """Scored attempt for a student already enrolled in the course. Attempt number is assigned by the backend."""

    student_id: Optional[str] = None
    course_id: Optional[int] = None
    competency_type_id: Optional[int] = None
    score: Optional[Decimal] = Field(None, ge=0, le=100)
    notes: Optional[str] = None


class CompetencyAssessmentRecord(BaseModel):
    student_id: str
    course_id: int
    competency_type: str
    attempt_number: int
    score: float
    passing_score: float
    status: ExamStatus
    is_passed: bool


class CompetencyAssessmentCreateResponse(BaseModel):
    message: str
    assessment: CompetencyAssessmentRecord


class CompetencyProgressItem(BaseModel):
    competency_type_id: int
    competency_type: str
    attempts: int
    latest_attempt: int
    latest_status: ExamStatus
    best_score: float
    passing_score: float
    is_passed: bool


class CourseCompetencyResponse(BaseModel):
    student_id: str
    course_id: int
    competencies: List[CompetencyProgressItem]
    completion_rate: float = Field(..., description="Percent of assessed competency types with a passing attempt")
