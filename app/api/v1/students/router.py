from datetime import date
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import (
    DuplicateCheckResponse,
    StudentCourseEnrollmentResponse,
    StudentCreate,
    StudentCreateResponse,
    StudentDeleteResponse,
    StudentEnrollRequest,
    StudentResponse,
    StudentUpdate,
    StudentUpdateResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/students", tags=["students"])


@router.post(
    "",
    response_model=StudentCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_student(
    payload: StudentCreate,
    db: AsyncSession = Depends(get_db),
) -> StudentCreateResponse:
    """Create a student with its account. With course_id the student is also enrolled (batch + Basic assessment)."""
    try:
        return await service.create_student(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[StudentResponse])
async def list_students(
    q: Optional[str] = Query(None, description="Search first name, last name, student id or full name"),
    batch_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> List[StudentResponse]:
    return await service.list_students(db, q=q, batch_id=batch_id)


@router.get("/check-duplicates", response_model=DuplicateCheckResponse)
async def check_potential_duplicates(
    first_name: Optional[str] = Query(None),
    last_name: Optional[str] = Query(None),
    birth_date: Optional[date] = Query(None),
    email: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> DuplicateCheckResponse:
    """Look for existing students before creating a new one."""
    try:
        return await service.check_potential_duplicates(db, first_name, last_name, birth_date, email)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{student_id}", response_model=StudentResponse)
async def get_student(
    student_id: str,
    db: AsyncSession = Depends(get_db),
) -> StudentResponse:
    try:
        return await service.get_student(db, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put(
    "/{student_id}",
    response_model=Union[StudentCourseEnrollmentResponse, StudentUpdateResponse],
    response_model_exclude_none=True,
)
async def update_student(
    student_id: str,
    payload: StudentUpdate,
    db: AsyncSession = Depends(get_db),
) -> Union[StudentCourseEnrollmentResponse, StudentUpdateResponse]:
    """Update student fields (mode=update) or enroll in one more course (mode=addCourse)."""
    try:
        return await service.update_student(db, student_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{student_id}", response_model=StudentDeleteResponse)
async def delete_student(
    student_id: str,
    db: AsyncSession = Depends(get_db),
) -> StudentDeleteResponse:
    """Delete the student with their competency assessments and course enrollments."""
    try:
        return await service.delete_student(db, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{student_id}/enroll", response_model=StudentCourseEnrollmentResponse)
async def enroll_student_in_course(
    student_id: str,
    payload: StudentEnrollRequest,
    db: AsyncSession = Depends(get_db),
) -> StudentCourseEnrollmentResponse:
    """Enroll an existing student in an additional course."""
    try:
        return await service.enroll_student_in_course(db, student_id, payload.course_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
