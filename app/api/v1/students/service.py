"""
Student workflows. Each write runs in a single transaction scope:
create (account + student + optional enrollment), update / course change, enroll, delete.
"""

import logging
import time
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple, Union

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.dates import calculate_age
from app.core.enums import UpdateMode
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.models import Account, Batch, CompetencyAssessment, Course, CourseEnrollee, Student
from app.core.models.student import STUDENT_ID_MAX_LENGTH
from app.db.transaction import transaction

from app.api.v1.batches import service as batch_service
from app.api.v1.competency import service as competency_service
from app.api.v1.competency.schemas import CompetencyAssessmentInfo
from app.api.v1.courses import service as course_service

from . import identity
from .schemas import (
    DuplicateCandidate,
    DuplicateCheckResponse,
    EnrolledCourse,
    EnrollmentInfo,
    StudentCourseEnrollmentResponse,
    StudentCreate,
    StudentCreateResponse,
    StudentDeleteResponse,
    StudentResponse,
    StudentUpdate,
    StudentUpdateResponse,
)

logger = logging.getLogger(__name__)

NO_COURSES = "No courses"


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def _resolve_student_id(requested: Optional[str]) -> str:
    student_id = (requested or "").strip()
    if student_id:
        return student_id[:STUDENT_ID_MAX_LENGTH]
    return f"STU{int(time.time() * 1000)}"[:STUDENT_ID_MAX_LENGTH]


async def _student_exists(db: AsyncSession, student_id: str) -> bool:
    result = await db.execute(select(Student.student_id).where(Student.student_id == student_id).limit(1))
    return result.first() is not None


async def _current_course_id(db: AsyncSession, student_id: str) -> Optional[int]:
    """Course of the student's batch; None when the student has no batch."""
    result = await db.execute(
        select(Batch.course_id)
        .select_from(Student)
        .outerjoin(Batch, Student.batch_id == Batch.batch_id)
        .where(Student.student_id == student_id)
    )
    return result.scalar_one_or_none()


def _enrolled_courses(student: Student, with_dates: bool = False) -> List[EnrolledCourse]:
    courses = [
        EnrolledCourse(
            course_id=e.course_id,
            course_name=e.course.course_name,
            enrollment_date=e.enrollment_date if with_dates else None,
        )
        for e in student.enrollments
        if e.course is not None
    ]
    if with_dates:
        courses.sort(key=lambda c: c.enrollment_date or date.min, reverse=True)
    else:
        courses.sort(key=lambda c: c.course_name)
    return courses


def _student_to_response(student: Student, with_dates: bool = False) -> StudentResponse:
    courses = _enrolled_courses(student, with_dates=with_dates)
    return StudentResponse(
        student_id=student.student_id,
        account_id=student.account_id,
        first_name=student.first_name,
        middle_name=student.middle_name,
        last_name=student.last_name,
        age=student.age,
        gender=student.gender,
        batch_id=student.batch_id,
        birth_date=student.birth_date,
        birth_place=student.birth_place,
        phone_number=student.phone_number,
        address=student.address,
        background=student.background,
        goals=student.goals,
        trading_level_id=student.trading_level_id,
        learning_style_id=student.learning_style_id,
        device_availability=student.device_availability,
        rating=float(student.rating) if student.rating is not None else None,
        is_graduated=bool(student.is_graduated),
        eligibility_status=student.eligibility_status,
        graduation_date=student.graduation_date,
        created_at=student.created_at,
        updated_at=student.updated_at,
        enrolled_courses=courses,
        course_names=", ".join(c.course_name for c in courses) or NO_COURSES,
    )


# ----- Create -----

async def create_student(
    db: AsyncSession,
    payload: StudentCreate,
    today: Optional[date] = None,
) -> StudentCreateResponse:
    """
    Create account + student and, when course_id is given, enroll them:
    batch lookup-or-create, course_enrollees row, Basic competency assessment.
    All rows are committed together or not at all.
    """
    first_name = (payload.first_name or "").strip()
    last_name = (payload.last_name or "").strip()
    if not first_name or not last_name:
        raise ValidationError("First name and last name are required")
    middle_name = (payload.middle_name or "").strip()

    age = calculate_age(payload.birth_date, today)
    if age is None:
        age = payload.age
    student_id = _resolve_student_id(payload.student_id)

    enrollment: Optional[EnrollmentInfo] = None
    competency: Optional[CompetencyAssessmentInfo] = None

    async with transaction(db):
        if await _student_exists(db, student_id):
            raise ConflictError(f"Student ID {student_id} already exists")

        username = await identity.generate_username(db, first_name, middle_name, last_name)
        email = await identity.generate_email(db, username, payload.email)
        account = Account(
            username=username,
            email=email,
            role_id=settings.student_role_id,
            is_active=True,
        )
        db.add(account)
        await db.flush()
        account_id = account.account_id

        student = Student(
            student_id=student_id,
            account_id=account_id,
            first_name=first_name,
            middle_name=middle_name or None,
            last_name=last_name,
            age=age,
            gender=_clean(payload.gender),
            birth_date=payload.birth_date,
            birth_place=_clean(payload.birth_place),
            phone_number=_clean(payload.phone_number),
            address=_clean(payload.address),
            background=_clean(payload.background),
            goals=_clean(payload.goals),
            batch_id=None,
            trading_level_id=payload.trading_level_id,
            learning_style_id=payload.learning_style_id,
            device_availability=_clean(payload.device_availability),
            rating=payload.rating if payload.rating is not None else Decimal("0.00"),
        )
        db.add(student)
        await db.flush()

        if payload.course_id is not None:
            course = await course_service.get_course(db, payload.course_id)
            if not course:
                raise NotFoundError(f"Course with ID {payload.course_id} does not exist")
            batch_id = await batch_service.resolve_batch(db, course.course_id, today)
            student.batch_id = batch_id
            await course_service.add_enrollment(db, student_id, course.course_id, today)
            competency = await competency_service.seed_assessment(
                db, student_id, course.course_id, today=today
            )
            enrollment = EnrollmentInfo(
                course_id=course.course_id,
                batch_id=batch_id,
                course_name=course.course_name,
            )

    logger.info(
        "Created student %s (account %s, username %s)%s",
        student_id,
        account_id,
        username,
        f" enrolled in course {enrollment.course_id} batch {enrollment.batch_id}" if enrollment else "",
    )
    return StudentCreateResponse(
        message="Student created and enrolled successfully" if enrollment else "Student created successfully",
        student_id=student_id,
        username=username,
        email=email,
        account_id=account_id,
        age=age,
        enrollment=enrollment,
        competency_assessment=competency,
    )


# ----- Enroll -----

async def _enroll_existing(
    db: AsyncSession,
    student_id: str,
    course_id: Optional[int],
    today: Optional[date],
) -> Tuple[Student, Course, CompetencyAssessmentInfo]:
    """Checks + enrollment row + seeded assessment. Must run inside a transaction scope."""
    student = await db.get(Student, student_id)
    if not student:
        raise NotFoundError("Student not found")
    if course_id is None:
        raise ValidationError("course_id is required")
    course = await course_service.get_course(db, course_id)
    if not course:
        raise NotFoundError("Course not found")
    if await course_service.is_enrolled(db, student_id, course_id):
        raise ConflictError(f"Student is already enrolled in course: {course.course_name}")

    await course_service.add_enrollment(db, student_id, course_id, today)
    info = await competency_service.seed_assessment(db, student_id, course_id, today=today)
    return student, course, info


async def enroll_student_in_course(
    db: AsyncSession,
    student_id: str,
    course_id: Optional[int],
    today: Optional[date] = None,
) -> StudentCourseEnrollmentResponse:
    """Enroll an existing student in one more course. The student's batch is left as is."""
    async with transaction(db):
        student, course, info = await _enroll_existing(db, student_id, course_id, today)
        full_name = f"{student.first_name} {student.last_name}"
        course_name = course.course_name

    logger.info("Enrolled student %s in course %s", student_id, course_id)
    return StudentCourseEnrollmentResponse(
        message=f"Student {full_name} enrolled in {course_name} successfully",
        student_id=student_id,
        course_id=course_id,
        course_name=course_name,
        competency_assessment=info,
    )


# ----- Update -----

async def _add_course(
    db: AsyncSession,
    student_id: str,
    course_id: Optional[int],
    today: Optional[date],
) -> StudentCourseEnrollmentResponse:
    async with transaction(db):
        _, course, info = await _enroll_existing(db, student_id, course_id, today)
        course_name = course.course_name

    logger.info("Added course %s to student %s", course_id, student_id)
    return StudentCourseEnrollmentResponse(
        message="Course added successfully",
        student_id=student_id,
        course_id=course_id,
        course_name=course_name,
        competency_assessment=info,
    )


async def update_student(
    db: AsyncSession,
    student_id: str,
    payload: StudentUpdate,
    today: Optional[date] = None,
) -> Union[StudentCourseEnrollmentResponse, StudentUpdateResponse]:
    """
    Apply the patch. A course change (course_id differs from the course of the current batch)
    enrolls the student if needed, seeds the next competency attempt and moves them to that
    course's batch, all in the same transaction as the field updates.
    """
    if payload.mode == UpdateMode.add_course:
        return await _add_course(db, student_id, payload.course_id, today)

    changes = payload.changes()
    for required in ("first_name", "last_name"):
        if required in changes and not changes[required]:
            raise ValidationError("First name and last name cannot be empty")

    fields_set = payload.model_fields_set
    updated_age: Optional[int] = payload.age
    if "birth_date" in fields_set:
        updated_age = calculate_age(payload.birth_date, today)
        changes["age"] = updated_age
    elif "age" in fields_set:
        changes["age"] = payload.age

    new_assessment: Optional[CompetencyAssessmentInfo] = None

    async with transaction(db):
        student = await db.get(Student, student_id)
        if not student:
            raise NotFoundError("Student not found")

        if payload.course_id is not None:
            current_course_id = await _current_course_id(db, student_id)
            if current_course_id != payload.course_id:
                course = await course_service.get_course(db, payload.course_id)
                if not course:
                    raise NotFoundError("Course not found")
                if not await course_service.is_enrolled(db, student_id, course.course_id):
                    await course_service.add_enrollment(db, student_id, course.course_id, today)
                info = await competency_service.seed_assessment(
                    db, student_id, course.course_id, today=today
                )
                new_assessment = info.model_copy(update={"course_name": course.course_name})
                changes["batch_id"] = await batch_service.resolve_batch(db, course.course_id, today)

        if not changes and new_assessment is None:
            raise ValidationError("No valid fields to update")

        for field, value in changes.items():
            setattr(student, field, value)

    if new_assessment:
        logger.info(
            "Student %s moved to course %s (attempt %s)",
            student_id,
            new_assessment.course_id,
            new_assessment.attempt,
        )
    return StudentUpdateResponse(
        message=(
            "Student updated and new competency assessment created"
            if new_assessment
            else "Student updated successfully"
        ),
        student_id=student_id,
        updated_age=updated_age,
        new_competency_assessment=new_assessment,
    )


# ----- Read -----

def student_search_clause(term: str):
    """Case-insensitive match on first name, last name, student id or 'first last'."""
    pattern = f"%{term}%"
    return or_(
        Student.first_name.ilike(pattern),
        Student.last_name.ilike(pattern),
        Student.student_id.ilike(pattern),
        (Student.first_name + " " + Student.last_name).ilike(pattern),
    )


async def list_students(
    db: AsyncSession,
    q: Optional[str] = None,
    batch_id: Optional[int] = None,
) -> List[StudentResponse]:
    """Newest first. q matches first name, last name, student id or 'first last'."""
    stmt = select(Student).options(
        selectinload(Student.enrollments).selectinload(CourseEnrollee.course)
    )
    if batch_id is not None:
        stmt = stmt.where(Student.batch_id == batch_id)
    term = (q or "").strip()
    if term:
        stmt = stmt.where(student_search_clause(term))
    stmt = stmt.order_by(Student.created_at.desc())
    result = await db.execute(stmt)
    return [_student_to_response(s) for s in result.scalars().all()]


async def get_student(db: AsyncSession, student_id: str) -> StudentResponse:
    result = await db.execute(
        select(Student)
        .options(selectinload(Student.enrollments).selectinload(CourseEnrollee.course))
        .where(Student.student_id == student_id)
    )
    student = result.scalar_one_or_none()
    if not student:
        raise NotFoundError("Student not found")
    return _student_to_response(student, with_dates=True)


async def check_potential_duplicates(
    db: AsyncSession,
    first_name: Optional[str],
    last_name: Optional[str],
    birth_date: Optional[date] = None,
    email: Optional[str] = None,
) -> DuplicateCheckResponse:
    """Students with the same name (case and surrounding spaces ignored), optionally same birth date / email."""
    first = (first_name or "").strip().lower()
    last = (last_name or "").strip().lower()
    if not first or not last:
        raise ValidationError("first_name and last_name are required")

    stmt = (
        select(Student, Account.email)
        .join(Account, Student.account_id == Account.account_id)
        .options(selectinload(Student.enrollments).selectinload(CourseEnrollee.course))
        .where(
            func.lower(func.trim(Student.first_name)) == first,
            func.lower(func.trim(Student.last_name)) == last,
        )
    )
    if birth_date is not None:
        stmt = stmt.where(Student.birth_date == birth_date)
    if email and email.strip():
        stmt = stmt.where(func.lower(func.trim(Account.email)) == email.strip().lower())
    stmt = stmt.order_by(Student.created_at.desc())

    result = await db.execute(stmt)
    candidates = []
    for student, account_email in result.all():
        names = [c.course_name for c in _enrolled_courses(student)]
        candidates.append(
            DuplicateCandidate(
                student_id=student.student_id,
                first_name=student.first_name,
                middle_name=student.middle_name,
                last_name=student.last_name,
                birth_date=student.birth_date,
                email=account_email,
                enrolled_courses=", ".join(names) or None,
            )
        )
    return DuplicateCheckResponse(potential_duplicates=candidates, count=len(candidates))


# ----- Delete -----

async def delete_student(db: AsyncSession, student_id: str) -> StudentDeleteResponse:
    """Remove assessments, then enrollments, then the student. The account row is kept."""
    async with transaction(db):
        await db.execute(delete(CompetencyAssessment).where(CompetencyAssessment.student_id == student_id))
        await db.execute(delete(CourseEnrollee).where(CourseEnrollee.student_id == student_id))
        result = await db.execute(delete(Student).where(Student.student_id == student_id))
        if result.rowcount == 0:
            raise NotFoundError("Student not found")
        affected = result.rowcount

    logger.info("Deleted student %s", student_id)
    return StudentDeleteResponse(
        message="Student and all related data deleted successfully",
        affectedRows=affected,
    )
