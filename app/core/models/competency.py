from datetime import date

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint

from app.core.dates import utcnow
from app.core.enums import ExamStatus
from app.db.session import Base


class CompetencyType(Base):
    """Competency level a course assesses (Basic, Intermediate, ...) with its passing score."""

    __tablename__ = "competency_types"

    type_id = Column(Integer, primary_key=True, autoincrement=True)
    type_name = Column(String(50), nullable=False, unique=True)
    passing_score = Column(Numeric(5, 2), nullable=False)
    description = Column(Text, nullable=True)


class CompetencyAssessment(Base):
    """
    One scored attempt of a student at a competency of a course.
    attempt_number is 1, 2, 3, ... per (student, course, competency type).
    competency_type_id has no FK: the fallback type id is recorded even when the
    reference row is missing.
    """

    __tablename__ = "competency_assessments"
    __table_args__ = (
        UniqueConstraint(
            "student_id",
            "course_id",
            "competency_type_id",
            "attempt_number",
            name="uq_competency_assessment_attempt",
        ),
    )

    assessment_id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(String(20), ForeignKey("students.student_id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.course_id"), nullable=False, index=True)
    competency_type_id = Column(Integer, nullable=False)
    attempt_number = Column(Integer, nullable=False, default=1)
    score = Column(Numeric(5, 2), nullable=False, default=0)
    passing_score = Column(Numeric(5, 2), nullable=False)
    exam_status = Column(String(20), nullable=False, default=ExamStatus.failed.value)  # failed | completed
    assessment_date = Column(Date, nullable=False, default=date.today)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
