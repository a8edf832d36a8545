from datetime import date

from sqlalchemy import Column, Date, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.session import Base


class CourseEnrollee(Base):
    """Student enrolled in a course. One row per (student, course)."""

    __tablename__ = "course_enrollees"
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_course_enrollee_student_course"),
    )

    enrollee_id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(String(20), ForeignKey("students.student_id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.course_id"), nullable=False, index=True)
    enrollment_date = Column(Date, nullable=False, default=date.today)

    student = relationship("Student", back_populates="enrollments")
    course = relationship("Course")
