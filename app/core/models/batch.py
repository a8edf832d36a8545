from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.core.dates import utcnow
from app.db.session import Base


class Batch(Base):
    """
    Time-boxed cohort of a course. The resolver picks the newest active batch of a course;
    when there is none it opens one spanning DEFAULT_BATCH_MONTHS from today.
    """

    __tablename__ = "batches"

    batch_id = Column(Integer, primary_key=True, autoincrement=True)
    course_id = Column(Integer, ForeignKey("courses.course_id"), nullable=False, index=True)
    batch_name = Column(String(255), nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    max_students = Column(Integer, nullable=False, default=30)
    current_students = Column(Integer, nullable=False, default=0)
    instructor_name = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    course = relationship("Course")
