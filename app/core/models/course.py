from sqlalchemy import Boolean, Column, Date, DateTime, Integer, Numeric, String, Text

from app.core.dates import utcnow
from app.db.session import Base


class Course(Base):
    """Course catalogue entry. Read-only for the enrollment workflows."""

    __tablename__ = "courses"

    course_id = Column(Integer, primary_key=True, autoincrement=True)
    course_name = Column(String(255), nullable=False)
    course_code = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    tuition_fee = Column(Numeric(10, 2), nullable=True)
    duration_weeks = Column(Integer, nullable=True)
    max_enrollees = Column(Integer, nullable=True)
    current_enrollees = Column(Integer, nullable=False, default=0)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
