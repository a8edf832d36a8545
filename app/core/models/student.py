from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from app.core.dates import utcnow
from app.db.session import Base

STUDENT_ID_MAX_LENGTH = 20


class Student(Base):
    """
    Student record, 1:1 with an Account.
    student_id is the stable external key (caller supplied or STU<epoch-ms>).
    age always equals the calendar age at birth_date when birth_date is set; the manual
    value is only kept when birth_date is unknown.
    batch_id stays null until the first course enrollment.
    """

    __tablename__ = "students"

    student_id = Column(String(STUDENT_ID_MAX_LENGTH), primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.account_id"), nullable=False, unique=True)
    first_name = Column(String(100), nullable=False)
    middle_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=False)
    age = Column(Integer, nullable=True)
    gender = Column(String(20), nullable=True)
    birth_date = Column(Date, nullable=True)
    birth_place = Column(String(255), nullable=True)
    phone_number = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    background = Column(Text, nullable=True)
    goals = Column(Text, nullable=True)
    batch_id = Column(Integer, ForeignKey("batches.batch_id"), nullable=True, index=True)
    trading_level_id = Column(Integer, nullable=True)
    learning_style_id = Column(Integer, nullable=True)
    device_availability = Column(String(255), nullable=True)
    rating = Column(Numeric(3, 2), nullable=False, default=0)
    is_graduated = Column(Boolean, nullable=False, default=False)
    eligibility_status = Column(String(50), nullable=True)
    graduation_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    account = relationship("Account", back_populates="student")
    batch = relationship("Batch")
    enrollments = relationship("CourseEnrollee", back_populates="student")
