from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.core.dates import utcnow
from app.db.session import Base


class Role(Base):
    """Account role (student, admin). Reference data seeded once."""

    __tablename__ = "roles"

    role_id = Column(Integer, primary_key=True, autoincrement=True)
    role_name = Column(String(50), nullable=False, unique=True)


class Account(Base):
    """
    Login identity created together with a student.
    username and email are unique across all accounts; never updated after creation.
    """

    __tablename__ = "accounts"

    account_id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    role_id = Column(Integer, ForeignKey("roles.role_id"), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    role = relationship("Role")
    student = relationship("Student", back_populates="account", uselist=False)
