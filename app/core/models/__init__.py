from app.core.models.account import Account, Role
from app.core.models.batch import Batch
from app.core.models.competency import CompetencyAssessment, CompetencyType
from app.core.models.course import Course
from app.core.models.course_enrollee import CourseEnrollee
from app.core.models.student import Student

__all__ = [
    "Account",
    "Batch",
    "CompetencyAssessment",
    "CompetencyType",
    "Course",
    "CourseEnrollee",
    "Role",
    "Student",
]
