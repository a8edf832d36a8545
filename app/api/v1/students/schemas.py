from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from app.core.enums import UpdateMode

from app.api.v1.competency.schemas import CompetencyAssessmentInfo

# students.rating is Numeric(3, 2)
RATING_MAX = Decimal("9.99")


# Form clients send "" for untouched inputs.
def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


# ----- Create -----
class StudentCreate(BaseModel):
    """
    first_name and last_name are required (checked after trimming).
    student_id is generated (STU<epoch-ms>) when omitted. age is only used when birth_date is missing.
    With course_id the student is enrolled, placed in a batch and gets a Basic competency assessment.
    """

    student_id: Optional[str] = None
    first_name: str = ""
    middle_name: Optional[str] = None
    last_name: str = ""
    email: Optional[str] = None
    age: Optional[int] = Field(None, ge=0)
    gender: Optional[str] = None
    birth_date: Optional[date] = None
    birth_place: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    background: Optional[str] = None
    goals: Optional[str] = None
    course_id: Optional[int] = None
    trading_level_id: Optional[int] = None
    learning_style_id: Optional[int] = None
    device_availability: Optional[str] = None
    rating: Optional[Decimal] = Field(None, ge=0, le=RATING_MAX)

    @field_validator(
        "email", "age", "birth_date", "course_id", "trading_level_id", "learning_style_id", "rating",
        mode="before",
    )
    @classmethod
    def _empty_as_missing(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("email")
    @classmethod
    def _email_shape(cls, value: Optional[str]) -> Optional[str]:
        # Only the shape is checked; reserved domains such as .local are accepted.
        if value is None:
            return None
        value = value.strip()
        local, at, host = value.rpartition("@")
        if not at or not local or not host or " " in value:
            raise ValueError("email must look like name@domain")
        return value


class EnrollmentInfo(BaseModel):
    course_id: int
    batch_id: int
    course_name: str


class StudentCreateResponse(BaseModel):
    message: str
    student_id: str
    username: str
    email: str
    account_id: int
    age: Optional[int] = None
    action: str = "created_new"
    enrollment: Optional[EnrollmentInfo] = None
    competency_assessment: Optional[CompetencyAssessmentInfo] = None


# ----- Update -----
# Student columns a PUT may change. age is handled separately (derived from birth_date).
STUDENT_PATCH_FIELDS = (
    "first_name",
    "middle_name",
    "last_name",
    "gender",
    "birth_date",
    "birth_place",
    "phone_number",
    "address",
    "background",
    "goals",
    "batch_id",
    "trading_level_id",
    "learning_style_id",
    "device_availability",
    "rating",
    "is_graduated",
    "eligibility_status",
    "graduation_date",
)


class StudentUpdate(BaseModel):
    """
    mode=update (default): only fields present in the body are changed. birth_date recomputes age.
    A course_id different from the student's current course (course of their batch) enrolls them,
    seeds a new competency attempt and moves them to that course's batch.
    mode=addCourse: course_id required; enroll + seed only, other fields ignored.
    """

    mode: UpdateMode = UpdateMode.update
    course_id: Optional[int] = None
    age: Optional[int] = Field(None, ge=0)

    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Optional[str] = None
    birth_date: Optional[date] = None
    birth_place: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    background: Optional[str] = None
    goals: Optional[str] = None
    batch_id: Optional[int] = None
    trading_level_id: Optional[int] = None
    learning_style_id: Optional[int] = None
    device_availability: Optional[str] = None
    rating: Optional[Decimal] = Field(None, ge=0, le=RATING_MAX)
    is_graduated: Optional[bool] = None
    eligibility_status: Optional[str] = None
    graduation_date: Optional[date] = None

    def changes(self) -> Dict[str, Any]:
        """Updatable fields present in the request, strings trimmed."""
        data: Dict[str, Any] = {}
        for name in STUDENT_PATCH_FIELDS:
            if name in self.model_fields_set:
                value = getattr(self, name)
                data[name] = value.strip() if isinstance(value, str) else value
        return data


class StudentUpdateResponse(BaseModel):
    message: str
    student_id: str
    updated_age: Optional[int] = None
    new_competency_assessment: Optional[CompetencyAssessmentInfo] = None


# ----- Enroll -----
class StudentEnrollRequest(BaseModel):
    course_id: Optional[int] = None


class StudentCourseEnrollmentResponse(BaseModel):
    """Returned by POST /{student_id}/enroll and PUT with mode=addCourse."""

    message: str
    student_id: str
    course_id: int
    course_name: str
    competency_assessment: CompetencyAssessmentInfo


# ----- Read -----
class EnrolledCourse(BaseModel):
    course_id: int
    course_name: str
    enrollment_date: Optional[date] = None


class StudentResponse(BaseModel):
    student_id: str
    account_id: int
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    age: Optional[int] = None
    gender: Optional[str] = None
    batch_id: Optional[int] = None
    birth_date: Optional[date] = None
    birth_place: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    background: Optional[str] = None
    goals: Optional[str] = None
    trading_level_id: Optional[int] = None
    learning_style_id: Optional[int] = None
    device_availability: Optional[str] = None
    rating: Optional[float] = None
    is_graduated: bool = False
    eligibility_status: Optional[str] = None
    graduation_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime
    enrolled_courses: List[EnrolledCourse] = []
    course_names: Optional[str] = None

    class Config:
        from_attributes = True


class DuplicateCandidate(BaseModel):
    student_id: str
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    birth_date: Optional[date] = None
    email: str
    enrolled_courses: Optional[str] = None


class DuplicateCheckResponse(BaseModel):
    potential_duplicates: List[DuplicateCandidate]
    count: int


class StudentDeleteResponse(BaseModel):
    message: str
    affectedRows: int
