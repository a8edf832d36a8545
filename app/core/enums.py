from enum import Enum


class ExamStatus(str, Enum):
    failed = "failed"
    completed = "completed"


class UpdateMode(str, Enum):
    update = "update"
    add_course = "addCourse"
