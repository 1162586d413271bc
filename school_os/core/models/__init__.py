from school_os.core.models.attendance import Attendance
from school_os.core.models.class_model import SchoolClass
from school_os.core.models.grade import Grade
from school_os.core.models.school_setting import SchoolSetting
from school_os.core.models.student import Student
from school_os.core.models.subject import Subject

__all__ = [
    "Attendance",
    "Grade",
    "SchoolClass",
    "SchoolSetting",
    "Student",
    "Subject",
]
