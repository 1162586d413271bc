from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class ClassResponse(BaseModel):
    id: int
    name: str
    grade_level: str
    academic_year: str
    teacher_id: Optional[int] = None
    status: str
    student_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ClassStudent(BaseModel):
    id: int
    student_number: str
    first_name: str
    last_name: str
    status: str

    class Config:
        from_attributes = True


class ClassDetailResponse(ClassResponse):
    students: List[ClassStudent] = []
