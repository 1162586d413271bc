from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from school_os.core.enums import StudentStatus


class StudentBase(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    class_id: Optional[int] = None
    parent_name: Optional[str] = None
    parent_phone: Optional[str] = None
    parent_email: Optional[EmailStr] = None
    address: Optional[str] = None
    enrollment_date: Optional[date] = None
    notes: Optional[str] = None


class StudentCreate(StudentBase):
    student_number: str = Field(..., min_length=1, max_length=50)


class StudentUpdate(BaseModel):
    """Partial update. Only fields the client sent are applied."""

    student_number: Optional[str] = Field(None, min_length=1, max_length=50)
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    class_id: Optional[int] = None
    parent_name: Optional[str] = None
    parent_phone: Optional[str] = None
    parent_email: Optional[EmailStr] = None
    address: Optional[str] = None
    enrollment_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("student_number", "first_name", "last_name")
    @classmethod
    def not_null(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("may not be null")
        return v


class StudentStatusUpdate(BaseModel):
    status: StudentStatus


class StudentResponse(StudentBase):
    id: int
    student_number: str
    status: str
    class_name: Optional[str] = None
    grade_level: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StudentBulkResult(BaseModel):
    success: bool
    action: Optional[str] = None
    id: Optional[int] = None
    student_number: Optional[str] = None
    error: Optional[str] = None
    data: Any = None


class StudentBulkSummary(BaseModel):
    total: int
    successful: int
    failed: int


class StudentBulkResponse(BaseModel):
    success: bool = True
    message: str
    results: List[StudentBulkResult]
    summary: StudentBulkSummary


class GradeResponse(BaseModel):
    id: int
    student_id: int
    subject_id: int
    subject_name: Optional[str] = None
    assessment_type: str
    score: float
    max_score: float
    assessment_date: date
    term: str
    academic_year: str
    notes: Optional[str] = None
    recorded_by: Optional[int] = None
    created_at: Optional[datetime] = None
