from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from school_os.core.enums import AttendanceStatus

REQUIRED_ITEM_FIELDS = ("student_id", "date", "status")
# Largest id a signed 64-bit INTEGER column can hold
MAX_ID = 2**63 - 1


class AttendanceItem(BaseModel):
    """One (student, date, status) submission. Parsed per item so a bad item fails alone."""

    student_id: int = Field(..., ge=1, le=MAX_ID)
    date: date
    status: AttendanceStatus
    notes: Optional[str] = None


class AttendanceUpdate(BaseModel):
    # Checked in the service so the error names the allowed values
    status: Optional[str] = None
    notes: Optional[str] = None


class MarkAllPresentRequest(BaseModel):
    class_id: int
    date: date
    notes: Optional[str] = None


class AttendanceRecord(BaseModel):
    """Attendance row as returned by reads, with student display fields joined in."""

    id: int
    student_id: int
    date: date
    status: str
    notes: Optional[str] = None
    recorded_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    student_number: Optional[str] = None
    class_name: Optional[str] = None


class AttendanceItemResult(BaseModel):
    success: bool
    action: Optional[str] = None  # created | updated
    id: Optional[int] = None
    student_id: Optional[int] = None
    error: Optional[str] = None
    data: Any = None


class BatchSummary(BaseModel):
    total: int
    successful: int
    failed: int


class AttendanceBatchResponse(BaseModel):
    success: bool = True
    message: str
    results: List[AttendanceItemResult]
    summary: BatchSummary


class StatusCount(BaseModel):
    status: str
    count: int
    unique_students: Optional[int] = None
    unique_dates: Optional[int] = None

