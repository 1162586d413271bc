"""Student records API. Reads for any signed-in user; writes for teachers and admins; removal for admins."""

from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi import status as http_status
from sqlalchemy.ext.asyncio import AsyncSession

from school_os.api.v1.attendance import service as attendance_service
from school_os.auth.dependencies import get_current_user
from school_os.auth.rbac import require_admin, require_teacher_or_admin
from school_os.auth.schemas import CurrentUser
from school_os.core.enums import StudentStatus
from school_os.core.responses import envelope
from school_os.db.session import get_db

from . import service
from .schemas import StudentBulkResponse, StudentCreate, StudentStatusUpdate, StudentUpdate

router = APIRouter(prefix="/api/students", tags=["students"])


@router.get("")
async def list_students(
    class_id: Optional[int] = None,
    status: StudentStatus = StudentStatus.ACTIVE,
    search: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    students = await service.list_students(
        db, class_id=class_id, status=status.value, search=search, limit=limit, offset=offset
    )
    return envelope(
        students,
        total=len(students),
        pagination={"limit": limit, "offset": offset},
    )


@router.get("/search/{query}")
async def search_students(
    query: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    students = await service.search_students(db, query)
    return envelope(students, total=len(students))


@router.get("/class/{class_id}")
async def students_by_class(
    class_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    students = await service.list_students(db, class_id=class_id, limit=1000)
    return envelope(students, total=len(students))


@router.get("/{student_id}")
async def get_student(
    student_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return envelope(await service.get_student(db, student_id))


@router.post("", status_code=http_status.HTTP_201_CREATED)
async def create_student(
    payload: StudentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher_or_admin),
):
    student = await service.create_student(db, payload)
    return envelope(student, "Student created successfully")


@router.post("/bulk", response_model=StudentBulkResponse)
async def bulk_create_students(
    payload: List[Dict[str, Any]] = Body(...),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher_or_admin),
):
    return await service.bulk_create_students(db, payload)


@router.put("/{student_id}")
async def update_student(
    student_id: int,
    payload: StudentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher_or_admin),
):
    student = await service.update_student(db, student_id, payload)
    return envelope(student, "Student updated successfully")


@router.patch("/{student_id}/status")
async def update_student_status(
    student_id: int,
    payload: StudentStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher_or_admin),
):
    student = await service.set_student_status(db, student_id, payload)
    return envelope(student, f"Student status updated to {payload.status.value}")


@router.delete("/{student_id}")
async def delete_student(
    student_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
):
    """Soft delete: marks the student inactive."""
    await service.deactivate_student(db, student_id)
    return envelope(message="Student deactivated successfully")


@router.get("/{student_id}/attendance")
async def student_attendance(
    student_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    records = await attendance_service.list_attendance(
        db, student_id=student_id, start_date=start_date, end_date=end_date, limit=limit
    )
    return envelope(records, total=len(records))


@router.get("/{student_id}/grades")
async def student_grades(
    student_id: int,
    subject_id: Optional[int] = None,
    term: Optional[str] = None,
    academic_year: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    grades = await service.list_student_grades(
        db, student_id, subject_id=subject_id, term=term, academic_year=academic_year
    )
    return envelope(grades, total=len(grades))
