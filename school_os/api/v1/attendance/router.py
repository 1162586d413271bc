"""Attendance API router."""

from datetime import date
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from school_os.auth.dependencies import get_current_user
from school_os.auth.rbac import require_teacher_or_admin
from school_os.auth.schemas import CurrentUser
from school_os.core.enums import AttendanceStatus
from school_os.core.responses import envelope
from school_os.db.session import get_db

from . import service
from .schemas import AttendanceBatchResponse, AttendanceUpdate, MarkAllPresentRequest

router = APIRouter(prefix="/api/attendance", tags=["attendance"])

AttendancePayload = Union[List[Any], Dict[str, Any]]


# ----- Reads -----
@router.get("")
async def list_attendance(
    att_date: Optional[date] = Query(None, alias="date"),
    class_id: Optional[int] = None,
    student_id: Optional[int] = None,
    status: Optional[AttendanceStatus] = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    records = await service.list_attendance(
        db,
        att_date=att_date,
        class_id=class_id,
        student_id=student_id,
        status=status.value if status else None,
        limit=limit,
        offset=offset,
    )
    return envelope(records, pagination={"limit": limit, "offset": offset, "total": len(records)})


@router.get("/today")
async def today_attendance(
    class_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    today = date.today()
    records = await service.list_attendance(db, att_date=today, class_id=class_id, limit=1000)
    return envelope(records, total=len(records), date=today.isoformat())


@router.get("/class/{class_id}/date/{att_date}")
async def class_attendance_by_date(
    class_id: int,
    att_date: date,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    records = await service.list_attendance(db, att_date=att_date, class_id=class_id, limit=1000)
    return envelope(records, total=len(records))


@router.get("/student/{student_id}")
async def student_attendance(
    student_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    records = await service.list_attendance(
        db, student_id=student_id, start_date=start_date, end_date=end_date, limit=limit
    )
    return envelope(records, total=len(records))


@router.get("/summary/class/{class_id}")
async def class_summary(
    class_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return envelope(await service.get_class_summary(db, class_id, start_date, end_date))


@router.get("/summary/student/{student_id}")
async def student_summary(
    student_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return envelope(await service.get_student_summary(db, student_id, start_date, end_date))


@router.get("/{attendance_id}")
async def get_attendance(
    attendance_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return envelope(await service.get_attendance(db, attendance_id))


# ----- Recording -----
@router.post("", response_model=AttendanceBatchResponse)
async def record_attendance(
    payload: AttendancePayload = Body(...),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Record one item or an array of items. Each item is upserted on (student_id, date) independently."""
    return await service.record_attendance(db, payload, recorded_by=current_user.id)


@router.post("/bulk", response_model=AttendanceBatchResponse)
async def bulk_record_attendance(
    payload: AttendancePayload = Body(...),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return await service.record_attendance(db, payload, recorded_by=current_user.id)


@router.post("/mark-all-present", response_model=AttendanceBatchResponse)
async def mark_all_present(
    payload: MarkAllPresentRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Mark every active student of a class present for a date."""
    return await service.mark_all_present(db, payload, recorded_by=current_user.id)


# ----- Correction / removal -----
@router.put("/{attendance_id}")
async def update_attendance(
    attendance_id: int,
    payload: AttendanceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    record = await service.update_attendance(db, attendance_id, payload, recorded_by=current_user.id)
    return envelope(record, "Attendance updated successfully")


@router.delete("/{attendance_id}")
async def delete_attendance(
    attendance_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher_or_admin),
):
    await service.delete_attendance(db, attendance_id)
    return envelope(message="Attendance record deleted successfully")
