"""Attendance service: reads, the per-student-per-day upsert, and its batch wrappers."""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, distinct, func, select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from school_os.core.enums import ATTENDANCE_STATUSES, AttendanceStatus, StudentStatus
from school_os.core.exceptions import (
    DuplicateRecord,
    InternalError,
    NotFound,
    ServiceError,
    ValidationError,
)
from school_os.core.models import Attendance, SchoolClass, Student
from school_os.db.session import utcnow

from .schemas import (
    MAX_ID,
    REQUIRED_ITEM_FIELDS,
    AttendanceBatchResponse,
    AttendanceItem,
    AttendanceItemResult,
    AttendanceRecord,
    AttendanceUpdate,
    BatchSummary,
    MarkAllPresentRequest,
    StatusCount,
)

logger = logging.getLogger("school_os.attendance")

# Dialects with INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


# ----- Reads -----
def _record_query():
    return (
        select(
            Attendance,
            Student.first_name,
            Student.last_name,
            Student.student_number,
            SchoolClass.name.label("class_name"),
        )
        .join(Student, Attendance.student_id == Student.id)
        .outerjoin(SchoolClass, Student.class_id == SchoolClass.id)
    )


def _to_record(row) -> AttendanceRecord:
    att: Attendance = row[0]
    return AttendanceRecord(
        id=att.id,
        student_id=att.student_id,
        date=att.date,
        status=att.status,
        notes=att.notes,
        recorded_by=att.recorded_by,
        created_at=att.created_at,
        updated_at=att.updated_at,
        first_name=row.first_name,
        last_name=row.last_name,
        student_number=row.student_number,
        class_name=row.class_name,
    )


async def list_attendance(
    db: AsyncSession,
    *,
    att_date: Optional[date] = None,
    class_id: Optional[int] = None,
    student_id: Optional[int] = None,
    status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[AttendanceRecord]:
    stmt = _record_query()
    if att_date is not None:
        stmt = stmt.where(Attendance.date == att_date)
    if class_id is not None:
        stmt = stmt.where(Student.class_id == class_id)
    if student_id is not None:
        stmt = stmt.where(Attendance.student_id == student_id)
    if status is not None:
        stmt = stmt.where(Attendance.status == status)
    if start_date is not None:
        stmt = stmt.where(Attendance.date >= start_date)
    if end_date is not None:
        stmt = stmt.where(Attendance.date <= end_date)
    stmt = (
        stmt.order_by(Attendance.date.desc(), Student.last_name, Student.first_name)
        .limit(limit)
        .offset(offset)
    )
    result = await db.execute(stmt)
    return [_to_record(row) for row in result.all()]


async def get_attendance(db: AsyncSession, attendance_id: int) -> AttendanceRecord:
    result = await db.execute(_record_query().where(Attendance.id == attendance_id))
    row = result.first()
    if row is None:
        raise NotFound("Attendance record not found")
    return _to_record(row)


async def _status_summary(db: AsyncSession, stmt, start_date: Optional[date], end_date: Optional[date]):
    if start_date is not None:
        stmt = stmt.where(Attendance.date >= start_date)
    if end_date is not None:
        stmt = stmt.where(Attendance.date <= end_date)
    result = await db.execute(stmt.group_by(Attendance.status).order_by(Attendance.status))
    return result.all()


async def get_class_summary(
    db: AsyncSession,
    class_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[StatusCount]:
    stmt = (
        select(
            Attendance.status,
            func.count().label("record_count"),
            func.count(distinct(Attendance.student_id)).label("unique_students"),
            func.count(distinct(Attendance.date)).label("unique_dates"),
        )
        .join(Student, Attendance.student_id == Student.id)
        .where(Student.class_id == class_id)
    )
    rows = await _status_summary(db, stmt, start_date, end_date)
    return [
        StatusCount(
            status=r.status,
            count=r.record_count,
            unique_students=r.unique_students,
            unique_dates=r.unique_dates,
        )
        for r in rows
    ]


async def get_student_summary(
    db: AsyncSession,
    student_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[StatusCount]:
    stmt = select(Attendance.status, func.count().label("record_count")).where(Attendance.student_id == student_id)
    rows = await _status_summary(db, stmt, start_date, end_date)
    return [StatusCount(status=r.status, count=r.record_count) for r in rows]


# ----- Upsert engine -----
def parse_attendance_item(raw: Any) -> AttendanceItem:
    """Validate one submitted item. Raises ValidationError describing what is wrong with it."""
    if not isinstance(raw, dict):
        raise ValidationError("Attendance item must be an object")
    if any(raw.get(field) in (None, "") for field in REQUIRED_ITEM_FIELDS):
        raise ValidationError("Missing required fields: " + ", ".join(REQUIRED_ITEM_FIELDS))
    try:
        return AttendanceItem.model_validate(raw)
    except PydanticValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError("Invalid attendance item", detail=details) from e


def _upsert_statement(dialect_name: str, values: Dict[str, Any]):
    insert_fn = _UPSERT_INSERTS.get(dialect_name)
    if insert_fn is None:
        raise InternalError(f"Attendance upsert is not supported on '{dialect_name}'")
    stmt = insert_fn(Attendance).values(**values)
    # created_at stays as first written; everything else follows the latest submission
    stmt = stmt.on_conflict_do_update(
        index_elements=["student_id", "date"],
        set_={
            "status": stmt.excluded.status,
            "notes": stmt.excluded.notes,
            "recorded_by": stmt.excluded.recorded_by,
            "updated_at": stmt.excluded.updated_at,
        },
    )
    return stmt.returning(Attendance.id)


async def upsert_attendance(
    db: AsyncSession,
    item: AttendanceItem,
    recorded_by: Optional[int] = None,
) -> AttendanceItemResult:
    """
    Create or correct the attendance of one student on one day.

    The write is a single INSERT ... ON CONFLICT (student_id, date) DO UPDATE, so two
    concurrent submissions for the same student/day converge on one row instead of racing.
    The preceding existence check only decides whether the result reports 'created' or 'updated'.
    Commits on success; rolls back and raises ServiceError on failure.
    """
    now = utcnow()
    values = {
        "student_id": item.student_id,
        "date": item.date,
        "status": item.status.value,
        "notes": item.notes or None,
        "recorded_by": recorded_by,
        "created_at": now,
        "updated_at": now,
    }
    try:
        student_exists = await db.execute(select(Student.id).where(Student.id == item.student_id))
        if student_exists.scalar_one_or_none() is None:
            raise NotFound("Student not found")

        existing = await db.execute(
            select(Attendance.id).where(
                Attendance.student_id == item.student_id,
                Attendance.date == item.date,
            )
        )
        existing_id = existing.scalar_one_or_none()

        result = await db.execute(_upsert_statement(db.get_bind().dialect.name, values))
        record_id = result.scalar_one()
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise DuplicateRecord(
            f"Attendance already recorded for student {item.student_id} on {item.date}",
            detail=str(e.orig) if getattr(e, "orig", None) else str(e),
        ) from e
    except SQLAlchemyError as e:
        await db.rollback()
        raise InternalError("Failed to record attendance", detail=str(e)) from e

    return AttendanceItemResult(
        success=True,
        action="updated" if existing_id is not None else "created",
        id=record_id,
        student_id=item.student_id,
        data=item.model_dump(mode="json"),
    )


async def _record_item(db: AsyncSession, raw: Any, recorded_by: Optional[int]) -> AttendanceItemResult:
    """Run one item through the upsert. Failures are returned, never raised."""
    try:
        item = parse_attendance_item(raw)
        return await upsert_attendance(db, item, recorded_by)
    except ServiceError as e:
        await db.rollback()
        return _failed_item(raw, e)
    except Exception as e:
        await db.rollback()
        logger.exception("Unexpected error recording attendance item %r", raw)
        return _failed_item(raw, InternalError("Failed to record attendance", detail=str(e)))


def _failed_item(raw: Any, error: ServiceError) -> AttendanceItemResult:
    student_id = raw.get("student_id") if isinstance(raw, dict) else None
    return AttendanceItemResult(
        success=False,
        student_id=student_id if isinstance(student_id, int) and 0 < student_id <= MAX_ID else None,
        error=error.message if not error.detail else f"{error.message}: {error.detail}",
        data=raw,
    )


def _batch_response(results: List[AttendanceItemResult], label: str) -> AttendanceBatchResponse:
    successful = sum(1 for r in results if r.success)
    failed = len(results) - successful
    return AttendanceBatchResponse(
        message=f"{label}: {successful} successful, {failed} failed",
        results=results,
        summary=BatchSummary(total=len(results), successful=successful, failed=failed),
    )


async def record_attendance(
    db: AsyncSession,
    payload: Union[Dict[str, Any], Sequence[Any]],
    recorded_by: Optional[int] = None,
) -> AttendanceBatchResponse:
    """Record one item or a list of items; each item succeeds or fails on its own."""
    raw_items = payload if isinstance(payload, list) else [payload]
    results: List[AttendanceItemResult] = []
    for raw in raw_items:
        results.append(await _record_item(db, raw, recorded_by))
    response = _batch_response(results, "Attendance recorded")
    logger.info(response.message)
    return response


async def mark_all_present(
    db: AsyncSession,
    payload: MarkAllPresentRequest,
    recorded_by: Optional[int] = None,
) -> AttendanceBatchResponse:
    result = await db.execute(
        select(Student.id)
        .where(Student.class_id == payload.class_id, Student.status == StudentStatus.ACTIVE.value)
        .order_by(Student.id)
    )
    student_ids = list(result.scalars().all())
    if not student_ids:
        raise NotFound("No active students found in this class")

    results: List[AttendanceItemResult] = []
    for student_id in student_ids:
        raw = {
            "student_id": student_id,
            "date": payload.date.isoformat(),
            "status": AttendanceStatus.PRESENT.value,
            "notes": payload.notes,
        }
        results.append(await _record_item(db, raw, recorded_by))
    response = _batch_response(results, "Marked all present")
    logger.info("Class %s on %s: %s", payload.class_id, payload.date, response.message)
    return response


# ----- Correction / removal by id -----
async def update_attendance(
    db: AsyncSession,
    attendance_id: int,
    payload: AttendanceUpdate,
    recorded_by: Optional[int] = None,
) -> AttendanceRecord:
    if not payload.status:
        raise ValidationError("Status is required")
    if payload.status not in ATTENDANCE_STATUSES:
        raise ValidationError("Invalid status. Must be one of: " + ", ".join(ATTENDANCE_STATUSES))

    result = await db.execute(
        update(Attendance)
        .where(Attendance.id == attendance_id)
        .values(
            status=payload.status,
            notes=payload.notes or None,
            recorded_by=recorded_by,
            updated_at=utcnow(),
        )
    )
    if result.rowcount == 0:
        await db.rollback()
        raise NotFound("Attendance record not found")
    await db.commit()
    return await get_attendance(db, attendance_id)


async def delete_attendance(db: AsyncSession, attendance_id: int) -> None:
    result = await db.execute(delete(Attendance).where(Attendance.id == attendance_id))
    if result.rowcount == 0:
        await db.rollback()
        raise NotFound("Attendance record not found")
    await db.commit()
    logger.info("Deleted attendance record %s", attendance_id)
