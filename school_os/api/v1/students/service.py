import logging
from typing import Any, List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from school_os.core.enums import StudentStatus
from school_os.core.exceptions import DuplicateRecord, NotFound, ServiceError, ValidationError
from school_os.core.models import Grade, SchoolClass, Student, Subject
from school_os.db.session import utcnow

from .schemas import (
    GradeResponse,
    StudentBulkResponse,
    StudentBulkResult,
    StudentBulkSummary,
    StudentCreate,
    StudentResponse,
    StudentStatusUpdate,
    StudentUpdate,
)

logger = logging.getLogger("school_os.students")


def _student_query():
    return select(Student, SchoolClass.name.label("class_name"), SchoolClass.grade_level).outerjoin(
        SchoolClass, Student.class_id == SchoolClass.id
    )


def _to_response(row) -> StudentResponse:
    student: Student = row[0]
    resp = StudentResponse.model_validate(student)
    resp.class_name = row.class_name
    resp.grade_level = row.grade_level
    return resp


async def list_students(
    db: AsyncSession,
    *,
    class_id: Optional[int] = None,
    status: Optional[str] = StudentStatus.ACTIVE.value,
    search: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[StudentResponse]:
    stmt = _student_query()
    if status:
        stmt = stmt.where(Student.status == status)
    if class_id is not None:
        stmt = stmt.where(Student.class_id == class_id)
    if search:
        term = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(
                Student.first_name.ilike(term),
                Student.last_name.ilike(term),
                Student.student_number.ilike(term),
            )
        )
    stmt = stmt.order_by(Student.last_name, Student.first_name).limit(limit).offset(offset)
    result = await db.execute(stmt)
    return [_to_response(row) for row in result.all()]


async def search_students(db: AsyncSession, query: str, limit: int = 20) -> List[StudentResponse]:
    return await list_students(db, search=query, limit=limit)


async def get_student(db: AsyncSession, student_id: int) -> StudentResponse:
    result = await db.execute(_student_query().where(Student.id == student_id))
    row = result.first()
    if row is None:
        raise NotFound("Student not found")
    return _to_response(row)


async def _student_number_taken(db: AsyncSession, student_number: str, exclude_id: Optional[int] = None) -> bool:
    stmt = select(Student.id).where(Student.student_number == student_number)
    if exclude_id is not None:
        stmt = stmt.where(Student.id != exclude_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none() is not None


async def _ensure_class_exists(db: AsyncSession, class_id: Optional[int]) -> None:
    if class_id is not None and await db.get(SchoolClass, class_id) is None:
        raise ValidationError("Class not found")


async def create_student(db: AsyncSession, payload: StudentCreate) -> StudentResponse:
    student_number = payload.student_number.strip()
    if await _student_number_taken(db, student_number):
        raise DuplicateRecord("Student number already exists")
    await _ensure_class_exists(db, payload.class_id)

    student = Student(**payload.model_dump(exclude={"student_number"}), student_number=student_number)
    student.status = StudentStatus.ACTIVE.value
    db.add(student)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise DuplicateRecord("Student number already exists") from e
    await db.refresh(student)
    logger.info("Created student %s (%s)", student.id, student.student_number)
    return await get_student(db, student.id)


async def bulk_create_students(db: AsyncSession, items: List[Any]) -> StudentBulkResponse:
    """Create students one by one; a failing item is reported and the rest continue."""
    if not items:
        raise ValidationError("Request body must be a non-empty array of students")

    results: List[StudentBulkResult] = []
    for raw in items:
        student_number = raw.get("student_number") if isinstance(raw, dict) else None
        try:
            if not isinstance(raw, dict) or not all(
                raw.get(f) for f in ("student_number", "first_name", "last_name")
            ):
                raise ValidationError("Missing required fields: student_number, first_name, last_name")
            try:
                payload = StudentCreate.model_validate(raw)
            except PydanticValidationError as e:
                raise ValidationError(
                    "Invalid student", detail="; ".join(err["msg"] for err in e.errors())
                ) from e
            created = await create_student(db, payload)
            results.append(
                StudentBulkResult(
                    success=True,
                    action="created",
                    id=created.id,
                    student_number=created.student_number,
                    data=raw,
                )
            )
        except ServiceError as e:
            results.append(
                StudentBulkResult(
                    success=False,
                    student_number=student_number if isinstance(student_number, str) else None,
                    error=e.message if not e.detail else f"{e.message}: {e.detail}",
                    data=raw,
                )
            )

    successful = sum(1 for r in results if r.success)
    failed = len(results) - successful
    return StudentBulkResponse(
        message=f"Bulk import completed: {successful} successful, {failed} failed",
        results=results,
        summary=StudentBulkSummary(total=len(results), successful=successful, failed=failed),
    )


async def update_student(db: AsyncSession, student_id: int, payload: StudentUpdate) -> StudentResponse:
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No fields to update")

    student = await db.get(Student, student_id)
    if not student:
        raise NotFound("Student not found")

    if changes.get("student_number"):
        changes["student_number"] = changes["student_number"].strip()
        if await _student_number_taken(db, changes["student_number"], exclude_id=student_id):
            raise DuplicateRecord("Student number already exists")
    if "class_id" in changes:
        await _ensure_class_exists(db, changes["class_id"])

    for field, value in changes.items():
        setattr(student, field, value)
    student.updated_at = utcnow()
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise DuplicateRecord("Student number already exists") from e
    return await get_student(db, student_id)


async def set_student_status(db: AsyncSession, student_id: int, payload: StudentStatusUpdate) -> StudentResponse:
    student = await db.get(Student, student_id)
    if not student:
        raise NotFound("Student not found")
    student.status = payload.status.value
    student.updated_at = utcnow()
    await db.commit()
    return await get_student(db, student_id)


async def deactivate_student(db: AsyncSession, student_id: int) -> None:
    """Soft delete: the row and its attendance history are kept."""
    student = await db.get(Student, student_id)
    if not student:
        raise NotFound("Student not found")
    student.status = StudentStatus.INACTIVE.value
    student.updated_at = utcnow()
    await db.commit()
    logger.info("Deactivated student %s", student_id)


async def list_student_grades(
    db: AsyncSession,
    student_id: int,
    *,
    subject_id: Optional[int] = None,
    term: Optional[str] = None,
    academic_year: Optional[str] = None,
) -> List[GradeResponse]:
    stmt = (
        select(Grade, Subject.name.label("subject_name"))
        .join(Subject, Grade.subject_id == Subject.id)
        .where(Grade.student_id == student_id)
    )
    if subject_id is not None:
        stmt = stmt.where(Grade.subject_id == subject_id)
    if term:
        stmt = stmt.where(Grade.term == term)
    if academic_year:
        stmt = stmt.where(Grade.academic_year == academic_year)
    result = await db.execute(stmt.order_by(Grade.created_at.desc()))
    grades = []
    for g, subject_name in result.all():
        grades.append(
            GradeResponse(
                id=g.id,
                student_id=g.student_id,
                subject_id=g.subject_id,
                subject_name=subject_name,
                assessment_type=g.assessment_type,
                score=g.score,
                max_score=g.max_score,
                assessment_date=g.assessment_date,
                term=g.term,
                academic_year=g.academic_year,
                notes=g.notes,
                recorded_by=g.recorded_by,
                created_at=g.created_at,
            )
        )
    return grades
