from typing import List

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from school_os.core.enums import ClassStatus, StudentStatus
from school_os.core.exceptions import NotFound
from school_os.core.models import SchoolClass, Student

from .schemas import ClassDetailResponse, ClassResponse, ClassStudent


def _class_query():
    """Classes with their count of active students."""
    return (
        select(SchoolClass, func.count(Student.id).label("student_count"))
        .outerjoin(
            Student,
            and_(Student.class_id == SchoolClass.id, Student.status == StudentStatus.ACTIVE.value),
        )
        .group_by(SchoolClass.id)
    )


def _to_response(row) -> ClassResponse:
    resp = ClassResponse.model_validate(row[0])
    resp.student_count = row.student_count
    return resp


async def list_classes(db: AsyncSession) -> List[ClassResponse]:
    stmt = (
        _class_query()
        .where(SchoolClass.status == ClassStatus.ACTIVE.value)
        .order_by(SchoolClass.grade_level, SchoolClass.name)
    )
    result = await db.execute(stmt)
    return [_to_response(row) for row in result.all()]


async def get_class(db: AsyncSession, class_id: int) -> ClassDetailResponse:
    result = await db.execute(_class_query().where(SchoolClass.id == class_id))
    row = result.first()
    if row is None:
        raise NotFound("Class not found")

    students = await db.execute(
        select(Student)
        .where(Student.class_id == class_id, Student.status == StudentStatus.ACTIVE.value)
        .order_by(Student.last_name, Student.first_name)
    )
    return ClassDetailResponse(
        **_to_response(row).model_dump(),
        students=[ClassStudent.model_validate(s) for s in students.scalars().all()],
    )
