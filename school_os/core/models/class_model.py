"""School classes (e.g. JSS1A). Model named SchoolClass to avoid Python 'class' keyword."""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from school_os.db.session import Base, utcnow


class SchoolClass(Base):
    """Class master. Soft delete via status."""

    __tablename__ = "classes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False)
    grade_level = Column(String(50), nullable=False)
    academic_year = Column(String(20), nullable=False)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
