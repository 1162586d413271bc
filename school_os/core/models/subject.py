"""Subjects taught (e.g. Mathematics). Referenced by grades."""

from sqlalchemy import Column, DateTime, Integer, String, Text

from school_os.db.session import Base, utcnow


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
