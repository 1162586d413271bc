from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Integer, String, Text

from school_os.db.session import Base, utcnow


class Grade(Base):
    """One assessment score for a student in a subject."""

    __tablename__ = "grades"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False)
    assessment_type = Column(String(50), nullable=False)
    score = Column(Float, nullable=False)
    max_score = Column(Float, nullable=False)
    assessment_date = Column(Date, nullable=False)
    term = Column(String(20), nullable=False)
    academic_year = Column(String(20), nullable=False)
    notes = Column(Text, nullable=True)
    recorded_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
