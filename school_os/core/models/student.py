from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text

from school_os.db.session import Base, utcnow


class Student(Base):
    """
    Student record. Never hard-deleted: removal sets status to 'inactive'.
    student_number is the school-issued identifier (e.g. JSS1A001); id is the internal key.
    """

    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_number = Column(String(50), nullable=False, unique=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=True)
    parent_name = Column(String(255), nullable=True)
    parent_phone = Column(String(50), nullable=True)
    parent_email = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    enrollment_date = Column(Date, nullable=True)
    # active | inactive | graduated | transferred
    status = Column(String(20), nullable=False, default="active")
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
