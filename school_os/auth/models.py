from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, Text

from school_os.db.session import Base, utcnow


class User(Base):
    """Staff account (admin or teacher) used for login and for attributing recorded data."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('admin', 'teacher')", name="ck_users_role"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(Text, nullable=False)
    # admin | teacher
    role = Column(String(20), nullable=False, default="teacher")
    full_name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
