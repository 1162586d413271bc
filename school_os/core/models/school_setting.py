from sqlalchemy import Column, DateTime, Integer, String, Text

from school_os.db.session import Base, utcnow


class SchoolSetting(Base):
    """Key/value school customization (name, logo path, theme colour, ...)."""

    __tablename__ = "school_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    setting_key = Column(String(100), nullable=False, unique=True)
    setting_value = Column(Text, nullable=True)
    # text | file | email | color
    setting_type = Column(String(20), nullable=False, default="text")
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
