"""
Seed the default admin, subjects, sample classes and school settings.

Runs on every app startup and can be run by hand:
  python -m school_os.db.seed

Idempotent: rows are matched by their natural key (username, subject code,
class name, setting key) and only missing ones are inserted. An existing
admin's password is never reset.
"""
import asyncio
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from school_os.auth.models import User
from school_os.auth.security import hash_password
from school_os.core.config import Settings, settings as default_settings
from school_os.core.enums import UserRole
from school_os.core.logging import configure_logging
from school_os.core.models import SchoolClass, SchoolSetting, Subject
from school_os.db.session import Database

logger = logging.getLogger("school_os.db")

DEFAULT_SUBJECTS = (
    ("Mathematics", "MATH"),
    ("English Language", "ENG"),
    ("Science", "SCI"),
    ("Social Studies", "SS"),
    ("Physical Education", "PE"),
)

SAMPLE_ACADEMIC_YEAR = "2024-2025"
SAMPLE_CLASSES = (
    ("JSS1A", "JSS1"),
    ("JSS1B", "JSS1"),
    ("JSS2A", "JSS2"),
    ("JSS2B", "JSS2"),
    ("JSS3A", "JSS3"),
    ("JSS3B", "JSS3"),
)

# (key, value, type, description)
DEFAULT_SETTINGS = (
    ("school_name", "Sample Elementary School", "text", "Name of the school"),
    ("school_logo", "", "file", "School logo image file path"),
    ("school_address", "123 Education Street, Learning City", "text", "School address"),
    ("school_phone", "(555) 123-4567", "text", "School phone number"),
    ("school_email", "info@sampleschool.edu", "email", "School email address"),
    ("academic_year", SAMPLE_ACADEMIC_YEAR, "text", "Current academic year"),
    ("theme_color", "#6366f1", "color", "Primary theme color"),
)


async def seed_admin(db: AsyncSession, settings: Settings) -> Optional[User]:
    result = await db.execute(select(User).where(User.username == settings.default_admin_username))
    if result.scalar_one_or_none() is not None:
        return None

    admin = User(
        username=settings.default_admin_username,
        email=settings.default_admin_email,
        password_hash=hash_password(settings.default_admin_password, rounds=settings.bcrypt_rounds),
        full_name=settings.default_admin_full_name,
        role=UserRole.ADMIN.value,
    )
    db.add(admin)
    await db.flush()
    logger.warning(
        "Created default admin account '%s'. Change its password after first login.",
        admin.username,
    )
    return admin


async def seed_subjects(db: AsyncSession) -> int:
    result = await db.execute(select(Subject.code))
    existing = set(result.scalars().all())
    created = 0
    for name, code in DEFAULT_SUBJECTS:
        if code not in existing:
            db.add(Subject(name=name, code=code))
            created += 1
    return created


async def seed_sample_classes(db: AsyncSession) -> int:
    result = await db.execute(select(SchoolClass.name))
    existing = set(result.scalars().all())
    created = 0
    for name, grade_level in SAMPLE_CLASSES:
        if name not in existing:
            db.add(SchoolClass(name=name, grade_level=grade_level, academic_year=SAMPLE_ACADEMIC_YEAR))
            created += 1
    return created


async def seed_settings(db: AsyncSession) -> int:
    result = await db.execute(select(SchoolSetting.setting_key))
    existing = set(result.scalars().all())
    created = 0
    for key, value, setting_type, description in DEFAULT_SETTINGS:
        if key not in existing:
            db.add(
                SchoolSetting(
                    setting_key=key,
                    setting_value=value,
                    setting_type=setting_type,
                    description=description,
                )
            )
            created += 1
    return created


async def seed_defaults(database: Database, settings: Settings) -> None:
    async with database.sessionmaker() as db:
        try:
            await seed_admin(db, settings)
            subjects = await seed_subjects(db)
            classes = await seed_sample_classes(db) if settings.seed_sample_data else 0
            school_settings = await seed_settings(db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
    if subjects or classes or school_settings:
        logger.info(
            "Seeded %s subjects, %s classes, %s settings",
            subjects,
            classes,
            school_settings,
        )


async def main(settings: Settings = default_settings) -> None:
    configure_logging(settings.log_level)
    database = Database(settings.database_url)
    try:
        await database.create_all()
        await seed_defaults(database, settings)
    finally:
        await database.dispose()
    logger.info("Seed done.")


if __name__ == "__main__":
    asyncio.run(main())
