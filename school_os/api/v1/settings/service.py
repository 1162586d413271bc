import logging
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from school_os.core.exceptions import NotFound, ValidationError
from school_os.core.models import SchoolSetting
from school_os.db.session import utcnow

from .schemas import (
    BRANDING_KEYS,
    SettingBulkResult,
    SettingResponse,
    SettingsBulkResponse,
    SettingsBulkSummary,
    SettingValue,
)

logger = logging.getLogger("school_os.settings")


def _to_response(s: SchoolSetting) -> SettingResponse:
    return SettingResponse(
        key=s.setting_key,
        value=s.setting_value,
        type=s.setting_type,
        description=s.description,
        updated_at=s.updated_at,
    )


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


async def get_branding(db: AsyncSession) -> Dict[str, Optional[str]]:
    result = await db.execute(
        select(SchoolSetting.setting_key, SchoolSetting.setting_value).where(
            SchoolSetting.setting_key.in_(BRANDING_KEYS)
        )
    )
    return {key: value for key, value in result.all()}


async def list_settings(db: AsyncSession) -> Dict[str, SettingValue]:
    result = await db.execute(select(SchoolSetting).order_by(SchoolSetting.setting_key))
    return {
        s.setting_key: SettingValue(
            value=s.setting_value,
            type=s.setting_type,
            description=s.description,
            updated_at=s.updated_at,
        )
        for s in result.scalars().all()
    }


async def _get_row(db: AsyncSession, key: str) -> Optional[SchoolSetting]:
    result = await db.execute(select(SchoolSetting).where(SchoolSetting.setting_key == key))
    return result.scalar_one_or_none()


async def get_setting(db: AsyncSession, key: str) -> SettingResponse:
    setting = await _get_row(db, key)
    if setting is None:
        raise NotFound("Setting not found")
    return _to_response(setting)


async def update_setting(db: AsyncSession, key: str, value: Any) -> SettingResponse:
    """Update an existing setting. Unknown keys are not created."""
    if value is None:
        raise ValidationError("Setting value is required")
    setting = await _get_row(db, key)
    if setting is None:
        raise NotFound("Setting not found")
    setting.setting_value = _as_text(value)
    setting.updated_at = utcnow()
    await db.commit()
    await db.refresh(setting)
    logger.info("Setting %s updated", key)
    return _to_response(setting)


async def bulk_update_settings(db: AsyncSession, values: Dict[str, Any]) -> SettingsBulkResponse:
    if not values:
        raise ValidationError("Settings object is required")

    results = []
    for key, value in values.items():
        setting = await _get_row(db, key)
        if setting is None:
            results.append(SettingBulkResult(key=key, success=False, error="Setting not found"))
            continue
        setting.setting_value = _as_text(value)
        setting.updated_at = utcnow()
        await db.commit()
        results.append(SettingBulkResult(key=key, success=True, action="updated"))

    successful = sum(1 for r in results if r.success)
    failed = len(results) - successful
    logger.info("Bulk settings update: %s successful, %s failed", successful, failed)
    return SettingsBulkResponse(
        message=f"Bulk update completed: {successful} successful, {failed} failed",
        results=results,
        summary=SettingsBulkSummary(total=len(results), successful=successful, failed=failed),
    )
