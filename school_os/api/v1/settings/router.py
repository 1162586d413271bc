"""School settings API. Branding is public; reads need a session; writes need admin."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from school_os.auth.dependencies import get_current_user
from school_os.auth.rbac import require_admin
from school_os.auth.schemas import CurrentUser
from school_os.core.responses import envelope
from school_os.db.session import get_db

from . import service
from .schemas import SettingsBulkResponse, SettingsBulkUpdate, SettingUpdate

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("/public/branding")
async def public_branding(db: AsyncSession = Depends(get_db)):
    """School name, logo, theme colour and address for the login screen. No auth."""
    return envelope(await service.get_branding(db))


@router.get("")
async def list_settings(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    settings = await service.list_settings(db)
    return envelope(settings, total=len(settings))


@router.post("/bulk", response_model=SettingsBulkResponse)
async def bulk_update_settings(
    payload: SettingsBulkUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
):
    return await service.bulk_update_settings(db, payload.settings)


@router.get("/{key}")
async def get_setting(
    key: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return envelope(await service.get_setting(db, key))


@router.put("/{key}")
async def update_setting(
    key: str,
    payload: SettingUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
):
    setting = await service.update_setting(db, key, payload.value)
    return envelope(setting, "Setting updated successfully")
