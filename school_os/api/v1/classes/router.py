"""Classes API router (read-only)."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from school_os.auth.dependencies import get_current_user
from school_os.auth.schemas import CurrentUser
from school_os.core.responses import envelope
from school_os.db.session import get_db

from . import service

router = APIRouter(prefix="/api/classes", tags=["classes"])


@router.get("")
async def list_classes(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Active classes with active student counts."""
    classes = await service.list_classes(db)
    return envelope(classes, total=len(classes))


@router.get("/{class_id}")
async def get_class(
    class_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return envelope(await service.get_class(db, class_id))
