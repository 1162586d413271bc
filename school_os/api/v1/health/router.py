from fastapi import APIRouter, Depends

from school_os.auth.dependencies import get_settings
from school_os.core.config import Settings
from school_os.db.session import utcnow

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
async def health(settings: Settings = Depends(get_settings)):
    """Liveness probe. No auth, no database access."""
    return {"status": "OK", "timestamp": utcnow().isoformat(), "version": settings.app_version}
