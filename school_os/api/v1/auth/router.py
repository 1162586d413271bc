from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi import status as http_status
from sqlalchemy.ext.asyncio import AsyncSession

from school_os.auth import services
from school_os.auth.dependencies import (
    get_current_user,
    get_optional_user,
    get_session_signer,
    get_settings,
    get_token_service,
)
from school_os.auth.rbac import require_admin
from school_os.auth.schemas import (
    ChangePasswordRequest,
    CurrentUser,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
)
from school_os.auth.security import TokenService
from school_os.auth.sessions import SessionSigner
from school_os.core.config import Settings
from school_os.core.responses import envelope
from school_os.db.session import get_db

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", status_code=http_status.HTTP_200_OK)
async def login(
    payload: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
    sessions: SessionSigner = Depends(get_session_signer),
    settings: Settings = Depends(get_settings),
):
    """Authenticate by username (or email) and password; returns a bearer token and sets the session cookie."""
    data = await services.login_user(db, tokens, payload)
    response.set_cookie(
        settings.session_cookie_name,
        sessions.dump(user_id=data.user.id, username=data.user.username),
        max_age=sessions.max_age_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )
    return envelope(data, "Login successful")


@router.post("/logout")
async def logout(response: Response, settings: Settings = Depends(get_settings)):
    response.delete_cookie(settings.session_cookie_name)
    return envelope(message="Logout successful")


@router.get("/profile")
async def get_profile(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return envelope(await services.get_user(db, current_user.id))


@router.put("/profile")
async def update_profile(
    payload: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    user = await services.update_profile(db, current_user.id, payload)
    return envelope(user, "Profile updated successfully")


@router.post("/change-password")
async def change_password(
    payload: ChangePasswordRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
):
    await services.change_password(db, current_user.id, payload, settings.bcrypt_rounds)
    return envelope(message="Password changed successfully")


@router.post("/register", status_code=http_status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
    settings: Settings = Depends(get_settings),
):
    """Create a staff account. Admin only."""
    user = await services.register_user(db, payload, settings.bcrypt_rounds)
    return envelope(user, "User created successfully")


@router.get("/verify")
async def verify(current_user: CurrentUser = Depends(get_current_user)):
    return envelope(
        {"user_id": current_user.id, "username": current_user.username, "role": current_user.role},
        "Token is valid",
    )


@router.get("/session")
async def session_status(
    request: Request,
    current_user: Optional[CurrentUser] = Depends(get_optional_user),
):
    """Report whether the caller is signed in; never rejects."""
    return envelope(
        {
            "authenticated": current_user is not None,
            "user": current_user,
            "strategy": getattr(request.state, "auth_strategy", None) if current_user else None,
        }
    )
