import logging
from typing import Optional, Sequence

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from school_os.auth.models import User
from school_os.auth.schemas import CurrentUser
from school_os.auth.security import TokenService
from school_os.auth.sessions import SessionSigner
from school_os.core.config import Settings
from school_os.core.exceptions import ServiceError, Unauthenticated
from school_os.db.session import get_db

logger = logging.getLogger("school_os.auth")

BEARER_PREFIX = "Bearer "


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_session_signer(request: Request) -> SessionSigner:
    return request.app.state.sessions


class BearerTokenStrategy:
    """Credential from `Authorization: Bearer <token>`."""

    name = "bearer"

    def extract(self, request: Request) -> Optional[str]:
        auth_header = request.headers.get("authorization")
        if auth_header and auth_header.startswith(BEARER_PREFIX):
            return auth_header[len(BEARER_PREFIX):].strip() or None
        return None


class SessionCookieStrategy:
    """Credential from the signed session cookie, bridged into a short-lived bearer token."""

    name = "session"

    def extract(self, request: Request) -> Optional[str]:
        settings = get_settings(request)
        cookie = request.cookies.get(settings.session_cookie_name)
        if not cookie:
            return None
        session = get_session_signer(request).load(cookie)
        if session is None:
            return None
        return get_token_service(request).issue(
            user_id=session["user_id"],
            username=session.get("username"),
            expires_minutes=settings.session_token_expire_minutes,
        )


# Tried in order; the first strategy yielding a token wins.
AUTH_STRATEGIES: Sequence = (BearerTokenStrategy(), SessionCookieStrategy())


def extract_token(request: Request) -> Optional[str]:
    for strategy in AUTH_STRATEGIES:
        token = strategy.extract(request)
        if token:
            request.state.auth_strategy = strategy.name
            return token
    return None


async def authenticate(request: Request, db: AsyncSession) -> CurrentUser:
    token = extract_token(request)
    if not token:
        raise Unauthenticated("Access denied. No token provided.")

    # Raises InvalidToken / TokenExpired
    claims = get_token_service(request).verify(token)

    user = await db.get(User, claims.user_id)
    if user is None:
        raise Unauthenticated("Invalid token. User not found.")

    current_user = CurrentUser.model_validate(user)
    request.state.user = current_user
    request.state.user_id = current_user.id
    return current_user


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Resolve the authenticated user from the bearer token (or the session cookie); 401 otherwise."""
    return await authenticate(request, db)


async def get_optional_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Optional[CurrentUser]:
    """Like get_current_user, but an anonymous or badly authenticated request proceeds without identity."""
    try:
        return await authenticate(request, db)
    except ServiceError as e:
        logger.debug("Optional auth failed: %s", e.message)
        return None
