import logging
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from school_os.auth.models import User
from school_os.auth.schemas import (
    ChangePasswordRequest,
    LoginData,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    UserInfo,
)
from school_os.auth.security import TokenService, hash_password, verify_password
from school_os.core.exceptions import DuplicateRecord, NotFound, Unauthenticated, ValidationError
from school_os.db.session import utcnow

logger = logging.getLogger("school_os.auth")


async def authenticate_user(db: AsyncSession, payload: LoginRequest) -> User:
    # 1. Find user by exact username, then by email (case-insensitive)
    identifier = payload.username.strip()
    user_result = await db.execute(select(User).where(User.username == identifier))
    user: Optional[User] = user_result.scalar_one_or_none()
    if not user:
        user_result = await db.execute(select(User).where(func.lower(User.email) == identifier.lower()))
        user = user_result.scalars().first()
    if not user:
        raise Unauthenticated("Invalid username or password")

    # 2. Verify password hash
    if not verify_password(payload.password, user.password_hash):
        logger.info("Failed login for user id=%s", user.id)
        raise Unauthenticated("Invalid username or password")
    return user


async def login_user(db: AsyncSession, tokens: TokenService, payload: LoginRequest) -> LoginData:
    user = await authenticate_user(db, payload)
    token = tokens.issue(user_id=user.id, username=user.username, role=user.role)
    logger.info("User %s logged in", user.username)
    return LoginData(user=UserInfo.model_validate(user), token=token)


async def register_user(db: AsyncSession, payload: RegisterRequest, bcrypt_rounds: int = 12) -> UserInfo:
    # A username may not equal another account's email
    existing = await db.execute(
        select(User.id).where(
            or_(
                User.username == payload.username,
                func.lower(User.email) == payload.email.lower(),
                func.lower(User.email) == payload.username.lower(),
            )
        )
    )
    if existing.first() is not None:
        raise DuplicateRecord("Username or email already exists")

    user = User(
        username=payload.username,
        email=payload.email,
        password_hash=hash_password(payload.password, rounds=bcrypt_rounds),
        full_name=payload.full_name,
        role=payload.role.value,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise DuplicateRecord("Username or email already exists") from e
    await db.refresh(user)
    logger.info("Created %s account %s", user.role, user.username)
    return UserInfo.model_validate(user)


async def get_user(db: AsyncSession, user_id: int) -> UserInfo:
    user = await db.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return UserInfo.model_validate(user)


async def update_profile(db: AsyncSession, user_id: int, payload: ProfileUpdate) -> UserInfo:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise ValidationError("At least one field (full_name or email) is required")

    user = await db.get(User, user_id)
    if not user:
        raise NotFound("User not found")

    if "email" in changes:
        taken = await db.execute(
            select(User.id).where(func.lower(User.email) == changes["email"].lower(), User.id != user_id)
        )
        if taken.first() is not None:
            raise DuplicateRecord("Email address is already in use")

    for field, value in changes.items():
        setattr(user, field, value)
    user.updated_at = utcnow()
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise DuplicateRecord("Email address is already in use") from e
    await db.refresh(user)
    return UserInfo.model_validate(user)


async def change_password(
    db: AsyncSession,
    user_id: int,
    payload: ChangePasswordRequest,
    bcrypt_rounds: int = 12,
) -> None:
    user = await db.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    if not verify_password(payload.current_password, user.password_hash):
        raise Unauthenticated("Current password is incorrect")

    user.password_hash = hash_password(payload.new_password, rounds=bcrypt_rounds)
    user.updated_at = utcnow()
    await db.commit()
    logger.info("Password changed for user id=%s", user_id)
