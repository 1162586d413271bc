from typing import Iterable, Optional

from fastapi import Depends

from school_os.auth.dependencies import get_current_user
from school_os.auth.schemas import CurrentUser
from school_os.core.enums import UserRole
from school_os.core.exceptions import Forbidden, Unauthenticated


def ensure_role(user: Optional[CurrentUser], allowed: Iterable[str], message: str) -> CurrentUser:
    """Pure role check on an already-loaded identity. No identity is 401, wrong role is 403."""
    if user is None:
        raise Unauthenticated("Authentication required.")
    if user.role not in set(allowed):
        raise Forbidden(message)
    return user


async def require_admin(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Require the admin role (user management, settings changes, student removal)."""
    return ensure_role(current_user, (UserRole.ADMIN.value,), "Admin access required.")


async def require_teacher_or_admin(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    return ensure_role(
        current_user,
        (UserRole.TEACHER.value, UserRole.ADMIN.value),
        "Teacher access required.",
    )
