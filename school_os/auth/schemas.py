from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from school_os.core.enums import UserRole


class LoginRequest(BaseModel):
    # Username or email
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=1, max_length=255)
    role: UserRole = UserRole.TEACHER


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile. Anything else in the body is ignored."""

    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None


class ChangePasswordRequest(BaseModel):
    # Older clients send camelCase keys
    current_password: str = Field(..., min_length=1, alias="currentPassword")
    new_password: str = Field(..., min_length=6, alias="newPassword")

    class Config:
        populate_by_name = True


class UserInfo(BaseModel):
    """Public user profile; never carries the password hash."""

    id: int
    username: str
    email: str
    role: str
    full_name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LoginData(BaseModel):
    user: UserInfo
    token: str
    token_type: str = "bearer"


class CurrentUser(BaseModel):
    """Identity attached to an authenticated request; used for RBAC checks."""

    id: int
    username: str
    email: str
    role: str
    full_name: str

    class Config:
        from_attributes = True
