from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from hostelpay.schemas.base import CamelModel

AdminRole = Literal["admin", "super_admin"]


class Admin(CamelModel):
    id: str
    username: str
    password_hash: str
    email: Optional[str] = None
    role: AdminRole = "admin"
    is_active: bool = True
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class AdminSession(CamelModel):
    id: str
    admin_id: str
    token: str
    expires_at: datetime
    created_at: datetime


class AdminPublic(CamelModel):
    """Admin as returned to clients (no password hash)"""
    id: str
    username: str
    email: Optional[str] = None
    role: AdminRole = "admin"


class LoginRequest(CamelModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(CamelModel):
    token: str
    admin: AdminPublic


class PasswordChange(CamelModel):
    current_password: str
    new_password: str = Field(..., min_length=6, max_length=128)


class ProfileUpdate(CamelModel):
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[str] = Field(None, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
