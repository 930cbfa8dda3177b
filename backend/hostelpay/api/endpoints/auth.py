"""
Admin authentication endpoints: login, logout, current admin and profile.
"""

from fastapi import APIRouter, Depends, Request

from hostelpay.core.rate_limiter import auth_rate_limit
from hostelpay.modules.auth.dependencies import get_bearer_token, get_current_admin, get_services
from hostelpay.schemas.admin import (
    Admin,
    AdminPublic,
    LoginRequest,
    LoginResponse,
    PasswordChange,
    ProfileUpdate,
)
from hostelpay.services.container import HostelServices

router = APIRouter(prefix="/auth", tags=["Authentication"])


def to_public(admin: Admin) -> AdminPublic:
    return AdminPublic(id=admin.id, username=admin.username, email=admin.email, role=admin.role)


@router.post("/login", response_model=LoginResponse)
@auth_rate_limit()
async def login(
    request: Request,
    credentials: LoginRequest,
    services: HostelServices = Depends(get_services),
):
    """Login admin (rate limited)"""
    token, admin = await services.auth.login(credentials.username, credentials.password)
    return LoginResponse(token=token, admin=to_public(admin))


@router.post("/logout")
async def logout(
    token: str = Depends(get_bearer_token),
    admin: Admin = Depends(get_current_admin),
    services: HostelServices = Depends(get_services),
):
    """Revoke the current session"""
    await services.auth.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=AdminPublic)
async def get_me(admin: Admin = Depends(get_current_admin)):
    """Get current admin"""
    return to_public(admin)


@router.put("/password")
async def change_password(
    body: PasswordChange,
    admin: Admin = Depends(get_current_admin),
    services: HostelServices = Depends(get_services),
):
    await services.auth.change_password(admin, body.current_password, body.new_password)
    return {"message": "Password updated successfully"}


@router.put("/profile", response_model=AdminPublic)
async def update_profile(
    body: ProfileUpdate,
    admin: Admin = Depends(get_current_admin),
    services: HostelServices = Depends(get_services),
):
    updated = await services.auth.update_profile(admin, username=body.username, email=body.email)
    return to_public(updated)
