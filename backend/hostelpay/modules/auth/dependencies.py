from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials

from hostelpay.core.exceptions import AuthenticationError
from hostelpay.core.logging_config import set_admin_id
from hostelpay.core.security import security
from hostelpay.schemas.admin import Admin
from hostelpay.services.container import HostelServices


def get_services(request: Request) -> HostelServices:
    """Service container attached to the application at startup"""
    return request.app.state.services


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token required")
    return credentials.credentials


async def get_current_admin(
    token: str = Depends(get_bearer_token),
    services: HostelServices = Depends(get_services),
) -> Admin:
    """Get current authenticated admin"""
    admin = await services.auth.authenticate(token)

    # Set admin context for downstream logging
    set_admin_id(admin.id)
    return admin
