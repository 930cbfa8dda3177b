from fastapi import APIRouter, Depends

from hostelpay.modules.auth.dependencies import get_current_admin, get_services
from hostelpay.schemas.admin import Admin
from hostelpay.schemas.settings import HostelSettings, SettingsUpdate
from hostelpay.services.container import HostelServices

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("", response_model=HostelSettings)
async def get_settings(services: HostelServices = Depends(get_services)):
    """Hostel settings (public: the portal needs the UPI id and fee)"""
    return await services.data.get_settings()


@router.put("", response_model=HostelSettings)
async def update_settings(
    body: SettingsUpdate,
    admin: Admin = Depends(get_current_admin),
    services: HostelServices = Depends(get_services),
):
    changes = {k: v for k, v in body.changes().items() if v is not None}
    return await services.data.update_settings(changes)
