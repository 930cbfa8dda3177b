"""
Admin maintenance endpoints: monthly fee reset.
"""

from fastapi import APIRouter, Depends

from hostelpay.modules.auth.dependencies import get_current_admin, get_services
from hostelpay.schemas.admin import Admin
from hostelpay.schemas.reset import ResetResult, ResetStatus
from hostelpay.services.container import HostelServices

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/monthly-reset", response_model=ResetResult)
async def trigger_monthly_reset(
    admin: Admin = Depends(get_current_admin),
    services: HostelServices = Depends(get_services),
):
    """Run the monthly reset now. A second call in the same month does nothing."""
    return await services.scheduler.check_and_reset()


@router.get("/check-monthly-reset", response_model=ResetStatus)
async def check_monthly_reset(
    admin: Admin = Depends(get_current_admin),
    services: HostelServices = Depends(get_services),
):
    return await services.scheduler.status()
