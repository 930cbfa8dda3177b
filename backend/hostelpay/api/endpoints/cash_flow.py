from typing import Optional

from fastapi import APIRouter, Depends, Query

from hostelpay.core.clock import utcnow
from hostelpay.modules.auth.dependencies import get_current_admin, get_services
from hostelpay.schemas.admin import Admin
from hostelpay.schemas.expense import CashFlowSummary
from hostelpay.services import cash_flow
from hostelpay.services.container import HostelServices

router = APIRouter(prefix="/cash-flow", tags=["Cash Flow"])


@router.get("", response_model=CashFlowSummary)
async def get_cash_flow(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    admin: Admin = Depends(get_current_admin),
    services: HostelServices = Depends(get_services),
):
    """Income against expenses for one month (defaults to the current month)"""
    now = utcnow()
    return cash_flow.build_summary(
        await services.data.list_students(),
        await services.data.list_expenses(),
        await services.data.get_settings(),
        year or now.year,
        month or now.month,
    )
