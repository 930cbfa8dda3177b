"""
Simulated UPI payment endpoints used by the student portal.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from hostelpay.modules.auth.dependencies import get_current_admin, get_services
from hostelpay.schemas.admin import Admin
from hostelpay.schemas.payment import PaymentInitiate, PaymentTracking
from hostelpay.services.container import HostelServices

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("", response_model=PaymentTracking, status_code=status.HTTP_201_CREATED)
async def initiate_payment(
    body: PaymentInitiate,
    services: HostelServices = Depends(get_services),
):
    return await services.payments.initiate(body.student_id, body.amount, body.payment_method)


@router.get("", response_model=List[PaymentTracking])
async def payment_history(
    student_id: Optional[str] = Query(None, alias="studentId"),
    admin: Admin = Depends(get_current_admin),
    services: HostelServices = Depends(get_services),
):
    """Payment attempts, newest first"""
    return services.payments.history(student_id)


@router.get("/{payment_id}", response_model=PaymentTracking)
async def get_payment(
    payment_id: str,
    services: HostelServices = Depends(get_services),
):
    """Payment status, polled by the portal while verification runs"""
    return services.payments.get(payment_id)


@router.post("/{payment_id}/verify", response_model=PaymentTracking, status_code=status.HTTP_202_ACCEPTED)
async def verify_payment(
    payment_id: str,
    services: HostelServices = Depends(get_services),
):
    """Start the simulated UPI verification"""
    services.payments.simulate_upi_verification(payment_id)
    return services.payments.get(payment_id)
