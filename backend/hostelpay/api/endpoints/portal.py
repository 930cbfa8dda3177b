"""
Student portal endpoints (reached from the hostel QR code, no login).
"""

from fastapi import APIRouter, Depends

from hostelpay.modules.auth.dependencies import get_services
from hostelpay.schemas.student import PaymentClaim, PortalVerifyRequest, Student
from hostelpay.services.container import HostelServices

router = APIRouter(prefix="/portal", tags=["Student Portal"])


@router.post("/verify")
async def verify_student(
    body: PortalVerifyRequest,
    services: HostelServices = Depends(get_services),
):
    """Look a student up by mobile number"""
    student = await services.data.get_student_by_mobile(body.mobile)
    if student is None:
        return {"found": False, "student": None}
    return {"found": True, "student": student.model_dump(mode="json", by_alias=True)}


@router.post("/students/{student_id}/claim-payment", response_model=Student)
async def claim_payment(
    student_id: str,
    body: PaymentClaim,
    services: HostelServices = Depends(get_services),
):
    """Student reports having paid this month's fee"""
    return await services.data.update_fee_status(
        student_id, "paid", body.payment_mode, updated_by="student"
    )
