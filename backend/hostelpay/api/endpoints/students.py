"""
Student roster endpoints (admin dashboard).
"""

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from hostelpay.core.exceptions import StudentNotFoundError
from hostelpay.modules.auth.dependencies import get_current_admin, get_services
from hostelpay.schemas.admin import Admin
from hostelpay.schemas.student import FeeStatusUpdate, Student, StudentCreate, StudentUpdate
from hostelpay.services.container import HostelServices

router = APIRouter(prefix="/students", tags=["Students"])


@router.get("", response_model=List[Student])
async def list_students(
    fee_status: Optional[Literal["pending", "paid"]] = Query(None, alias="status"),
    admin: Admin = Depends(get_current_admin),
    services: HostelServices = Depends(get_services),
):
    return await services.data.filter_students(fee_status)


@router.post("", response_model=Student, status_code=status.HTTP_201_CREATED)
async def create_student(
    body: StudentCreate,
    admin: Admin = Depends(get_current_admin),
    services: HostelServices = Depends(get_services),
):
    return await services.data.add_student(body.to_document())


@router.get("/{student_id}", response_model=Student)
async def get_student(
    student_id: str,
    admin: Admin = Depends(get_current_admin),
    services: HostelServices = Depends(get_services),
):
    return await services.data.get_student(student_id)


@router.patch("/{student_id}", response_model=Student)
async def update_student(
    student_id: str,
    body: StudentUpdate,
    admin: Admin = Depends(get_current_admin),
    services: HostelServices = Depends(get_services),
):
    # Only fields the client sent; nulls are not allowed to wipe required fields
    changes = {k: v for k, v in body.changes().items() if v is not None}
    return await services.data.update_student(student_id, changes)


@router.post("/{student_id}/fee-status", response_model=Student)
async def update_fee_status(
    student_id: str,
    body: FeeStatusUpdate,
    admin: Admin = Depends(get_current_admin),
    services: HostelServices = Depends(get_services),
):
    """Admin marks a student paid (with mode) or pending"""
    return await services.data.update_fee_status(
        student_id, body.fee_status, body.payment_mode, updated_by="admin"
    )


@router.delete("/{student_id}")
async def delete_student(
    student_id: str,
    admin: Admin = Depends(get_current_admin),
    services: HostelServices = Depends(get_services),
):
    if not await services.data.delete_student(student_id):
        raise StudentNotFoundError(student_id)
    return {"message": "Student deleted successfully"}
