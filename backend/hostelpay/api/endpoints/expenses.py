"""
Expense bookkeeping endpoints.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, status

from hostelpay.core.exceptions import ExpenseNotFoundError, ValidationError
from hostelpay.modules.auth.dependencies import get_current_admin, get_services
from hostelpay.schemas.admin import Admin
from hostelpay.schemas.expense import Expense, ExpenseCategory, ExpenseCreate, ExpenseUpdate
from hostelpay.services.container import HostelServices

router = APIRouter(prefix="/expenses", tags=["Expenses"])


@router.get("", response_model=List[Expense])
async def list_expenses(
    category: Optional[ExpenseCategory] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    admin: Admin = Depends(get_current_admin),
    services: HostelServices = Depends(get_services),
):
    """Expenses, newest date first"""
    if start and end and start > end:
        raise ValidationError("start must not be after end", field="start")
    expenses = await services.data.expenses_by_date_range(start, end)
    if category:
        expenses = [e for e in expenses if e.category == category]
    return expenses


@router.post("", response_model=Expense, status_code=status.HTTP_201_CREATED)
async def create_expense(
    body: ExpenseCreate,
    admin: Admin = Depends(get_current_admin),
    services: HostelServices = Depends(get_services),
):
    return await services.data.add_expense(body.to_document(), created_by=admin.username)


@router.delete("")
async def clear_expenses(
    admin: Admin = Depends(get_current_admin),
    services: HostelServices = Depends(get_services),
):
    """Delete every expense"""
    count = await services.data.clear_all_expenses()
    return {"message": "All expenses cleared", "deleted": count}


@router.patch("/{expense_id}", response_model=Expense)
async def update_expense(
    expense_id: str,
    body: ExpenseUpdate,
    admin: Admin = Depends(get_current_admin),
    services: HostelServices = Depends(get_services),
):
    # notes may be cleared with null; other fields are required on the record
    changes = {k: v for k, v in body.changes().items() if v is not None or k == "notes"}
    return await services.data.update_expense(expense_id, changes)


@router.delete("/{expense_id}")
async def delete_expense(
    expense_id: str,
    admin: Admin = Depends(get_current_admin),
    services: HostelServices = Depends(get_services),
):
    if not await services.data.delete_expense(expense_id):
        raise ExpenseNotFoundError(expense_id)
    return {"message": "Expense deleted successfully"}
