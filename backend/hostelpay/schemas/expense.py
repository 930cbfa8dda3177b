import datetime as dt
from typing import Dict, List, Literal, Optional

from pydantic import Field

from hostelpay.schemas.base import CamelModel

ExpenseCategory = Literal["maintenance", "salary", "rent", "utility", "grocery", "wifi", "other"]
ExpensePaymentMethod = Literal["cash", "upi", "bank_transfer", "cheque"]

EXPENSE_CATEGORIES = ("maintenance", "salary", "rent", "utility", "grocery", "wifi", "other")


class Expense(CamelModel):
    id: str
    category: ExpenseCategory
    description: str
    amount: float = Field(..., ge=0)
    date: dt.date
    payment_method: ExpensePaymentMethod
    recipient_name: str
    notes: Optional[str] = None
    created_by: str
    created_at: dt.datetime
    updated_at: Optional[dt.datetime] = None


class ExpenseCreate(CamelModel):
    category: ExpenseCategory
    description: str = Field(..., min_length=1, max_length=500)
    amount: float = Field(..., ge=0)
    date: dt.date
    payment_method: ExpensePaymentMethod
    recipient_name: str = Field(..., min_length=1, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)


class ExpenseUpdate(CamelModel):
    category: Optional[ExpenseCategory] = None
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    amount: Optional[float] = Field(None, ge=0)
    date: Optional[dt.date] = None
    payment_method: Optional[ExpensePaymentMethod] = None
    recipient_name: Optional[str] = Field(None, min_length=1, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)


class CategoryBreakdown(CamelModel):
    category: ExpenseCategory
    amount: float
    percentage: float


class CashFlowSummary(CamelModel):
    year: int
    month: int
    monthly_fee: float
    total_income: float
    total_expenses: float
    net_cash_flow: float
    is_profit: bool
    paid_students: int
    pending_students: int
    total_students: int
    collection_rate: float
    category_breakdown: List[CategoryBreakdown]
    totals_by_category: Dict[str, float]
