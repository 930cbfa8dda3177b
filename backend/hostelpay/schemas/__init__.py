from hostelpay.schemas.admin import (
    Admin,
    AdminPublic,
    AdminSession,
    LoginRequest,
    LoginResponse,
    PasswordChange,
    ProfileUpdate,
)
from hostelpay.schemas.expense import (
    EXPENSE_CATEGORIES,
    CashFlowSummary,
    CategoryBreakdown,
    Expense,
    ExpenseCreate,
    ExpenseUpdate,
)
from hostelpay.schemas.notification import Notification
from hostelpay.schemas.payment import PaymentInitiate, PaymentTracking
from hostelpay.schemas.reset import ResetResult, ResetStatus
from hostelpay.schemas.settings import HostelSettings, SettingsUpdate
from hostelpay.schemas.student import (
    FeeStatusUpdate,
    PaymentClaim,
    PortalVerifyRequest,
    Student,
    StudentCreate,
    StudentUpdate,
)

__all__ = [
    "Admin",
    "AdminPublic",
    "AdminSession",
    "LoginRequest",
    "LoginResponse",
    "PasswordChange",
    "ProfileUpdate",
    "EXPENSE_CATEGORIES",
    "CashFlowSummary",
    "CategoryBreakdown",
    "Expense",
    "ExpenseCreate",
    "ExpenseUpdate",
    "Notification",
    "PaymentInitiate",
    "PaymentTracking",
    "ResetResult",
    "ResetStatus",
    "HostelSettings",
    "SettingsUpdate",
    "FeeStatusUpdate",
    "PaymentClaim",
    "PortalVerifyRequest",
    "Student",
    "StudentCreate",
    "StudentUpdate",
]
