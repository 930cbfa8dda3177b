from fastapi import APIRouter

from hostelpay.api.endpoints import (
    admin,
    auth,
    cash_flow,
    expenses,
    health,
    notifications,
    payments,
    portal,
    settings,
    students,
)

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(admin.router)
api_router.include_router(students.router)
api_router.include_router(portal.router)
api_router.include_router(settings.router)
api_router.include_router(expenses.router)
api_router.include_router(cash_flow.router)
api_router.include_router(notifications.router)
api_router.include_router(payments.router)
