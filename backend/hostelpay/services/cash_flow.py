"""
Monthly cash flow: fee income of paid students against the month's expenses.
"""

from typing import List

from hostelpay.schemas.expense import CashFlowSummary, CategoryBreakdown, Expense, EXPENSE_CATEGORIES
from hostelpay.schemas.settings import HostelSettings
from hostelpay.schemas.student import Student


def build_summary(
    students: List[Student],
    expenses: List[Expense],
    settings: HostelSettings,
    year: int,
    month: int,
) -> CashFlowSummary:
    paid = sum(1 for s in students if s.fee_status == "paid")
    total = len(students)
    income = paid * settings.monthly_fee

    month_expenses = [e for e in expenses if e.date.year == year and e.date.month == month]
    totals = {category: 0.0 for category in EXPENSE_CATEGORIES}
    for expense in month_expenses:
        totals[expense.category] += expense.amount
    spent = sum(totals.values())

    breakdown = [
        CategoryBreakdown(
            category=category,
            amount=amount,
            percentage=round(amount / spent * 100, 2) if spent else 0.0,
        )
        for category, amount in sorted(totals.items(), key=lambda item: item[1], reverse=True)
        if amount > 0
    ]

    net = income - spent
    return CashFlowSummary(
        year=year,
        month=month,
        monthly_fee=settings.monthly_fee,
        total_income=income,
        total_expenses=spent,
        net_cash_flow=net,
        is_profit=net >= 0,
        paid_students=paid,
        pending_students=total - paid,
        total_students=total,
        collection_rate=round(paid / total * 100, 2) if total else 0.0,
        category_breakdown=breakdown,
        totals_by_category=totals,
    )
