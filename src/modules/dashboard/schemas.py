"""Schemas for dashboard API (main page cards, charts and alerts)."""

from decimal import Decimal

from src.modules.debts.schemas import OverdueSummary
from src.shared.schemas.base import BaseSchema


class DashboardStats(BaseSchema):
    """Summary data for main page cards."""

    # Totals
    total_students: int = 0
    total_groups: int = 0
    total_payments: int = 0
    total_payment_amount: Decimal = Decimal("0.00")

    # Current calendar month
    students_this_month: int = 0
    groups_this_month: int = 0
    payments_this_month: int = 0
    payment_amount_this_month: Decimal = Decimal("0.00")

    # Alerts
    overdue_payments_count: int = 0
    overdue: OverdueSummary = OverdueSummary()


class MonthlyCount(BaseSchema):
    """New records created in one month."""

    period: str
    count: int = 0


class MonthlyPayments(BaseSchema):
    period: str
    payments_count: int = 0
    total_amount: Decimal = Decimal("0.00")


class MonthlyRevenue(BaseSchema):
    period: str
    revenue: Decimal = Decimal("0.00")
    payments_count: int = 0


class TopPayingStudent(BaseSchema):
    id: int
    fullname: str
    total_paid: Decimal
    payments_count: int
    avg_payment: Decimal


class GroupCapacity(BaseSchema):
    """How full a group is against the configured seat count."""

    group_id: int
    group_title: str
    current_students: int
    capacity: int
    fill_percentage: float
