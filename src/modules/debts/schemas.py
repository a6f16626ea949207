"""Schemas for debt/overdue reports."""

from datetime import date
from decimal import Decimal

from src.modules.debts.engine import Severity
from src.shared.schemas.base import BaseSchema


class GroupRef(BaseSchema):
    group_id: int
    group_title: str
    course_price: Decimal


class OverdueStudentRow(BaseSchema):
    """Student past their due day with nothing or not enough paid this period."""

    id: int
    fullname: str
    phone_number: str
    payment_due: int
    days_overdue: int
    remaining_amount: Decimal
    last_payment_date: date | None = None
    severity: Severity


class UpcomingPaymentRow(BaseSchema):
    """Student whose due day is within the lookahead window, unpaid this period."""

    id: int
    fullname: str
    phone_number: str
    payment_due: int
    days_until_due: int


class StudentMonthlyDebtRow(BaseSchema):
    student_id: int
    student_fullname: str
    phone_number: str
    payment_due: int
    total_course_price: Decimal
    paid_this_month: Decimal
    expected_amount_this_month: Decimal
    # Remaining to pay this period (negative when overpaid)
    total_monthly_amount: Decimal
    groups_count: int
    groups: list[GroupRef] = []
    last_payment_date: date | None = None
    days_overdue: int
    is_overdue: bool


class GroupOverdueRow(BaseSchema):
    group_id: int
    group_title: str
    overdue_count: int
    total_students: int
    overdue_percentage: float


class CriticalOverdueRow(BaseSchema):
    student_id: int
    fullname: str
    phone_number: str
    days_overdue: int
    overdue_amount: Decimal
    group_titles: list[str] = []


class OverdueSummary(BaseSchema):
    """Counts over the overdue set; avg_days_overdue is 0 when nobody is overdue."""

    total: int = 0
    warning: int = 0
    critical: int = 0
    avg_days_overdue: float = 0.0
    total_remaining: Decimal = Decimal("0.00")

