"""
Debt computation over one student's stored facts.

Pure functions: the service loads rows into StudentLedger objects and this
module turns each ledger into a DebtStatus for a given evaluation date.
Nothing here touches the database or caches results.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import StrEnum

from src.modules.debts.calendar import DueDate, normalize_due_date
from src.shared.utils.dates import period_of
from src.shared.utils.money import ZERO, round_money


class Severity(StrEnum):
    """Overdue severity for grouping in collections views."""

    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class EnrolledGroup:
    group_id: int
    title: str
    course_price: Decimal


@dataclass(frozen=True)
class PaymentFact:
    id: int
    group_id: int
    date: date
    amount: Decimal
    course_price_at_payment: Decimal
    payment_period: str


@dataclass
class StudentLedger:
    """Everything the engine needs to know about one student."""

    student_id: int
    fullname: str
    phone_number: str
    payment_due: int
    groups: list[EnrolledGroup] = field(default_factory=list)
    payments: list[PaymentFact] = field(default_factory=list)


@dataclass(frozen=True)
class PaymentTotals:
    paid_this_period: Decimal
    # Sum of course_price_at_payment; None when nothing was paid this period
    expected_this_period: Decimal | None
    last_payment_date: date | None
    last_payment_period: str | None


def monthly_obligation(groups: list[EnrolledGroup]) -> Decimal:
    """Sum of course prices over the student's current enrollments."""
    return round_money(sum((g.course_price for g in groups), ZERO))


def aggregate_payments(payments: list[PaymentFact], current_period: str) -> PaymentTotals:
    """
    Totals for the current billing period.

    A payment counts toward the period named by its payment_period, not the
    month it was made in. last_payment_period ignores advance payments for
    later periods, so paying next month early does not mark this month paid.
    """
    this_period = [p for p in payments if p.payment_period == current_period]
    paid = round_money(sum((p.amount for p in this_period), ZERO))
    expected = (
        round_money(sum((p.course_price_at_payment for p in this_period), ZERO))
        if this_period
        else None
    )

    last_date = max((p.date for p in payments), default=None)
    # YYYY-MM strings order chronologically
    last_period = max(
        (p.payment_period for p in payments if p.payment_period <= current_period),
        default=None,
    )
    return PaymentTotals(
        paid_this_period=paid,
        expected_this_period=expected,
        last_payment_date=last_date,
        last_payment_period=last_period,
    )


def severity_for(days_overdue: int, critical_after: int = 5) -> Severity:
    """Up to `critical_after` days (inclusive) is a warning; beyond is critical."""
    if days_overdue > critical_after:
        return Severity.CRITICAL
    return Severity.WARNING


@dataclass(frozen=True)
class DebtStatus:
    """Computed debt position of one student on one date. Never stored."""

    student_id: int
    fullname: str
    phone_number: str
    payment_due: int
    groups: tuple[EnrolledGroup, ...]
    due: DueDate
    current_period: str
    total_course_price: Decimal
    expected_amount: Decimal
    paid_this_period: Decimal
    last_payment_date: date | None
    last_payment_period: str | None

    @property
    def remaining(self) -> Decimal:
        return round_money(self.expected_amount - self.paid_this_period)

    @property
    def is_past_due(self) -> bool:
        return self.due.is_past_due

    @property
    def days_overdue(self) -> int:
        return self.due.days_overdue

    @property
    def days_until_due(self) -> int:
        return self.due.days_until_due

    @property
    def has_not_paid_this_period(self) -> bool:
        return self.last_payment_period is None or self.last_payment_period < self.current_period

    @property
    def is_overdue(self) -> bool:
        if not self.is_past_due:
            return False
        # Never paid this period, or paid only part of it
        return self.has_not_paid_this_period or self.remaining > 0

    def is_upcoming(self, days_ahead: int) -> bool:
        return (
            self.has_not_paid_this_period
            and not self.is_past_due
            and self.days_until_due <= days_ahead
        )

    def severity(self, critical_after: int = 5) -> Severity | None:
        if not self.is_overdue:
            return None
        return severity_for(self.days_overdue, critical_after)


def evaluate(ledger: StudentLedger, today: date) -> DebtStatus:
    """Compute a student's debt position as of `today`."""
    current_period = period_of(today)
    due = normalize_due_date(ledger.payment_due, today)
    totals = aggregate_payments(ledger.payments, current_period)
    live_total = monthly_obligation(ledger.groups)

    # What was billed at payment time wins over today's prices
    expected = (
        totals.expected_this_period
        if totals.expected_this_period is not None
        else live_total
    )

    return DebtStatus(
        student_id=ledger.student_id,
        fullname=ledger.fullname,
        phone_number=ledger.phone_number,
        payment_due=ledger.payment_due,
        groups=tuple(ledger.groups),
        due=due,
        current_period=current_period,
        total_course_price=live_total,
        expected_amount=expected,
        paid_this_period=totals.paid_this_period,
        last_payment_date=totals.last_payment_date,
        last_payment_period=totals.last_payment_period,
    )


def overdue_sort_key(status: DebtStatus) -> tuple:
    """Worst first: most days overdue, then largest balance, then name."""
    return (-status.days_overdue, -status.remaining, status.fullname)
