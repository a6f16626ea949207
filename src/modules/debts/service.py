"""Service for debt/overdue reports (debtors page, dashboard alerts)."""

import logging
from collections import defaultdict
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import String, func, select, type_coerce
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.core.exceptions import MalformedRowError, NotFoundError
from src.modules.debts.engine import (
    DebtStatus,
    EnrolledGroup,
    PaymentFact,
    Severity,
    StudentLedger,
    evaluate,
    overdue_sort_key,
)
from src.modules.debts.schemas import (
    CriticalOverdueRow,
    GroupOverdueRow,
    GroupRef,
    OverdueStudentRow,
    OverdueSummary,
    StudentMonthlyDebtRow,
    UpcomingPaymentRow,
)
from src.modules.groups.models import Group
from src.modules.payments.models import Payment
from src.modules.students.models import Student, student_groups
from src.shared.utils.dates import parse_date, parse_period
from src.shared.utils.money import ZERO, parse_money, percent, round_money

logger = logging.getLogger(__name__)


def _parse(table: str, row_id, field: str, value, parser):
    try:
        return parser(value)
    except (TypeError, ValueError) as exc:
        raise MalformedRowError(table, row_id, field, value) from exc


def _parse_due_day(value) -> int:
    due = int(value)
    if due != value and str(due) != str(value).strip():
        raise ValueError(value)
    if not 1 <= due <= 31:
        raise ValueError(value)
    return due


class DebtService:
    """
    Computes who owes what, on demand.

    Loads students, enrollments and payments in separate flat queries, joins
    them in memory into StudentLedger objects and evaluates each ledger with
    the debt engine. Rows with unparseable stored values are skipped with a
    warning so one bad row does not hide everyone else's status.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # --- Loading ---

    async def load_ledgers(self, student_id: int | None = None) -> list[StudentLedger]:
        """Build one ledger per student (or just one student)."""
        students_q = select(
            Student.id,
            Student.fullname,
            Student.phone_number,
            type_coerce(Student.payment_due, String),
        ).order_by(Student.fullname, Student.id)
        if student_id is not None:
            students_q = students_q.where(Student.id == student_id)
        student_rows = (await self.db.execute(students_q)).all()

        ledgers: dict[int, StudentLedger] = {}
        for sid, fullname, phone, raw_due in student_rows:
            try:
                due = _parse("students", sid, "payment_due", raw_due, _parse_due_day)
            except MalformedRowError as exc:
                logger.warning("Skipping student: %s", exc.message)
                continue
            ledgers[sid] = StudentLedger(
                student_id=sid,
                fullname=fullname,
                phone_number=phone,
                payment_due=due,
            )
        if not ledgers:
            return []

        for sid, group in await self._load_enrollments(student_id):
            if sid in ledgers:
                ledgers[sid].groups.append(group)

        for sid, payment in await self._load_payments(student_id):
            if sid in ledgers:
                ledgers[sid].payments.append(payment)

        return list(ledgers.values())

    async def _load_enrollments(
        self, student_id: int | None = None
    ) -> list[tuple[int, EnrolledGroup]]:
        query = (
            select(
                student_groups.c.student_id,
                Group.id,
                Group.title,
                type_coerce(Group.course_price, String),
            )
            .join(Group, Group.id == student_groups.c.group_id)
            .order_by(Group.title, Group.id)
        )
        if student_id is not None:
            query = query.where(student_groups.c.student_id == student_id)

        result = []
        for sid, gid, title, raw_price in (await self.db.execute(query)).all():
            try:
                price = _parse("groups", gid, "course_price", raw_price, parse_money)
            except MalformedRowError as exc:
                logger.warning("Skipping enrollment: %s", exc.message)
                continue
            result.append((sid, EnrolledGroup(group_id=gid, title=title, course_price=price)))
        return result

    async def _load_payments(
        self, student_id: int | None = None
    ) -> list[tuple[int, PaymentFact]]:
        query = select(
            Payment.id,
            Payment.student_id,
            Payment.group_id,
            type_coerce(Payment.date, String),
            type_coerce(Payment.amount, String),
            type_coerce(Payment.course_price_at_payment, String),
            Payment.payment_period,
        )
        if student_id is not None:
            query = query.where(Payment.student_id == student_id)

        result = []
        for pid, sid, gid, raw_date, raw_amount, raw_expected, raw_period in (
            await self.db.execute(query)
        ).all():
            try:
                fact = PaymentFact(
                    id=pid,
                    group_id=gid,
                    date=_parse("payments", pid, "date", raw_date, parse_date),
                    amount=_parse("payments", pid, "amount", raw_amount, parse_money),
                    course_price_at_payment=_parse(
                        "payments", pid, "course_price_at_payment", raw_expected, parse_money
                    ),
                    payment_period=_parse(
                        "payments", pid, "payment_period", raw_period, parse_period
                    ),
                )
            except MalformedRowError as exc:
                logger.warning("Skipping payment: %s", exc.message)
                continue
            result.append((sid, fact))
        return result

    async def evaluate_all(
        self, today: date | None = None, student_id: int | None = None
    ) -> list[DebtStatus]:
        as_at = today or date.today()
        return [evaluate(ledger, as_at) for ledger in await self.load_ledgers(student_id)]

    # --- Reports ---

    async def compute_overdue_students(
        self, today: date | None = None
    ) -> list[OverdueStudentRow]:
        """Students past due with no payment or a remaining balance this period."""
        statuses = [s for s in await self.evaluate_all(today) if s.is_overdue]
        statuses.sort(key=overdue_sort_key)
        return [
            OverdueStudentRow(
                id=s.student_id,
                fullname=s.fullname,
                phone_number=s.phone_number,
                payment_due=s.payment_due,
                days_overdue=s.days_overdue,
                remaining_amount=s.remaining,
                last_payment_date=s.last_payment_date,
                severity=s.severity(settings.critical_overdue_days),
            )
            for s in statuses
        ]

    async def compute_upcoming_payments(
        self, days_ahead: int | None = None, today: date | None = None
    ) -> list[UpcomingPaymentRow]:
        """Students not yet due, unpaid this period, due within days_ahead days."""
        if days_ahead is None:
            days_ahead = settings.upcoming_days_default
        statuses = [s for s in await self.evaluate_all(today) if s.is_upcoming(days_ahead)]
        statuses.sort(key=lambda s: (s.days_until_due, s.fullname))
        return [
            UpcomingPaymentRow(
                id=s.student_id,
                fullname=s.fullname,
                phone_number=s.phone_number,
                payment_due=s.payment_due,
                days_until_due=s.days_until_due,
            )
            for s in statuses
        ]

    async def compute_student_monthly_debts(
        self, student_id: int | None = None, today: date | None = None
    ) -> list[StudentMonthlyDebtRow]:
        """Monthly bill, paid amount and balance per student with their groups."""
        if student_id is not None:
            exists = await self.db.execute(select(Student.id).where(Student.id == student_id))
            if exists.scalar_one_or_none() is None:
                raise NotFoundError("Student", student_id)

        statuses = await self.evaluate_all(today, student_id=student_id)
        statuses.sort(key=lambda s: (s.fullname, s.student_id))
        return [
            StudentMonthlyDebtRow(
                student_id=s.student_id,
                student_fullname=s.fullname,
                phone_number=s.phone_number,
                payment_due=s.payment_due,
                total_course_price=s.total_course_price,
                paid_this_month=s.paid_this_period,
                expected_amount_this_month=s.expected_amount,
                total_monthly_amount=s.remaining,
                groups_count=len(s.groups),
                groups=[
                    GroupRef(
                        group_id=g.group_id,
                        group_title=g.title,
                        course_price=g.course_price,
                    )
                    for g in s.groups
                ],
                last_payment_date=s.last_payment_date,
                days_overdue=s.days_overdue if s.is_overdue else 0,
                is_overdue=s.is_overdue,
            )
            for s in statuses
        ]

    async def compute_group_overdue_rates(
        self, today: date | None = None
    ) -> list[GroupOverdueRow]:
        """Share of each group's students that are overdue (0 for empty groups)."""
        groups_q = (
            select(Group.id, Group.title, func.count(student_groups.c.student_id))
            .outerjoin(student_groups, student_groups.c.group_id == Group.id)
            .group_by(Group.id, Group.title)
        )
        groups = (await self.db.execute(groups_q)).all()

        overdue_by_group: dict[int, int] = defaultdict(int)
        for status in await self.evaluate_all(today):
            if not status.is_overdue:
                continue
            for group in status.groups:
                overdue_by_group[group.group_id] += 1

        rows = [
            GroupOverdueRow(
                group_id=gid,
                group_title=title,
                overdue_count=overdue_by_group.get(gid, 0),
                total_students=total or 0,
                overdue_percentage=percent(overdue_by_group.get(gid, 0), total or 0),
            )
            for gid, title, total in groups
        ]
        rows.sort(key=lambda r: (-r.overdue_percentage, -r.overdue_count, r.group_title))
        return rows

    async def compute_critical_overdue_alerts(
        self, days_threshold: int | None = None, today: date | None = None
    ) -> list[CriticalOverdueRow]:
        """Overdue students with a balance left and at least days_threshold days late."""
        if days_threshold is None:
            days_threshold = settings.critical_alert_days
        statuses = [
            s
            for s in await self.evaluate_all(today)
            if s.is_overdue and s.days_overdue >= days_threshold and s.remaining > 0
        ]
        statuses.sort(key=overdue_sort_key)
        return [
            CriticalOverdueRow(
                student_id=s.student_id,
                fullname=s.fullname,
                phone_number=s.phone_number,
                days_overdue=s.days_overdue,
                overdue_amount=s.remaining,
                group_titles=[g.title for g in s.groups],
            )
            for s in statuses
        ]

    async def compute_overdue_summary(self, today: date | None = None) -> OverdueSummary:
        statuses = [s for s in await self.evaluate_all(today) if s.is_overdue]
        return summarize_overdue(statuses, settings.critical_overdue_days)


def summarize_overdue(statuses: list[DebtStatus], critical_after: int) -> OverdueSummary:
    """Counts and average lateness over an already filtered overdue set."""
    if not statuses:
        return OverdueSummary()

    critical = sum(
        1 for s in statuses if s.severity(critical_after) == Severity.CRITICAL
    )
    total_days = sum(s.days_overdue for s in statuses)
    # Half rounds up, as SQL ROUND does (2.25 -> 2.3)
    avg_days = (Decimal(total_days) / len(statuses)).quantize(
        Decimal("0.1"), rounding=ROUND_HALF_UP
    )
    total_remaining = sum((max(s.remaining, ZERO) for s in statuses), Decimal("0"))
    return OverdueSummary(
        total=len(statuses),
        warning=len(statuses) - critical,
        critical=critical,
        avg_days_overdue=float(avg_days),
        total_remaining=round_money(total_remaining),
    )
