"""Service for dashboard summary (main page cards, charts and alerts)."""

import logging
from collections import defaultdict
from datetime import date, datetime, time
from decimal import Decimal

from sqlalchemy import String, func, select, type_coerce
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.modules.dashboard.schemas import (
    DashboardStats,
    GroupCapacity,
    MonthlyCount,
    MonthlyPayments,
    MonthlyRevenue,
    TopPayingStudent,
)
from src.modules.debts.service import DebtService, summarize_overdue
from src.modules.groups.models import Group
from src.modules.payments.models import Payment
from src.modules.students.models import Student, student_groups
from src.shared.utils.dates import last_periods, month_start, parse_date, period_of, shift_months
from src.shared.utils.money import ZERO, parse_money, percent, round_money

logger = logging.getLogger(__name__)


def _day_start(d: date) -> datetime:
    return datetime.combine(d, time.min)


class DashboardService:
    """Aggregates data for main page: cards, monthly charts, group fill."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def compute_dashboard_stats(self, today: date | None = None) -> DashboardStats:
        """
        Build dashboard cards.

        "This month" means the calendar month of `today`; ranges are
        [first day of month, first day of next month) so indexes on the
        date columns apply.
        """
        today = today or date.today()
        start = month_start(today)
        next_start = shift_months(today, 1)

        total_students = await self._count(select(func.count(Student.id)))
        total_groups = await self._count(select(func.count(Group.id)))
        total_payments, total_amount = await self._payment_totals()

        students_this_month = await self._count(
            select(func.count(Student.id)).where(
                Student.created_at >= _day_start(start),
                Student.created_at < _day_start(next_start),
            )
        )
        groups_this_month = await self._count(
            select(func.count(Group.id)).where(
                Group.created_at >= _day_start(start),
                Group.created_at < _day_start(next_start),
            )
        )
        payments_this_month, amount_this_month = await self._payment_totals(
            start, next_start
        )

        overdue = [
            s for s in await DebtService(self.db).evaluate_all(today) if s.is_overdue
        ]
        return DashboardStats(
            total_students=total_students,
            total_groups=total_groups,
            total_payments=total_payments,
            total_payment_amount=total_amount,
            students_this_month=students_this_month,
            groups_this_month=groups_this_month,
            payments_this_month=payments_this_month,
            payment_amount_this_month=amount_this_month,
            overdue_payments_count=len(overdue),
            overdue=summarize_overdue(overdue, settings.critical_overdue_days),
        )

    async def _count(self, query) -> int:
        result = await self.db.execute(query)
        return int(result.scalar() or 0)

    async def _payment_totals(
        self, date_from: date | None = None, date_before: date | None = None
    ) -> tuple[int, Decimal]:
        query = select(func.count(Payment.id), func.coalesce(func.sum(Payment.amount), 0))
        if date_from is not None:
            query = query.where(Payment.date >= date_from)
        if date_before is not None:
            query = query.where(Payment.date < date_before)
        count, amount = (await self.db.execute(query)).one()
        return int(count or 0), round_money(Decimal(str(amount or 0)))

    # --- Trends ---

    async def _created_per_month(
        self, model, periods: list[str], since: date
    ) -> dict[str, int]:
        result = await self.db.execute(
            select(model.id, type_coerce(model.created_at, String)).where(
                model.created_at >= _day_start(since)
            )
        )
        counts: dict[str, int] = defaultdict(int)
        for row_id, raw in result.all():
            try:
                counts[period_of(parse_date(raw))] += 1
            except ValueError:
                logger.warning(
                    "Skipping %s id=%s in trend: bad created_at %r",
                    model.__tablename__,
                    row_id,
                    raw,
                )
        return {p: counts.get(p, 0) for p in periods}

    async def _payments_per_month(
        self, periods: list[str], since: date
    ) -> dict[str, tuple[int, Decimal]]:
        result = await self.db.execute(
            select(
                Payment.id,
                type_coerce(Payment.date, String),
                type_coerce(Payment.amount, String),
            ).where(Payment.date >= since)
        )
        counts: dict[str, int] = defaultdict(int)
        amounts: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for pid, raw_date, raw_amount in result.all():
            try:
                period = period_of(parse_date(raw_date))
                amount = parse_money(raw_amount)
            except ValueError:
                logger.warning("Skipping payment id=%s in trend: unreadable row", pid)
                continue
            counts[period] += 1
            amounts[period] += amount
        return {p: (counts.get(p, 0), round_money(amounts.get(p, ZERO))) for p in periods}

    async def student_trends(self, months: int = 6, today: date | None = None) -> list[MonthlyCount]:
        """New students per month, oldest month first."""
        today = today or date.today()
        periods = last_periods(today, months)
        counts = await self._created_per_month(Student, periods, shift_months(today, 1 - months))
        return [MonthlyCount(period=p, count=c) for p, c in counts.items()]

    async def group_trends(self, months: int = 6, today: date | None = None) -> list[MonthlyCount]:
        """New groups per month, oldest month first."""
        today = today or date.today()
        periods = last_periods(today, months)
        counts = await self._created_per_month(Group, periods, shift_months(today, 1 - months))
        return [MonthlyCount(period=p, count=c) for p, c in counts.items()]

    async def payment_trends(
        self, months: int = 6, today: date | None = None
    ) -> list[MonthlyPayments]:
        today = today or date.today()
        periods = last_periods(today, months)
        buckets = await self._payments_per_month(periods, shift_months(today, 1 - months))
        return [
            MonthlyPayments(period=p, payments_count=count, total_amount=amount)
            for p, (count, amount) in buckets.items()
        ]

    async def revenue_trends(
        self, months: int = 12, today: date | None = None
    ) -> list[MonthlyRevenue]:
        today = today or date.today()
        periods = last_periods(today, months)
        buckets = await self._payments_per_month(periods, shift_months(today, 1 - months))
        return [
            MonthlyRevenue(period=p, revenue=amount, payments_count=count)
            for p, (count, amount) in buckets.items()
        ]

    # --- Rankings ---

    async def top_paying_students(self, limit: int | None = None) -> list[TopPayingStudent]:
        """Students with the largest all-time payments (only those who paid)."""
        limit = limit or settings.top_paying_limit
        total_paid = func.sum(Payment.amount)
        result = await self.db.execute(
            select(
                Student.id,
                Student.fullname,
                total_paid.label("total_paid"),
                func.count(Payment.id).label("payments_count"),
            )
            .join(Payment, Payment.student_id == Student.id)
            .group_by(Student.id, Student.fullname)
            .having(total_paid > 0)
            .order_by(total_paid.desc(), Student.fullname)
            .limit(limit)
        )
        rows = []
        for sid, fullname, total, count in result.all():
            total = round_money(Decimal(str(total or 0)))
            rows.append(
                TopPayingStudent(
                    id=sid,
                    fullname=fullname,
                    total_paid=total,
                    payments_count=count,
                    avg_payment=round_money(total / count) if count else ZERO,
                )
            )
        return rows

    async def group_capacity_stats(self, capacity: int | None = None) -> list[GroupCapacity]:
        """Enrollment against seat count per group, fullest first."""
        capacity = capacity or settings.group_capacity
        result = await self.db.execute(
            select(Group.id, Group.title, func.count(student_groups.c.student_id))
            .outerjoin(student_groups, student_groups.c.group_id == Group.id)
            .group_by(Group.id, Group.title)
        )
        rows = [
            GroupCapacity(
                group_id=gid,
                group_title=title,
                current_students=current or 0,
                capacity=capacity,
                fill_percentage=percent(current or 0, capacity),
            )
            for gid, title, current in result.all()
        ]
        rows.sort(key=lambda r: (-r.fill_percentage, r.group_title))
        return rows
