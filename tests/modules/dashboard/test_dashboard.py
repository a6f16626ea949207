from datetime import date
from decimal import Decimal

from httpx import AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.modules.dashboard.service import DashboardService
from src.modules.groups.schemas import GroupCreate
from src.modules.groups.service import GroupService
from src.modules.payments.schemas import PaymentCreate
from src.modules.payments.service import PaymentService
from src.modules.students.schemas import StudentCreate
from src.modules.students.service import StudentService

APRIL_20 = date(2026, 4, 20)


async def _seed(db_session: AsyncSession):
    """Two groups, three students, payments in March and April 2026."""
    groups = GroupService(db_session)
    math = await groups.create_group(GroupCreate(title="Math", course_price=Decimal("100")))
    art = await groups.create_group(GroupCreate(title="Art", course_price=Decimal("50")))

    students = StudentService(db_session)
    ali = await students.create_student(
        StudentCreate(fullname="Ali", phone_number="+998901111111", payment_due=1, group_ids=[math.id])
    )
    vali = await students.create_student(
        StudentCreate(
            fullname="Vali", phone_number="+998902222222", payment_due=5, group_ids=[math.id, art.id]
        )
    )
    await students.create_student(
        StudentCreate(fullname="Sami", phone_number="+998903333333", payment_due=28)
    )

    payments = PaymentService(db_session)
    await payments.create_payment(
        PaymentCreate(date=date(2026, 3, 2), amount=Decimal("100"), student_id=ali.id, group_id=math.id)
    )
    await payments.create_payment(
        PaymentCreate(date=date(2026, 4, 2), amount=Decimal("100"), student_id=ali.id, group_id=math.id)
    )
    await payments.create_payment(
        PaymentCreate(date=date(2026, 4, 3), amount=Decimal("50"), student_id=vali.id, group_id=math.id)
    )

    # Pin creation timestamps so month buckets do not depend on the real clock
    await db_session.execute(text("UPDATE students SET created_at = '2026-04-01 09:00:00'"))
    await db_session.execute(
        text("UPDATE students SET created_at = '2026-02-10 09:00:00' WHERE id = :id"),
        {"id": ali.id},
    )
    await db_session.execute(text("UPDATE groups SET created_at = '2026-03-15 12:00:00'"))
    await db_session.commit()
    return math, art, ali, vali


class TestDashboardStats:
    """Tests for DashboardService.compute_dashboard_stats."""

    async def test_totals_and_this_month(self, db_session: AsyncSession):
        await _seed(db_session)

        stats = await DashboardService(db_session).compute_dashboard_stats(today=APRIL_20)

        assert stats.total_students == 3
        assert stats.total_groups == 2
        assert stats.total_payments == 3
        assert stats.total_payment_amount == Decimal("250.00")
        assert stats.students_this_month == 2
        assert stats.groups_this_month == 0
        assert stats.payments_this_month == 2
        assert stats.payment_amount_this_month == Decimal("150.00")

    async def test_overdue_counts(self, db_session: AsyncSession):
        await _seed(db_session)

        stats = await DashboardService(db_session).compute_dashboard_stats(today=APRIL_20)

        # Vali paid 50 of the 100 billed and is 15 days late; Ali is settled; Sami is not due yet
        assert stats.overdue_payments_count == 1
        assert stats.overdue.total == 1
        assert stats.overdue.critical == 1
        assert stats.overdue.warning == 0
        assert stats.overdue.avg_days_overdue == 15.0

    async def test_empty_database(self, db_session: AsyncSession):
        stats = await DashboardService(db_session).compute_dashboard_stats(today=APRIL_20)

        assert stats.total_students == 0
        assert stats.total_payment_amount == Decimal("0.00")
        assert stats.overdue.avg_days_overdue == 0.0


class TestTrends:
    async def test_student_trend_zero_filled(self, db_session: AsyncSession):
        await _seed(db_session)

        trend = await DashboardService(db_session).student_trends(months=6, today=APRIL_20)

        assert [t.period for t in trend] == [
            "2025-11",
            "2025-12",
            "2026-01",
            "2026-02",
            "2026-03",
            "2026-04",
        ]
        assert [t.count for t in trend] == [0, 0, 0, 1, 0, 2]

    async def test_group_trend(self, db_session: AsyncSession):
        await _seed(db_session)

        trend = await DashboardService(db_session).group_trends(months=3, today=APRIL_20)

        assert {t.period: t.count for t in trend} == {"2026-02": 0, "2026-03": 2, "2026-04": 0}

    async def test_payment_and_revenue_trends(self, db_session: AsyncSession):
        await _seed(db_session)
        service = DashboardService(db_session)

        payments = await service.payment_trends(months=2, today=APRIL_20)
        revenue = await service.revenue_trends(today=APRIL_20)

        assert [(p.period, p.payments_count, p.total_amount) for p in payments] == [
            ("2026-03", 1, Decimal("100.00")),
            ("2026-04", 2, Decimal("150.00")),
        ]
        assert len(revenue) == 12
        assert revenue[0].period == "2025-05"
        assert revenue[-1].revenue == Decimal("150.00")


class TestRankings:
    async def test_top_paying_students(self, db_session: AsyncSession):
        _, _, ali, vali = await _seed(db_session)

        top = await DashboardService(db_session).top_paying_students()

        assert [t.id for t in top] == [ali.id, vali.id]
        assert top[0].total_paid == Decimal("200.00")
        assert top[0].payments_count == 2
        assert top[0].avg_payment == Decimal("100.00")

    async def test_group_capacity(self, db_session: AsyncSession):
        await _seed(db_session)

        rows = await DashboardService(db_session).group_capacity_stats()

        assert [(r.group_title, r.current_students) for r in rows] == [("Math", 2), ("Art", 1)]
        assert rows[0].capacity == 20
        assert rows[0].fill_percentage == 10.0


class TestDashboardApi:
    async def test_get_dashboard(self, client: AsyncClient, db_session: AsyncSession):
        await _seed(db_session)

        response = await client.get("/api/v1/dashboard", params={"as_at_date": "2026-04-20"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total_students"] == 3
        assert data["overdue"]["critical"] == 1

    async def test_trend_endpoints(self, client: AsyncClient):
        for kind, months in (("students", 6), ("groups", 6), ("payments", 6), ("revenue", 12)):
            response = await client.get(f"/api/v1/dashboard/trends/{kind}")
            assert response.status_code == 200
            assert len(response.json()["data"]) == months

    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.json() == {"status": "healthy"}
