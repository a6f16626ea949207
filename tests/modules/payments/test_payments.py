from datetime import date
from decimal import Decimal

import pytest
from httpx import AsyncClient
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import NotFoundError
from src.modules.groups.schemas import GroupCreate, GroupUpdate
from src.modules.groups.service import GroupService
from src.modules.payments.models import PaymentType
from src.modules.payments.schemas import PaymentCreate, PaymentFilters, PaymentUpdate
from src.modules.payments.service import PaymentService
from src.modules.students.schemas import StudentCreate
from src.modules.students.service import StudentService


async def _setup(db_session: AsyncSession, price: str = "100"):
    group = await GroupService(db_session).create_group(
        GroupCreate(title="Math", course_price=Decimal(price))
    )
    student = await StudentService(db_session).create_student(
        StudentCreate(
            fullname="Ali", phone_number="+998901234567", payment_due=10, group_ids=[group.id]
        )
    )
    return student, group


class TestPaymentSchemas:
    def test_period_defaults_to_month_of_date(self):
        data = PaymentCreate(date=date(2026, 4, 30), amount=Decimal("10"), student_id=1, group_id=1)
        assert data.payment_period == "2026-04"
        assert data.payment_type == PaymentType.CASH

    def test_explicit_period_kept(self):
        data = PaymentCreate(
            date=date(2026, 4, 30),
            amount=Decimal("10"),
            student_id=1,
            group_id=1,
            payment_period="2026-05",
        )
        assert data.payment_period == "2026-05"

    @pytest.mark.parametrize("period", ["2026-13", "2026-4", "April"])
    def test_bad_period(self, period):
        with pytest.raises(PydanticValidationError):
            PaymentCreate(
                date=date(2026, 4, 30),
                amount=Decimal("10"),
                student_id=1,
                group_id=1,
                payment_period=period,
            )

    def test_negative_amount(self):
        with pytest.raises(PydanticValidationError):
            PaymentCreate(date=date(2026, 4, 1), amount=Decimal("-1"), student_id=1, group_id=1)


class TestPaymentService:
    """Tests for PaymentService."""

    async def test_create_snapshots_group_price(self, db_session: AsyncSession):
        student, group = await _setup(db_session, price="120")
        service = PaymentService(db_session)

        payment = await service.create_payment(
            PaymentCreate(
                date=date(2026, 4, 5),
                amount=Decimal("60"),
                student_id=student.id,
                group_id=group.id,
                payment_type=PaymentType.CARD,
            )
        )

        assert payment.id is not None
        assert payment.course_price_at_payment == Decimal("120.00")
        assert payment.payment_period == "2026-04"
        assert payment.payment_type == "card"
        assert payment.student.fullname == "Ali"
        assert payment.group.title == "Math"

    async def test_snapshot_survives_price_change(self, db_session: AsyncSession):
        student, group = await _setup(db_session, price="100")
        service = PaymentService(db_session)
        payment = await service.create_payment(
            PaymentCreate(
                date=date(2026, 4, 5), amount=Decimal("100"), student_id=student.id, group_id=group.id
            )
        )

        await GroupService(db_session).update_group(group.id, GroupUpdate(course_price=Decimal("200")))

        reloaded = await service.get_payment_by_id(payment.id)
        assert reloaded.course_price_at_payment == Decimal("100.00")

    async def test_create_for_unknown_student(self, db_session: AsyncSession):
        _, group = await _setup(db_session)
        with pytest.raises(NotFoundError):
            await PaymentService(db_session).create_payment(
                PaymentCreate(date=date(2026, 4, 5), amount=Decimal("1"), student_id=999, group_id=group.id)
            )

    async def test_list_filters(self, db_session: AsyncSession):
        student, group = await _setup(db_session)
        service = PaymentService(db_session)
        for day, period in ((3, "2026-03"), (4, "2026-04"), (20, "2026-04")):
            await service.create_payment(
                PaymentCreate(
                    date=date(2026, 4, day),
                    amount=Decimal("10"),
                    student_id=student.id,
                    group_id=group.id,
                    payment_period=period,
                )
            )

        by_period, total = await service.list_payments(PaymentFilters(payment_period="2026-04"))
        assert total == 2
        # Newest first
        assert [p.date.day for p in by_period] == [20, 4]

        by_range, total = await service.list_payments(
            PaymentFilters(date_from=date(2026, 4, 1), date_to=date(2026, 4, 10))
        )
        assert total == 2

        paged, total = await service.list_payments(PaymentFilters(page=2, limit=2))
        assert total == 3
        assert len(paged) == 1

    async def test_date_range(self, db_session: AsyncSession):
        student, group = await _setup(db_session)
        service = PaymentService(db_session)
        for day in (1, 15, 30):
            await service.create_payment(
                PaymentCreate(
                    date=date(2026, 4, day), amount=Decimal("5"), student_id=student.id, group_id=group.id
                )
            )

        payments = await service.list_payments_by_date_range(date(2026, 4, 15), date(2026, 4, 30))
        assert [p.date.day for p in payments] == [30, 15]

    async def test_update_and_delete(self, db_session: AsyncSession):
        student, group = await _setup(db_session)
        service = PaymentService(db_session)
        payment = await service.create_payment(
            PaymentCreate(
                date=date(2026, 4, 5), amount=Decimal("50"), student_id=student.id, group_id=group.id
            )
        )

        updated = await service.update_payment(
            payment.id, PaymentUpdate(amount=Decimal("75.5"), notes="corrected")
        )
        assert updated.amount == Decimal("75.50")
        assert updated.notes == "corrected"

        await service.delete_payment(payment.id)
        with pytest.raises(NotFoundError):
            await service.get_payment_by_id(payment.id)

    async def test_totals_by_student(self, db_session: AsyncSession):
        student, group = await _setup(db_session)
        other = await StudentService(db_session).create_student(
            StudentCreate(fullname="Zafar", phone_number="+998907654321", payment_due=3)
        )
        service = PaymentService(db_session)
        for amount in ("40", "60.25"):
            await service.create_payment(
                PaymentCreate(
                    date=date(2026, 4, 5), amount=Decimal(amount), student_id=student.id, group_id=group.id
                )
            )

        totals = await service.get_totals_by_student()

        assert [(t.student_id, t.total_amount) for t in totals] == [
            (student.id, Decimal("100.25")),
            (other.id, Decimal("0.00")),
        ]


class TestPaymentsApi:
    """API tests for /payments."""

    async def test_create_list_and_get(self, client: AsyncClient, db_session: AsyncSession):
        student, group = await _setup(db_session)

        response = await client.post(
            "/api/v1/payments",
            json={
                "date": "2026-04-05",
                "amount": "100",
                "student_id": student.id,
                "group_id": group.id,
                "payment_type": "transfer",
            },
        )
        assert response.status_code == 201
        payment_id = response.json()["data"]["id"]
        assert response.json()["data"]["student_fullname"] == "Ali"

        listed = await client.get("/api/v1/payments", params={"student_id": student.id})
        assert listed.json()["data"]["total"] == 1

        fetched = await client.get(f"/api/v1/payments/{payment_id}")
        assert fetched.json()["data"]["payment_type"] == "transfer"

    async def test_unknown_group(self, client: AsyncClient, db_session: AsyncSession):
        student, _ = await _setup(db_session)
        response = await client.post(
            "/api/v1/payments",
            json={"date": "2026-04-05", "amount": "1", "student_id": student.id, "group_id": 999},
        )
        assert response.status_code == 404

    async def test_totals_route_not_shadowed_by_id(self, client: AsyncClient, db_session: AsyncSession):
        await _setup(db_session)
        response = await client.get("/api/v1/payments/totals-by-student")
        assert response.status_code == 200
        assert response.json()["data"][0]["fullname"] == "Ali"

    async def test_date_range_validation(self, client: AsyncClient):
        response = await client.get(
            "/api/v1/payments/date-range",
            params={"date_from": "2026-05-01", "date_to": "2026-04-01"},
        )
        assert response.status_code == 422

    async def test_list_rejects_bad_period(self, client: AsyncClient):
        response = await client.get("/api/v1/payments", params={"payment_period": "2026-13"})

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert any(e["field"] == "query.payment_period" for e in body["errors"])
