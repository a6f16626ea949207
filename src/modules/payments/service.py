"""Service for Payments module."""

import logging
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.exceptions import NotFoundError
from src.modules.groups.models import Group
from src.modules.payments.models import Payment
from src.modules.payments.schemas import (
    PaymentCreate,
    PaymentFilters,
    PaymentUpdate,
    StudentPaymentTotal,
)
from src.modules.students.models import Student
from src.shared.utils.money import round_money

logger = logging.getLogger(__name__)


class PaymentService:
    """Service for recording and listing payments."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_student(self, student_id: int) -> Student:
        result = await self.db.execute(select(Student).where(Student.id == student_id))
        student = result.scalar_one_or_none()
        if not student:
            raise NotFoundError("Student", student_id)
        return student

    async def _get_group(self, group_id: int) -> Group:
        result = await self.db.execute(select(Group).where(Group.id == group_id))
        group = result.scalar_one_or_none()
        if not group:
            raise NotFoundError("Group", group_id)
        return group

    def _with_names(self, query):
        return query.options(
            selectinload(Payment.student),
            selectinload(Payment.group),
        )

    async def create_payment(self, data: PaymentCreate) -> Payment:
        """Record a payment, snapshotting the group's price when none is given."""
        await self._get_student(data.student_id)
        group = await self._get_group(data.group_id)

        expected = (
            data.course_price_at_payment
            if data.course_price_at_payment is not None
            else group.course_price
        )
        payment = Payment(
            date=data.date,
            amount=round_money(data.amount),
            student_id=data.student_id,
            group_id=data.group_id,
            course_price_at_payment=round_money(expected),
            payment_period=data.payment_period,
            payment_type=data.payment_type.value,
            notes=data.notes,
        )
        self.db.add(payment)
        await self.db.flush()
        await self.db.commit()

        logger.info(
            "Recorded payment id=%s student=%s period=%s amount=%s",
            payment.id,
            payment.student_id,
            payment.payment_period,
            payment.amount,
        )
        return await self.get_payment_by_id(payment.id)

    async def get_payment_by_id(self, payment_id: int) -> Payment:
        """Get payment by ID with student and group loaded."""
        result = await self.db.execute(
            self._with_names(select(Payment).where(Payment.id == payment_id))
            .execution_options(populate_existing=True)
        )
        payment = result.scalar_one_or_none()
        if not payment:
            raise NotFoundError("Payment", payment_id)
        return payment

    async def list_payments(self, filters: PaymentFilters) -> tuple[list[Payment], int]:
        """List payments with filters, newest first."""
        query = select(Payment)

        if filters.student_id:
            query = query.where(Payment.student_id == filters.student_id)
        if filters.group_id:
            query = query.where(Payment.group_id == filters.group_id)
        if filters.payment_period:
            query = query.where(Payment.payment_period == filters.payment_period)
        if filters.date_from:
            query = query.where(Payment.date >= filters.date_from)
        if filters.date_to:
            query = query.where(Payment.date <= filters.date_to)

        # Count total
        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        # Paginate
        query = self._with_names(query).order_by(Payment.date.desc(), Payment.id.desc())
        query = query.offset((filters.page - 1) * filters.limit).limit(filters.limit)

        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def list_student_payments(self, student_id: int) -> list[Payment]:
        """All payments of one student, newest first."""
        result = await self.db.execute(
            self._with_names(select(Payment).where(Payment.student_id == student_id))
            .order_by(Payment.date.desc(), Payment.id.desc())
        )
        return list(result.scalars().all())

    async def list_payments_by_date_range(self, date_from: date, date_to: date) -> list[Payment]:
        """Payments made between two dates (inclusive), newest first."""
        result = await self.db.execute(
            self._with_names(
                select(Payment).where(Payment.date >= date_from, Payment.date <= date_to)
            ).order_by(Payment.date.desc(), Payment.id.desc())
        )
        return list(result.scalars().all())

    async def update_payment(self, payment_id: int, data: PaymentUpdate) -> Payment:
        """Edit a payment."""
        payment = await self.get_payment_by_id(payment_id)

        if data.group_id is not None and data.group_id != payment.group_id:
            await self._get_group(data.group_id)
            payment.group_id = data.group_id
        if data.date is not None:
            payment.date = data.date
        if data.amount is not None:
            payment.amount = round_money(data.amount)
        if data.course_price_at_payment is not None:
            payment.course_price_at_payment = round_money(data.course_price_at_payment)
        if data.payment_period is not None:
            payment.payment_period = data.payment_period
        if data.payment_type is not None:
            payment.payment_type = data.payment_type.value
        if data.notes is not None:
            payment.notes = data.notes

        await self.db.commit()
        return await self.get_payment_by_id(payment_id)

    async def delete_payment(self, payment_id: int) -> None:
        payment = await self.get_payment_by_id(payment_id)
        await self.db.delete(payment)
        await self.db.commit()
        logger.info("Deleted payment id=%s", payment_id)

    async def get_totals_by_student(self) -> list[StudentPaymentTotal]:
        """All-time paid amount per student, largest first."""
        total_paid = func.coalesce(func.sum(Payment.amount), 0)
        result = await self.db.execute(
            select(Student.id, Student.fullname, total_paid.label("total_amount"))
            .outerjoin(Payment, Payment.student_id == Student.id)
            .group_by(Student.id, Student.fullname)
            .order_by(total_paid.desc(), Student.fullname)
        )
        return [
            StudentPaymentTotal(
                student_id=sid,
                fullname=fullname,
                total_amount=round_money(total or 0),
            )
            for sid, fullname, total in result.all()
        ]
