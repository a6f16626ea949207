"""Pydantic schemas for Payments module."""

import datetime as dt
from decimal import Decimal

from pydantic import Field, model_validator

from src.modules.payments.models import PaymentType
from src.shared.schemas.base import BaseSchema
from src.shared.utils.dates import PERIOD_REGEX, period_of

PERIOD_PATTERN = PERIOD_REGEX.pattern


class PaymentCreate(BaseSchema):
    """
    Schema for recording a payment.

    course_price_at_payment defaults to the group's current price and
    payment_period to the month of `date`.
    """

    date: dt.date
    amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    student_id: int
    group_id: int
    course_price_at_payment: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    payment_period: str | None = Field(None, pattern=PERIOD_PATTERN)
    payment_type: PaymentType = PaymentType.CASH
    notes: str | None = None

    @model_validator(mode="after")
    def default_period_from_date(self):
        if self.payment_period is None:
            self.payment_period = period_of(self.date)
        return self


class PaymentUpdate(BaseSchema):
    """Schema for editing a payment. Unset fields are left as they are."""

    date: dt.date | None = None
    amount: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    group_id: int | None = None
    course_price_at_payment: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    payment_period: str | None = Field(None, pattern=PERIOD_PATTERN)
    payment_type: PaymentType | None = None
    notes: str | None = None


class PaymentResponse(BaseSchema):
    """Schema for payment response, with student and group names for tables."""

    id: int
    date: dt.date
    amount: Decimal
    student_id: int
    group_id: int
    course_price_at_payment: Decimal
    payment_period: str
    payment_type: str
    notes: str | None
    created_at: dt.datetime
    student_fullname: str | None = None
    group_title: str | None = None

    @classmethod
    def from_payment(cls, payment) -> "PaymentResponse":
        """Build from a Payment with student and group loaded."""
        return cls(
            id=payment.id,
            date=payment.date,
            amount=payment.amount,
            student_id=payment.student_id,
            group_id=payment.group_id,
            course_price_at_payment=payment.course_price_at_payment,
            payment_period=payment.payment_period,
            payment_type=payment.payment_type,
            notes=payment.notes,
            created_at=payment.created_at,
            student_fullname=payment.student.fullname if payment.student else None,
            group_title=payment.group.title if payment.group else None,
        )


class PaymentFilters(BaseSchema):
    """Filters for listing payments."""

    student_id: int | None = None
    group_id: int | None = None
    payment_period: str | None = Field(None, pattern=PERIOD_PATTERN)
    date_from: dt.date | None = None
    date_to: dt.date | None = None
    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=500)


class StudentPaymentTotal(BaseSchema):
    """All-time amount paid by a student (0 for students who never paid)."""

    student_id: int
    fullname: str
    total_amount: Decimal
