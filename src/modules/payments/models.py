"""Payment model."""

import datetime as dt
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database.base import Base, BigIntPK


class PaymentType(StrEnum):
    """How the money was received."""

    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"
    ONLINE = "online"


class Payment(Base):
    """
    Payment by one student for one group.

    course_price_at_payment snapshots the expected charge when the payment was
    recorded, so later price edits do not change past balances. payment_period
    (YYYY-MM) is the billing month the payment counts toward; it can differ
    from the month of `date` for backdated or advance payments.
    """

    __tablename__ = "payments"
    __table_args__ = (CheckConstraint("amount >= 0", name="amount_non_negative"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    student_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    group_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True
    )

    course_price_at_payment: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    payment_period: Mapped[str] = mapped_column(String(7), nullable=False, index=True)
    payment_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentType.CASH.value
    )

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    student: Mapped["Student"] = relationship("Student", back_populates="payments")
    group: Mapped["Group"] = relationship("Group")


# Import for type hints
from src.modules.students.models import Student
from src.modules.groups.models import Group
