"""Student model and student <-> group enrollment table."""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database.base import Base, BigIntPK

# Enrollment: existence of a row means the student owes the group's price monthly
student_groups = Table(
    "student_groups",
    Base.metadata,
    Column(
        "student_id",
        BigInteger().with_variant(Integer, "sqlite"),
        ForeignKey("students.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "group_id",
        BigInteger().with_variant(Integer, "sqlite"),
        ForeignKey("groups.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    ),
)


class Student(Base):
    """Student billed monthly on their payment_due day."""

    __tablename__ = "students"
    __table_args__ = (
        CheckConstraint("payment_due BETWEEN 1 AND 31", name="payment_due_day_of_month"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    fullname: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    phone_number: Mapped[str] = mapped_column(String(30), nullable=False)
    # Nominal day of month (1-31); clamped to the month length when evaluated
    payment_due: Mapped[int] = mapped_column(Integer, nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    groups: Mapped[list["Group"]] = relationship(
        "Group", secondary=student_groups, back_populates="students"
    )
    payments: Mapped[list["Payment"]] = relationship(
        "Payment", back_populates="student", passive_deletes=True
    )


# Import at the end to avoid circular imports
from src.modules.groups.models import Group
from src.modules.payments.models import Payment
