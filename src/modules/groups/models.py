"""Group (course) model."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database.base import Base, BigIntPK


class Group(Base):
    """Course group. Enrolled students owe course_price every month."""

    __tablename__ = "groups"
    __table_args__ = (CheckConstraint("course_price >= 0", name="course_price_non_negative"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    course_price: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    students: Mapped[list["Student"]] = relationship(
        "Student", secondary="student_groups", back_populates="groups"
    )


from src.modules.students.models import Student
