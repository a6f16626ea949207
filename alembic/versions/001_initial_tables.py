"""Students, groups, enrollments and payments

Revision ID: 001_initial_tables
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial_tables"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ID = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "groups",
        sa.Column("id", ID, autoincrement=True, nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("course_price", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint("course_price >= 0", name="ck_groups_course_price_non_negative"),
        sa.PrimaryKeyConstraint("id", name="pk_groups"),
    )
    op.create_index("ix_groups_title", "groups", ["title"])

    op.create_table(
        "students",
        sa.Column("id", ID, autoincrement=True, nullable=False),
        sa.Column("fullname", sa.String(200), nullable=False),
        sa.Column("phone_number", sa.String(30), nullable=False),
        sa.Column("payment_due", sa.Integer(), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint(
            "payment_due BETWEEN 1 AND 31", name="ck_students_payment_due_day_of_month"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_students"),
    )
    op.create_index("ix_students_fullname", "students", ["fullname"])

    op.create_table(
        "student_groups",
        sa.Column("student_id", ID, nullable=False),
        sa.Column("group_id", ID, nullable=False),
        sa.ForeignKeyConstraint(
            ["student_id"],
            ["students.id"],
            name="fk_student_groups_student_id_students",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["group_id"],
            ["groups.id"],
            name="fk_student_groups_group_id_groups",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("student_id", "group_id", name="pk_student_groups"),
    )
    op.create_index("ix_student_groups_group_id", "student_groups", ["group_id"])

    op.create_table(
        "payments",
        sa.Column("id", ID, autoincrement=True, nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("student_id", sa.BigInteger(), nullable=False),
        sa.Column("group_id", sa.BigInteger(), nullable=False),
        sa.Column("course_price_at_payment", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_period", sa.String(7), nullable=False),
        sa.Column("payment_type", sa.String(20), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint("amount >= 0", name="ck_payments_amount_non_negative"),
        sa.ForeignKeyConstraint(
            ["student_id"],
            ["students.id"],
            name="fk_payments_student_id_students",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["group_id"],
            ["groups.id"],
            name="fk_payments_group_id_groups",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_payments"),
    )
    op.create_index("ix_payments_date", "payments", ["date"])
    op.create_index("ix_payments_student_id", "payments", ["student_id"])
    op.create_index("ix_payments_group_id", "payments", ["group_id"])
    op.create_index("ix_payments_payment_period", "payments", ["payment_period"])


def downgrade() -> None:
    op.drop_index("ix_payments_payment_period", table_name="payments")
    op.drop_index("ix_payments_group_id", table_name="payments")
    op.drop_index("ix_payments_student_id", table_name="payments")
    op.drop_index("ix_payments_date", table_name="payments")
    op.drop_table("payments")
    op.drop_index("ix_student_groups_group_id", table_name="student_groups")
    op.drop_table("student_groups")
    op.drop_index("ix_students_fullname", table_name="students")
    op.drop_table("students")
    op.drop_index("ix_groups_title", table_name="groups")
    op.drop_table("groups")
