"""Service for Students module."""

import logging

from sqlalchemy import delete, func, insert, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.exceptions import NotFoundError, ValidationError
from src.modules.groups.models import Group
from src.modules.payments.models import Payment
from src.modules.students.models import Student, student_groups
from src.modules.students.schemas import StudentCreate, StudentUpdate

logger = logging.getLogger(__name__)


class StudentService:
    """Service for managing students and their enrollments."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _require_groups(self, group_ids: list[int]) -> None:
        """Raise one error naming every unknown group id."""
        if not group_ids:
            return
        result = await self.db.execute(select(Group.id).where(Group.id.in_(group_ids)))
        found = set(result.scalars().all())
        missing = [gid for gid in group_ids if gid not in found]
        if missing:
            raise ValidationError(
                f"Groups not found: {', '.join(str(m) for m in missing)}",
                field="group_ids",
            )

    async def _replace_groups(self, student_id: int, group_ids: list[int]) -> None:
        await self.db.execute(
            delete(student_groups).where(student_groups.c.student_id == student_id)
        )
        if group_ids:
            await self.db.execute(
                insert(student_groups),
                [{"student_id": student_id, "group_id": gid} for gid in group_ids],
            )

    async def create_student(self, data: StudentCreate) -> Student:
        """Create a student and enroll them in groups in one transaction."""
        if data.group_ids:
            await self._require_groups(data.group_ids)

        student = Student(
            fullname=data.fullname,
            phone_number=data.phone_number,
            payment_due=data.payment_due,
            address=data.address,
        )
        try:
            self.db.add(student)
            await self.db.flush()
            if data.group_ids:
                await self._replace_groups(student.id, data.group_ids)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Created student id=%s", student.id)
        return await self.get_student_by_id(student.id, with_relations=True)

    async def get_student_by_id(
        self, student_id: int, with_relations: bool = False
    ) -> Student:
        """Get student by ID."""
        query = select(Student).where(Student.id == student_id)
        if with_relations:
            query = query.options(selectinload(Student.groups)).execution_options(
                populate_existing=True
            )
        result = await self.db.execute(query)
        student = result.scalar_one_or_none()
        if not student:
            raise NotFoundError("Student", student_id)
        return student

    async def list_students(
        self,
        search: str | None = None,
        group_id: int | None = None,
        page: int = 1,
        limit: int = 100,
    ) -> tuple[list[Student], int]:
        """List students with optional filters."""
        query = (
            select(Student)
            .options(selectinload(Student.groups))
            .order_by(Student.fullname, Student.id)
            .execution_options(populate_existing=True)
        )

        if group_id is not None:
            query = query.join(
                student_groups, student_groups.c.student_id == Student.id
            ).where(student_groups.c.group_id == group_id)
        if search:
            search_term = f"%{search}%"
            query = query.where(
                or_(
                    Student.fullname.ilike(search_term),
                    Student.phone_number.ilike(search_term),
                )
            )

        # Count total
        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        # Apply pagination
        offset = (page - 1) * limit
        query = query.offset(offset).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def update_student(self, student_id: int, data: StudentUpdate) -> Student:
        """Update a student; replaces enrollments when group_ids is given."""
        student = await self.get_student_by_id(student_id)
        if data.group_ids:
            await self._require_groups(data.group_ids)

        try:
            if data.fullname is not None:
                student.fullname = data.fullname.strip()
            if data.phone_number is not None:
                student.phone_number = data.phone_number
            if data.payment_due is not None:
                student.payment_due = data.payment_due
            if data.address is not None:
                student.address = data.address
            if data.group_ids is not None:
                await self._replace_groups(student_id, data.group_ids)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        return await self.get_student_by_id(student_id, with_relations=True)

    async def delete_student(self, student_id: int) -> None:
        """Delete a student with their enrollments and payments."""
        await self.get_student_by_id(student_id)
        try:
            await self.db.execute(
                delete(student_groups).where(student_groups.c.student_id == student_id)
            )
            await self.db.execute(delete(Payment).where(Payment.student_id == student_id))
            await self.db.execute(delete(Student).where(Student.id == student_id))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info("Deleted student id=%s", student_id)

    async def list_student_groups(self, student_id: int) -> list[Group]:
        """Groups the student is enrolled in."""
        await self.get_student_by_id(student_id)
        result = await self.db.execute(
            select(Group)
            .join(student_groups, student_groups.c.group_id == Group.id)
            .where(student_groups.c.student_id == student_id)
            .order_by(Group.title, Group.id)
        )
        return list(result.scalars().all())
