"""Service for Groups module."""

import logging

from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import DuplicateError, NotFoundError, ValidationError
from src.modules.groups.models import Group
from src.modules.groups.schemas import GroupCreate, GroupUpdate
from src.modules.payments.models import Payment
from src.modules.students.models import Student, student_groups
from src.shared.utils.money import round_money

logger = logging.getLogger(__name__)


class GroupService:
    """Service for managing groups and their rosters."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _require_students(self, student_ids: list[int]) -> None:
        """Raise one error naming every unknown student id."""
        if not student_ids:
            return
        result = await self.db.execute(select(Student.id).where(Student.id.in_(student_ids)))
        found = set(result.scalars().all())
        missing = [sid for sid in student_ids if sid not in found]
        if missing:
            raise ValidationError(
                f"Students not found: {', '.join(str(m) for m in missing)}",
                field="student_ids",
            )

    async def _replace_roster(self, group_id: int, student_ids: list[int]) -> None:
        await self.db.execute(delete(student_groups).where(student_groups.c.group_id == group_id))
        if student_ids:
            await self.db.execute(
                insert(student_groups),
                [{"student_id": sid, "group_id": group_id} for sid in student_ids],
            )

    async def create_group(self, data: GroupCreate) -> Group:
        """Create a group and link its initial students in one transaction."""
        if data.student_ids:
            await self._require_students(data.student_ids)

        group = Group(title=data.title, course_price=round_money(data.course_price))
        try:
            self.db.add(group)
            await self.db.flush()
            if data.student_ids:
                await self._replace_roster(group.id, data.student_ids)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(group)
        logger.info("Created group id=%s title=%r", group.id, group.title)
        return group

    async def get_group_by_id(self, group_id: int) -> Group:
        """Get group by ID."""
        result = await self.db.execute(select(Group).where(Group.id == group_id))
        group = result.scalar_one_or_none()
        if not group:
            raise NotFoundError("Group", group_id)
        return group

    async def count_students(self, group_ids: list[int]) -> dict[int, int]:
        """Enrolled students per group id."""
        if not group_ids:
            return {}
        result = await self.db.execute(
            select(student_groups.c.group_id, func.count(student_groups.c.student_id))
            .where(student_groups.c.group_id.in_(group_ids))
            .group_by(student_groups.c.group_id)
        )
        return {gid: count for gid, count in result.all()}

    async def list_groups(
        self,
        search: str | None = None,
        page: int = 1,
        limit: int = 100,
    ) -> tuple[list[Group], int]:
        """List groups with optional title search."""
        query = select(Group).order_by(Group.title, Group.id)
        if search:
            query = query.where(Group.title.ilike(f"%{search}%"))

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        query = query.offset((page - 1) * limit).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def update_group(self, group_id: int, data: GroupUpdate) -> Group:
        """Update a group; replaces its roster when student_ids is given."""
        group = await self.get_group_by_id(group_id)
        if data.student_ids:
            await self._require_students(data.student_ids)

        try:
            if data.title is not None:
                group.title = data.title
            if data.course_price is not None:
                # Past payments keep their course_price_at_payment snapshot
                group.course_price = round_money(data.course_price)
            if data.student_ids is not None:
                await self._replace_roster(group_id, data.student_ids)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(group)
        return group

    async def delete_group(self, group_id: int) -> None:
        """Delete a group with its enrollments and payments."""
        await self.get_group_by_id(group_id)
        try:
            await self.db.execute(
                delete(student_groups).where(student_groups.c.group_id == group_id)
            )
            await self.db.execute(delete(Payment).where(Payment.group_id == group_id))
            await self.db.execute(delete(Group).where(Group.id == group_id))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info("Deleted group id=%s", group_id)

    async def list_group_students(self, group_id: int) -> list[Student]:
        """Students enrolled in a group, by name."""
        await self.get_group_by_id(group_id)
        result = await self.db.execute(
            select(Student)
            .join(student_groups, student_groups.c.student_id == Student.id)
            .where(student_groups.c.group_id == group_id)
            .order_by(Student.fullname, Student.id)
        )
        return list(result.scalars().all())

    async def add_student(self, group_id: int, student_id: int) -> None:
        """Enroll a student; enrolling twice is rejected."""
        await self.get_group_by_id(group_id)
        await self._require_students([student_id])

        existing = await self.db.execute(
            select(student_groups.c.student_id).where(
                student_groups.c.group_id == group_id,
                student_groups.c.student_id == student_id,
            )
        )
        if existing.first() is not None:
            raise DuplicateError("Group membership", "student_id", student_id)

        await self.db.execute(
            insert(student_groups).values(student_id=student_id, group_id=group_id)
        )
        await self.db.commit()

    async def remove_student(self, group_id: int, student_id: int) -> None:
        """Remove a student from a group. Their past payments stay."""
        await self.get_group_by_id(group_id)
        result = await self.db.execute(
            delete(student_groups).where(
                student_groups.c.group_id == group_id,
                student_groups.c.student_id == student_id,
            )
        )
        if result.rowcount == 0:
            raise NotFoundError(f"Student {student_id} in group {group_id}")
        await self.db.commit()

    async def replace_students(self, group_id: int, student_ids: list[int]) -> list[Student]:
        """Replace the whole roster atomically."""
        await self.get_group_by_id(group_id)
        await self._require_students(student_ids)
        try:
            await self._replace_roster(group_id, student_ids)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return await self.list_group_students(group_id)
