from datetime import date
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import DuplicateError, NotFoundError, ValidationError
from src.modules.groups.schemas import GroupCreate, GroupUpdate
from src.modules.groups.service import GroupService
from src.modules.payments.models import Payment
from src.modules.payments.schemas import PaymentCreate
from src.modules.payments.service import PaymentService
from src.modules.students.schemas import StudentCreate
from src.modules.students.service import StudentService


async def _create_student(db_session: AsyncSession, fullname: str = "Ali"):
    return await StudentService(db_session).create_student(
        StudentCreate(fullname=fullname, phone_number="+998901234567", payment_due=10)
    )


class TestGroupService:
    """Tests for GroupService."""

    async def test_create_group_with_students(self, db_session: AsyncSession):
        ali = await _create_student(db_session, "Ali")
        vali = await _create_student(db_session, "Vali")
        service = GroupService(db_session)

        group = await service.create_group(
            GroupCreate(title="Math", course_price=Decimal("250000"), student_ids=[ali.id, vali.id])
        )

        assert group.id is not None
        assert group.course_price == Decimal("250000.00")
        counts = await service.count_students([group.id])
        assert counts[group.id] == 2

    async def test_create_group_unknown_students(self, db_session: AsyncSession):
        service = GroupService(db_session)

        with pytest.raises(ValidationError) as exc_info:
            await service.create_group(
                GroupCreate(title="Math", course_price=Decimal("100"), student_ids=[7, 8])
            )

        assert "7, 8" in exc_info.value.message
        groups, total = await service.list_groups()
        assert total == 0

    async def test_list_groups_search(self, db_session: AsyncSession):
        service = GroupService(db_session)
        await service.create_group(GroupCreate(title="Math A", course_price=Decimal("100")))
        await service.create_group(GroupCreate(title="English", course_price=Decimal("100")))

        groups, total = await service.list_groups(search="math")

        assert total == 1
        assert groups[0].title == "Math A"

    async def test_update_price(self, db_session: AsyncSession):
        service = GroupService(db_session)
        group = await service.create_group(GroupCreate(title="Math", course_price=Decimal("100")))

        updated = await service.update_group(group.id, GroupUpdate(course_price=Decimal("120.5")))

        assert updated.course_price == Decimal("120.50")
        assert updated.title == "Math"

    async def test_add_and_remove_student(self, db_session: AsyncSession):
        ali = await _create_student(db_session)
        service = GroupService(db_session)
        group = await service.create_group(GroupCreate(title="Math", course_price=Decimal("100")))

        await service.add_student(group.id, ali.id)
        assert [s.id for s in await service.list_group_students(group.id)] == [ali.id]

        with pytest.raises(DuplicateError):
            await service.add_student(group.id, ali.id)

        await service.remove_student(group.id, ali.id)
        assert await service.list_group_students(group.id) == []

        with pytest.raises(NotFoundError):
            await service.remove_student(group.id, ali.id)

    async def test_replace_students(self, db_session: AsyncSession):
        ali = await _create_student(db_session, "Ali")
        vali = await _create_student(db_session, "Vali")
        service = GroupService(db_session)
        group = await service.create_group(
            GroupCreate(title="Math", course_price=Decimal("100"), student_ids=[ali.id])
        )

        roster = await service.replace_students(group.id, [vali.id])

        assert [s.fullname for s in roster] == ["Vali"]

    async def test_delete_group_removes_payments(self, db_session: AsyncSession):
        ali = await _create_student(db_session)
        service = GroupService(db_session)
        group = await service.create_group(
            GroupCreate(title="Math", course_price=Decimal("100"), student_ids=[ali.id])
        )
        await PaymentService(db_session).create_payment(
            PaymentCreate(
                date=date(2026, 4, 1),
                amount=Decimal("100"),
                student_id=ali.id,
                group_id=group.id,
            )
        )

        await service.delete_group(group.id)

        with pytest.raises(NotFoundError):
            await service.get_group_by_id(group.id)
        payments = await db_session.execute(select(func.count(Payment.id)))
        assert payments.scalar() == 0
        # The student stays
        assert (await StudentService(db_session).get_student_by_id(ali.id)).id == ali.id


class TestGroupsApi:
    """API tests for /groups."""

    async def test_create_and_list(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/groups", json={"title": "Math", "course_price": "150000"}
        )

        assert response.status_code == 201
        assert response.json()["data"]["students_count"] == 0

        response = await client.get("/api/v1/groups")
        data = response.json()["data"]
        assert data["total"] == 1
        assert data["items"][0]["title"] == "Math"

    async def test_negative_price_rejected(self, client: AsyncClient):
        response = await client.post("/api/v1/groups", json={"title": "Math", "course_price": -1})
        assert response.status_code == 422

    async def test_roster_endpoints(self, client: AsyncClient, db_session: AsyncSession):
        ali = await _create_student(db_session, "Ali")
        vali = await _create_student(db_session, "Vali")
        created = await client.post(
            "/api/v1/groups", json={"title": "Math", "course_price": "100"}
        )
        group_id = created.json()["data"]["id"]

        added = await client.post(
            f"/api/v1/groups/{group_id}/students", json={"student_id": ali.id}
        )
        assert added.status_code == 201

        duplicate = await client.post(
            f"/api/v1/groups/{group_id}/students", json={"student_id": ali.id}
        )
        assert duplicate.status_code == 409

        replaced = await client.put(
            f"/api/v1/groups/{group_id}/students", json={"student_ids": [ali.id, vali.id]}
        )
        assert [s["fullname"] for s in replaced.json()["data"]] == ["Ali", "Vali"]

        removed = await client.delete(f"/api/v1/groups/{group_id}/students/{ali.id}")
        assert removed.status_code == 200

        listed = await client.get(f"/api/v1/groups/{group_id}/students")
        assert [s["fullname"] for s in listed.json()["data"]] == ["Vali"]

    async def test_get_missing_group(self, client: AsyncClient):
        response = await client.get("/api/v1/groups/404")
        assert response.status_code == 404
        assert response.json()["message"] == "Group with id=404 not found"
