"""API endpoints for Groups module."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database.session import get_db
from src.modules.groups.schemas import (
    GroupCreate,
    GroupMemberAdd,
    GroupResponse,
    GroupRosterUpdate,
    GroupStudentResponse,
    GroupUpdate,
)
from src.modules.groups.service import GroupService
from src.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/groups", tags=["Groups"])


def _group_to_response(group, students_count: int = 0) -> GroupResponse:
    return GroupResponse(
        id=group.id,
        title=group.title,
        course_price=group.course_price,
        created_at=group.created_at,
        students_count=students_count,
    )


async def _group_response(service: GroupService, group) -> GroupResponse:
    counts = await service.count_students([group.id])
    return _group_to_response(group, counts.get(group.id, 0))


@router.post(
    "",
    response_model=ApiResponse[GroupResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_group(
    data: GroupCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a group, optionally enrolling students right away."""
    service = GroupService(db)
    group = await service.create_group(data)
    return ApiResponse(
        success=True,
        message="Group created successfully",
        data=await _group_response(service, group),
    )


@router.get(
    "",
    response_model=ApiResponse[PaginatedResponse[GroupResponse]],
)
async def list_groups(
    search: str | None = Query(None, description="Search by title"),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List groups with enrolled student counts."""
    service = GroupService(db)
    groups, total = await service.list_groups(search=search, page=page, limit=limit)
    counts = await service.count_students([g.id for g in groups])
    return ApiResponse(
        success=True,
        data=PaginatedResponse.create(
            items=[_group_to_response(g, counts.get(g.id, 0)) for g in groups],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.get(
    "/{group_id}",
    response_model=ApiResponse[GroupResponse],
)
async def get_group(
    group_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get group by ID."""
    service = GroupService(db)
    group = await service.get_group_by_id(group_id)
    return ApiResponse(success=True, data=await _group_response(service, group))


@router.patch(
    "/{group_id}",
    response_model=ApiResponse[GroupResponse],
)
async def update_group(
    group_id: int,
    data: GroupUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update a group. Passing student_ids replaces the roster."""
    service = GroupService(db)
    group = await service.update_group(group_id, data)
    return ApiResponse(
        success=True,
        message="Group updated successfully",
        data=await _group_response(service, group),
    )


@router.delete(
    "/{group_id}",
    response_model=ApiResponse[None],
)
async def delete_group(
    group_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Delete a group together with its enrollments and payments."""
    service = GroupService(db)
    await service.delete_group(group_id)
    return ApiResponse(success=True, message="Group deleted successfully", data=None)


# --- Roster Endpoints ---


@router.get(
    "/{group_id}/students",
    response_model=ApiResponse[list[GroupStudentResponse]],
)
async def list_group_students(
    group_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Students enrolled in the group."""
    service = GroupService(db)
    students = await service.list_group_students(group_id)
    return ApiResponse(
        success=True,
        data=[GroupStudentResponse.model_validate(s) for s in students],
    )


@router.post(
    "/{group_id}/students",
    response_model=ApiResponse[list[GroupStudentResponse]],
    status_code=status.HTTP_201_CREATED,
)
async def add_group_student(
    group_id: int,
    data: GroupMemberAdd,
    db: AsyncSession = Depends(get_db),
):
    """Enroll one student in the group."""
    service = GroupService(db)
    await service.add_student(group_id, data.student_id)
    students = await service.list_group_students(group_id)
    return ApiResponse(
        success=True,
        message="Student added to group",
        data=[GroupStudentResponse.model_validate(s) for s in students],
    )


@router.put(
    "/{group_id}/students",
    response_model=ApiResponse[list[GroupStudentResponse]],
)
async def replace_group_students(
    group_id: int,
    data: GroupRosterUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Replace the whole roster in one transaction."""
    service = GroupService(db)
    students = await service.replace_students(group_id, data.student_ids)
    return ApiResponse(
        success=True,
        message="Group roster updated",
        data=[GroupStudentResponse.model_validate(s) for s in students],
    )


@router.delete(
    "/{group_id}/students/{student_id}",
    response_model=ApiResponse[None],
)
async def remove_group_student(
    group_id: int,
    student_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Remove a student from the group."""
    service = GroupService(db)
    await service.remove_student(group_id, student_id)
    return ApiResponse(success=True, message="Student removed from group", data=None)
