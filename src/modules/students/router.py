"""API endpoints for Students module."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database.session import get_db
from src.modules.payments.schemas import PaymentResponse
from src.modules.payments.service import PaymentService
from src.modules.students.schemas import (
    StudentCreate,
    StudentGroupResponse,
    StudentResponse,
    StudentUpdate,
)
from src.modules.students.service import StudentService
from src.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/students", tags=["Students"])


@router.post(
    "",
    response_model=ApiResponse[StudentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_student(
    data: StudentCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a new student, optionally enrolled in groups."""
    service = StudentService(db)
    student = await service.create_student(data)
    return ApiResponse(
        success=True,
        message="Student created successfully",
        data=StudentResponse.model_validate(student),
    )


@router.get(
    "",
    response_model=ApiResponse[PaginatedResponse[StudentResponse]],
)
async def list_students(
    search: str | None = Query(None, description="Search by name or phone"),
    group_id: int | None = Query(None, description="Filter by group"),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List students with optional filters."""
    service = StudentService(db)
    students, total = await service.list_students(
        search=search,
        group_id=group_id,
        page=page,
        limit=limit,
    )
    return ApiResponse(
        success=True,
        data=PaginatedResponse.create(
            items=[StudentResponse.model_validate(s) for s in students],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.get(
    "/{student_id}",
    response_model=ApiResponse[StudentResponse],
)
async def get_student(
    student_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get student by ID."""
    service = StudentService(db)
    student = await service.get_student_by_id(student_id, with_relations=True)
    return ApiResponse(success=True, data=StudentResponse.model_validate(student))


@router.patch(
    "/{student_id}",
    response_model=ApiResponse[StudentResponse],
)
async def update_student(
    student_id: int,
    data: StudentUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update a student. Passing group_ids replaces their enrollments."""
    service = StudentService(db)
    student = await service.update_student(student_id, data)
    return ApiResponse(
        success=True,
        message="Student updated successfully",
        data=StudentResponse.model_validate(student),
    )


@router.delete(
    "/{student_id}",
    response_model=ApiResponse[None],
)
async def delete_student(
    student_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Delete a student with their enrollments and payments."""
    service = StudentService(db)
    await service.delete_student(student_id)
    return ApiResponse(success=True, message="Student deleted successfully", data=None)


@router.get(
    "/{student_id}/groups",
    response_model=ApiResponse[list[StudentGroupResponse]],
)
async def list_student_groups(
    student_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Groups the student is enrolled in."""
    service = StudentService(db)
    groups = await service.list_student_groups(student_id)
    return ApiResponse(
        success=True,
        data=[StudentGroupResponse.model_validate(g) for g in groups],
    )


@router.get(
    "/{student_id}/payments",
    response_model=ApiResponse[list[PaymentResponse]],
)
async def list_student_payments(
    student_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Payment history of a student, newest first."""
    await StudentService(db).get_student_by_id(student_id)
    payments = await PaymentService(db).list_student_payments(student_id)
    return ApiResponse(
        success=True,
        data=[PaymentResponse.from_payment(p) for p in payments],
    )
