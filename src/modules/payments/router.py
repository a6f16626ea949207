"""API endpoints for Payments module."""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database.session import get_db
from src.core.exceptions import ValidationError
from src.modules.payments.schemas import (
    PERIOD_PATTERN,
    PaymentCreate,
    PaymentFilters,
    PaymentResponse,
    PaymentUpdate,
    StudentPaymentTotal,
)
from src.modules.payments.service import PaymentService
from src.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post(
    "",
    response_model=ApiResponse[PaymentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_payment(
    data: PaymentCreate,
    db: AsyncSession = Depends(get_db),
):
    """Record a payment for a student and group."""
    service = PaymentService(db)
    payment = await service.create_payment(data)
    return ApiResponse(
        success=True,
        message="Payment recorded successfully",
        data=PaymentResponse.from_payment(payment),
    )


@router.get(
    "",
    response_model=ApiResponse[PaginatedResponse[PaymentResponse]],
)
async def list_payments(
    student_id: int | None = Query(None),
    group_id: int | None = Query(None),
    payment_period: str | None = Query(
        None, pattern=PERIOD_PATTERN, description="Billing period YYYY-MM"
    ),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List payments with optional filters."""
    filters = PaymentFilters(
        student_id=student_id,
        group_id=group_id,
        payment_period=payment_period,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
    )
    service = PaymentService(db)
    payments, total = await service.list_payments(filters)
    return ApiResponse(
        success=True,
        data=PaginatedResponse.create(
            items=[PaymentResponse.from_payment(p) for p in payments],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.get(
    "/date-range",
    response_model=ApiResponse[list[PaymentResponse]],
)
async def list_payments_by_date_range(
    date_from: date = Query(...),
    date_to: date = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Payments made between two dates, inclusive."""
    if date_from > date_to:
        raise ValidationError("date_from must not be after date_to", field="date_from")
    service = PaymentService(db)
    payments = await service.list_payments_by_date_range(date_from, date_to)
    return ApiResponse(
        success=True,
        data=[PaymentResponse.from_payment(p) for p in payments],
    )


@router.get(
    "/totals-by-student",
    response_model=ApiResponse[list[StudentPaymentTotal]],
)
async def get_totals_by_student(
    db: AsyncSession = Depends(get_db),
):
    """All-time paid amount per student."""
    service = PaymentService(db)
    return ApiResponse(success=True, data=await service.get_totals_by_student())


@router.get(
    "/{payment_id}",
    response_model=ApiResponse[PaymentResponse],
)
async def get_payment(
    payment_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get payment by ID."""
    service = PaymentService(db)
    payment = await service.get_payment_by_id(payment_id)
    return ApiResponse(success=True, data=PaymentResponse.from_payment(payment))


@router.patch(
    "/{payment_id}",
    response_model=ApiResponse[PaymentResponse],
)
async def update_payment(
    payment_id: int,
    data: PaymentUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Edit a payment."""
    service = PaymentService(db)
    payment = await service.update_payment(payment_id, data)
    return ApiResponse(
        success=True,
        message="Payment updated successfully",
        data=PaymentResponse.from_payment(payment),
    )


@router.delete(
    "/{payment_id}",
    response_model=ApiResponse[None],
)
async def delete_payment(
    payment_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Delete a payment."""
    service = PaymentService(db)
    await service.delete_payment(payment_id)
    return ApiResponse(success=True, message="Payment deleted successfully", data=None)
