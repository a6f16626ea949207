"""API for debtors and upcoming payments."""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database.session import get_db
from src.modules.debts.schemas import (
    CriticalOverdueRow,
    GroupOverdueRow,
    OverdueStudentRow,
    OverdueSummary,
    StudentMonthlyDebtRow,
    UpcomingPaymentRow,
)
from src.modules.debts.service import DebtService
from src.shared.schemas.base import ApiResponse

router = APIRouter(prefix="/debts", tags=["Debts"])


@router.get(
    "/overdue",
    response_model=ApiResponse[list[OverdueStudentRow]],
)
async def list_overdue_students(
    as_at_date: date | None = Query(None, description="As-of date, default today"),
    db: AsyncSession = Depends(get_db),
):
    """Overdue students, most days late first."""
    service = DebtService(db)
    return ApiResponse(data=await service.compute_overdue_students(today=as_at_date))


@router.get(
    "/upcoming",
    response_model=ApiResponse[list[UpcomingPaymentRow]],
)
async def list_upcoming_payments(
    days_ahead: int | None = Query(None, ge=0, le=31),
    as_at_date: date | None = Query(None, description="As-of date, default today"),
    db: AsyncSession = Depends(get_db),
):
    """Students whose payment is due within the next days_ahead days."""
    service = DebtService(db)
    rows = await service.compute_upcoming_payments(days_ahead=days_ahead, today=as_at_date)
    return ApiResponse(data=rows)


@router.get(
    "/monthly",
    response_model=ApiResponse[list[StudentMonthlyDebtRow]],
)
async def list_monthly_debts(
    as_at_date: date | None = Query(None, description="As-of date, default today"),
    db: AsyncSession = Depends(get_db),
):
    """Monthly bill and balance for every student."""
    service = DebtService(db)
    return ApiResponse(data=await service.compute_student_monthly_debts(today=as_at_date))


@router.get(
    "/monthly/{student_id}",
    response_model=ApiResponse[StudentMonthlyDebtRow | None],
)
async def get_student_monthly_debt(
    student_id: int,
    as_at_date: date | None = Query(None, description="As-of date, default today"),
    db: AsyncSession = Depends(get_db),
):
    """Monthly bill and balance for one student."""
    service = DebtService(db)
    rows = await service.compute_student_monthly_debts(student_id=student_id, today=as_at_date)
    # The student exists (checked by the service) but may have an unreadable due day
    return ApiResponse(data=rows[0] if rows else None)


@router.get(
    "/groups",
    response_model=ApiResponse[list[GroupOverdueRow]],
)
async def list_group_overdue_rates(
    as_at_date: date | None = Query(None, description="As-of date, default today"),
    db: AsyncSession = Depends(get_db),
):
    """Overdue share per group, highest first."""
    service = DebtService(db)
    return ApiResponse(data=await service.compute_group_overdue_rates(today=as_at_date))


@router.get(
    "/critical",
    response_model=ApiResponse[list[CriticalOverdueRow]],
)
async def list_critical_alerts(
    days_threshold: int | None = Query(None, ge=0),
    as_at_date: date | None = Query(None, description="As-of date, default today"),
    db: AsyncSession = Depends(get_db),
):
    """Students long overdue with a balance still open."""
    service = DebtService(db)
    rows = await service.compute_critical_overdue_alerts(
        days_threshold=days_threshold, today=as_at_date
    )
    return ApiResponse(data=rows)


@router.get(
    "/summary",
    response_model=ApiResponse[OverdueSummary],
)
async def get_overdue_summary(
    as_at_date: date | None = Query(None, description="As-of date, default today"),
    db: AsyncSession = Depends(get_db),
):
    """Warning/critical counts over the overdue set."""
    service = DebtService(db)
    return ApiResponse(data=await service.compute_overdue_summary(today=as_at_date))
