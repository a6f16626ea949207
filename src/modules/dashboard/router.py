"""API for dashboard summary (main page)."""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database.session import get_db
from src.modules.dashboard.schemas import (
    DashboardStats,
    GroupCapacity,
    MonthlyCount,
    MonthlyPayments,
    MonthlyRevenue,
    TopPayingStudent,
)
from src.modules.dashboard.service import DashboardService
from src.shared.schemas.base import ApiResponse

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get(
    "",
    response_model=ApiResponse[DashboardStats],
)
async def get_dashboard(
    as_at_date: date | None = Query(None, description="As-of date, default today"),
    db: AsyncSession = Depends(get_db),
):
    """Get dashboard cards: totals, this month's activity and overdue counts."""
    service = DashboardService(db)
    return ApiResponse(data=await service.compute_dashboard_stats(today=as_at_date))


@router.get(
    "/trends/students",
    response_model=ApiResponse[list[MonthlyCount]],
)
async def get_student_trends(
    months: int = Query(6, ge=1, le=36),
    db: AsyncSession = Depends(get_db),
):
    service = DashboardService(db)
    return ApiResponse(data=await service.student_trends(months=months))


@router.get(
    "/trends/groups",
    response_model=ApiResponse[list[MonthlyCount]],
)
async def get_group_trends(
    months: int = Query(6, ge=1, le=36),
    db: AsyncSession = Depends(get_db),
):
    service = DashboardService(db)
    return ApiResponse(data=await service.group_trends(months=months))


@router.get(
    "/trends/payments",
    response_model=ApiResponse[list[MonthlyPayments]],
)
async def get_payment_trends(
    months: int = Query(6, ge=1, le=36),
    db: AsyncSession = Depends(get_db),
):
    service = DashboardService(db)
    return ApiResponse(data=await service.payment_trends(months=months))


@router.get(
    "/trends/revenue",
    response_model=ApiResponse[list[MonthlyRevenue]],
)
async def get_revenue_trends(
    months: int = Query(12, ge=1, le=36),
    db: AsyncSession = Depends(get_db),
):
    service = DashboardService(db)
    return ApiResponse(data=await service.revenue_trends(months=months))


@router.get(
    "/top-paying",
    response_model=ApiResponse[list[TopPayingStudent]],
)
async def get_top_paying_students(
    limit: int | None = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Students with the largest total payments."""
    service = DashboardService(db)
    return ApiResponse(data=await service.top_paying_students(limit=limit))


@router.get(
    "/group-capacity",
    response_model=ApiResponse[list[GroupCapacity]],
)
async def get_group_capacity(
    db: AsyncSession = Depends(get_db),
):
    """Enrollment against seat count per group."""
    service = DashboardService(db)
    return ApiResponse(data=await service.group_capacity_stats())
