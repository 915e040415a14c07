from datetime import date
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings
from ..deps import get_app_settings, get_session
from ..domain.calendar import month_bounds
from ..domain.errors import BookingError
from ..infrastructure.repositories import (
    SqlAlchemyAppointmentRepository,
    SqlAlchemyBranchRepository,
    SqlAlchemyHolidayRepository,
)
from ..infrastructure.store import store_errors
from ..schemas import BranchInfoRead, DayAvailabilityRead, SlotCapacityRead, VolumeInfoRead
from ..usecases import availability as availability_usecase
from ..utils.time import local_today

router = APIRouter(prefix="", tags=["availability"])


@router.get("/availability", response_model=Dict[str, DayAvailabilityRead])
async def get_availability(
    branch_id: int = Query(..., alias="branchId", ge=1),
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, DayAvailabilityRead]:
    branch_repo = SqlAlchemyBranchRepository(session)
    appointment_repo = SqlAlchemyAppointmentRepository(session)
    holiday_repo = SqlAlchemyHolidayRepository(session)
    try:
        async with store_errors():
            days = await availability_usecase.compute_availability(
                branch_repo,
                appointment_repo,
                holiday_repo,
                branch_id=branch_id,
                start_date=start_date,
                end_date=end_date,
                max_days=settings.availability_max_days,
            )
    except BookingError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    return {day.isoformat(): DayAvailabilityRead.from_domain(entry) for day, entry in days.items()}


@router.get("/branches/{branch_id}/info", response_model=BranchInfoRead)
async def get_branch_info(
    branch_id: int = Path(..., ge=1),
    start_date: Optional[date] = Query(default=None, alias="startDate", description="defaults to first day of month"),
    end_date: Optional[date] = Query(default=None, alias="endDate", description="defaults to last day of month"),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> BranchInfoRead:
    month_start, month_end = month_bounds(local_today(settings.local_timezone))
    branch_repo = SqlAlchemyBranchRepository(session)
    appointment_repo = SqlAlchemyAppointmentRepository(session)
    holiday_repo = SqlAlchemyHolidayRepository(session)
    try:
        async with store_errors():
            info = await availability_usecase.get_branch_info(
                branch_repo,
                appointment_repo,
                holiday_repo,
                branch_id=branch_id,
                start_date=start_date or month_start,
                end_date=end_date or month_end,
                max_days=settings.availability_max_days,
            )
    except BookingError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    return BranchInfoRead(
        capacity_info=VolumeInfoRead.from_domain(info.volume),
        default_slot_capacity=SlotCapacityRead.from_domain(info.default_capacity),
        daily_availability={
            day.isoformat(): DayAvailabilityRead.from_domain(entry) for day, entry in info.daily.items()
        },
    )
