from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict

from ..domain.calendar import iter_dates
from ..domain.errors import InvalidRangeError, NotFoundError
from ..domain.repositories import AppointmentRepository, BranchRepository, HolidayRepository
from ..domain.services import NO_CAPACITY, DayAvailability, SlotCapacity, VolumeSnapshot, compute_day_availability
from ..models import TimeSlot

DEFAULT_MAX_DAYS = 366


@dataclass(frozen=True)
class BranchInfo:
    volume: VolumeSnapshot
    default_capacity: SlotCapacity
    daily: Dict[date, DayAvailability]


async def compute_availability(
    branch_repo: BranchRepository,
    appointment_repo: AppointmentRepository,
    holiday_repo: HolidayRepository,
    *,
    branch_id: int,
    start_date: date,
    end_date: date,
    max_days: int = DEFAULT_MAX_DAYS,
) -> Dict[date, DayAvailability]:
    """
    Per-day slot availability for a branch over ``[start_date, end_date]``.
    Read-only snapshot; the booking commit re-validates against live state.
    Past dates are included, callers filter them.
    """
    if start_date > end_date:
        raise InvalidRangeError("start date must not be after end date")
    if (end_date - start_date).days + 1 > max_days:
        raise InvalidRangeError(f"date range must not exceed {max_days} days")
    if not await branch_repo.exists(branch_id):
        raise NotFoundError("branch not found")

    default = await branch_repo.get_default_slot_capacity(branch_id) or NO_CAPACITY
    overrides = await branch_repo.list_slot_capacity_overrides(branch_id, start_date, end_date)
    booked = await appointment_repo.count_active_by_day(branch_id, start_date, end_date)
    holidays = await holiday_repo.list_dates(branch_id, start_date, end_date)

    return {
        day: compute_day_availability(
            day,
            capacity=overrides.get(day, default),
            booked_am=booked.get((day, TimeSlot.AM), 0),
            booked_pm=booked.get((day, TimeSlot.PM), 0),
            is_holiday=day in holidays,
        )
        for day in iter_dates(start_date, end_date)
    }


async def get_branch_info(
    branch_repo: BranchRepository,
    appointment_repo: AppointmentRepository,
    holiday_repo: HolidayRepository,
    *,
    branch_id: int,
    start_date: date,
    end_date: date,
    max_days: int = DEFAULT_MAX_DAYS,
) -> BranchInfo:
    daily = await compute_availability(
        branch_repo,
        appointment_repo,
        holiday_repo,
        branch_id=branch_id,
        start_date=start_date,
        end_date=end_date,
        max_days=max_days,
    )
    volume_row = await branch_repo.get_volume(branch_id)
    if volume_row is None:
        volume = VolumeSnapshot(warehouse_capacity=Decimal("0"), inventory=Decimal("0"))
    else:
        volume = VolumeSnapshot(warehouse_capacity=volume_row.warehouse_capacity, inventory=volume_row.inventory)
    default = await branch_repo.get_default_slot_capacity(branch_id) or NO_CAPACITY
    return BranchInfo(volume=volume, default_capacity=default, daily=daily)
