from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Optional, Set, Tuple

import pytest
from farmer_booking.domain.errors import InvalidRangeError, NotFoundError
from farmer_booking.domain.services import SlotCapacity
from farmer_booking.models import TimeSlot, VolumeCapacity
from farmer_booking.usecases import availability as uc

MONDAY = date(2025, 11, 3)


class FakeBranchRepo:
    def __init__(
        self,
        *,
        branch_ids: Set[int],
        default: Optional[SlotCapacity] = None,
        overrides: Optional[Dict[date, SlotCapacity]] = None,
        volume: Optional[VolumeCapacity] = None,
    ) -> None:
        self.branch_ids = branch_ids
        self.default = default
        self.overrides = overrides or {}
        self.volume = volume

    async def exists(self, branch_id: int) -> bool:
        return branch_id in self.branch_ids

    async def get_default_slot_capacity(self, branch_id: int) -> Optional[SlotCapacity]:
        return self.default

    async def list_slot_capacity_overrides(self, branch_id: int, start: date, end: date) -> Dict[date, SlotCapacity]:
        return {day: cap for day, cap in self.overrides.items() if start <= day <= end}

    async def get_volume(self, branch_id: int) -> Optional[VolumeCapacity]:
        return self.volume


class FakeAppointmentRepo:
    def __init__(self, booked: Optional[Dict[Tuple[date, TimeSlot], int]] = None) -> None:
        self.booked = booked or {}
        self.calls = 0

    async def count_active_by_day(self, branch_id: int, start: date, end: date) -> Dict[Tuple[date, TimeSlot], int]:
        self.calls += 1
        return {key: count for key, count in self.booked.items() if start <= key[0] <= end}


class FakeHolidayRepo:
    def __init__(self, holidays: Optional[Set[date]] = None) -> None:
        self.holidays = holidays or set()
        self.calls = 0

    async def list_dates(self, branch_id: int, start: date, end: date) -> Set[date]:
        self.calls += 1
        return {day for day in self.holidays if start <= day <= end}


async def _compute(
    branch_repo: FakeBranchRepo,
    appointment_repo: FakeAppointmentRepo,
    holiday_repo: FakeHolidayRepo,
    start: date,
    end: date,
    branch_id: int = 1,
):
    return await uc.compute_availability(
        branch_repo,
        appointment_repo,
        holiday_repo,
        branch_id=branch_id,
        start_date=start,
        end_date=end,
    )


@pytest.mark.asyncio
async def test_next_monday_with_no_bookings_is_fully_open() -> None:
    result = await _compute(
        FakeBranchRepo(branch_ids={1}, default=SlotCapacity(am=2, pm=2)),
        FakeAppointmentRepo(),
        FakeHolidayRepo(),
        MONDAY,
        MONDAY,
    )
    day = result[MONDAY]
    assert (day.am_remaining, day.pm_remaining, day.is_disabled) == (2, 2, False)
    assert (day.am_capacity, day.pm_capacity) == (2, 2)


@pytest.mark.asyncio
async def test_one_entry_per_date_in_range_only() -> None:
    start, end = MONDAY, MONDAY + timedelta(days=13)
    appointments = FakeAppointmentRepo({(MONDAY - timedelta(days=1), TimeSlot.AM): 1})
    holidays = FakeHolidayRepo({end + timedelta(days=1)})
    result = await _compute(
        FakeBranchRepo(branch_ids={1}, default=SlotCapacity(am=2, pm=2)),
        appointments,
        holidays,
        start,
        end,
    )
    assert sorted(result) == [start + timedelta(days=i) for i in range(14)]
    # fetched once for the whole range
    assert appointments.calls == 1
    assert holidays.calls == 1


@pytest.mark.asyncio
async def test_weekends_and_holidays_are_disabled() -> None:
    holiday = MONDAY + timedelta(days=2)
    result = await _compute(
        FakeBranchRepo(branch_ids={1}, default=SlotCapacity(am=4, pm=4)),
        FakeAppointmentRepo(),
        FakeHolidayRepo({holiday}),
        MONDAY,
        MONDAY + timedelta(days=6),
    )
    disabled = {day for day, entry in result.items() if entry.is_disabled}
    assert disabled == {holiday, MONDAY + timedelta(days=5), MONDAY + timedelta(days=6)}
    assert result[holiday].am_remaining == 4


@pytest.mark.asyncio
async def test_remaining_plus_booked_equals_capacity() -> None:
    booked = {
        (MONDAY, TimeSlot.AM): 1,
        (MONDAY, TimeSlot.PM): 3,
        (MONDAY + timedelta(days=1), TimeSlot.AM): 2,
    }
    result = await _compute(
        FakeBranchRepo(branch_ids={1}, default=SlotCapacity(am=3, pm=3)),
        FakeAppointmentRepo(booked),
        FakeHolidayRepo(),
        MONDAY,
        MONDAY + timedelta(days=4),
    )
    for day, entry in result.items():
        assert entry.am_remaining + booked.get((day, TimeSlot.AM), 0) == entry.am_capacity
        assert entry.pm_remaining + booked.get((day, TimeSlot.PM), 0) == entry.pm_capacity
    assert result[MONDAY].pm_remaining == 0
    assert result[MONDAY].is_disabled is False


@pytest.mark.asyncio
async def test_date_override_replaces_default_capacity() -> None:
    tuesday = MONDAY + timedelta(days=1)
    result = await _compute(
        FakeBranchRepo(branch_ids={1}, default=SlotCapacity(am=2, pm=2), overrides={tuesday: SlotCapacity(am=0, pm=5)}),
        FakeAppointmentRepo(),
        FakeHolidayRepo(),
        MONDAY,
        tuesday,
    )
    assert (result[tuesday].am_capacity, result[tuesday].pm_capacity) == (0, 5)
    assert result[MONDAY].am_capacity == 2


@pytest.mark.asyncio
async def test_branch_without_profile_has_zero_capacity() -> None:
    result = await _compute(FakeBranchRepo(branch_ids={1}), FakeAppointmentRepo(), FakeHolidayRepo(), MONDAY, MONDAY)
    assert result[MONDAY].am_capacity == 0
    assert result[MONDAY].is_disabled is True


@pytest.mark.asyncio
async def test_repeated_calls_are_identical() -> None:
    branch_repo = FakeBranchRepo(branch_ids={1}, default=SlotCapacity(am=2, pm=1))
    appointment_repo = FakeAppointmentRepo({(MONDAY, TimeSlot.AM): 1})
    holiday_repo = FakeHolidayRepo({MONDAY + timedelta(days=3)})
    first = await _compute(branch_repo, appointment_repo, holiday_repo, MONDAY, MONDAY + timedelta(days=7))
    second = await _compute(branch_repo, appointment_repo, holiday_repo, MONDAY, MONDAY + timedelta(days=7))
    assert first == second


@pytest.mark.asyncio
async def test_unknown_branch_raises_not_found() -> None:
    with pytest.raises(NotFoundError):
        await _compute(FakeBranchRepo(branch_ids={1}), FakeAppointmentRepo(), FakeHolidayRepo(), MONDAY, MONDAY, branch_id=9)


@pytest.mark.asyncio
async def test_inverted_range_raises_invalid_range() -> None:
    with pytest.raises(InvalidRangeError):
        await _compute(
            FakeBranchRepo(branch_ids={1}),
            FakeAppointmentRepo(),
            FakeHolidayRepo(),
            MONDAY,
            MONDAY - timedelta(days=1),
        )


@pytest.mark.asyncio
async def test_branch_info_combines_volume_and_availability() -> None:
    volume = VolumeCapacity(branch_id=1, warehouse_capacity=Decimal("1000"), inventory=Decimal("950"), version=1)
    info = await uc.get_branch_info(
        FakeBranchRepo(branch_ids={1}, default=SlotCapacity(am=2, pm=2), volume=volume),
        FakeAppointmentRepo(),
        FakeHolidayRepo(),
        branch_id=1,
        start_date=MONDAY,
        end_date=MONDAY + timedelta(days=1),
    )
    assert info.volume.available == Decimal("50")
    assert info.default_capacity == SlotCapacity(am=2, pm=2)
    assert len(info.daily) == 2


@pytest.mark.asyncio
async def test_branch_info_without_volume_row_reports_zero() -> None:
    info = await uc.get_branch_info(
        FakeBranchRepo(branch_ids={1}),
        FakeAppointmentRepo(),
        FakeHolidayRepo(),
        branch_id=1,
        start_date=MONDAY,
        end_date=MONDAY,
    )
    assert info.volume.available == Decimal("0")


@pytest.mark.asyncio
async def test_range_ending_on_max_date_is_computed() -> None:
    last = date(9999, 12, 31)
    result = await _compute(FakeBranchRepo(branch_ids={1}, default=SlotCapacity(am=1, pm=1)), FakeAppointmentRepo(), FakeHolidayRepo(), last, last)
    assert list(result) == [last]


@pytest.mark.asyncio
async def test_range_longer_than_limit_raises_invalid_range() -> None:
    appointments = FakeAppointmentRepo()
    kwargs = dict(branch_id=1, start_date=MONDAY, max_days=14)

    within = await uc.compute_availability(
        FakeBranchRepo(branch_ids={1}), appointments, FakeHolidayRepo(), end_date=MONDAY + timedelta(days=13), **kwargs
    )
    assert len(within) == 14

    with pytest.raises(InvalidRangeError):
        await uc.compute_availability(
            FakeBranchRepo(branch_ids={1}), appointments, FakeHolidayRepo(), end_date=MONDAY + timedelta(days=14), **kwargs
        )
    with pytest.raises(InvalidRangeError):
        await uc.compute_availability(
            FakeBranchRepo(branch_ids={1}),
            appointments,
            FakeHolidayRepo(),
            branch_id=1,
            start_date=date(1, 1, 1),
            end_date=date(9999, 12, 31),
        )
    assert appointments.calls == 1
