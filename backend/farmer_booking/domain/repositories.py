from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Protocol

from ..models import Appointment, Branch, FarmerType, Region, TimeSlot, VolumeCapacity
from .services import SlotCapacity
from .validation import ValidatedBooking


class BranchRepository(Protocol):
    async def exists(self, branch_id: int) -> bool: ...

    async def get_volume(self, branch_id: int) -> VolumeCapacity | None: ...

    async def get_volume_for_update(self, branch_id: int) -> VolumeCapacity | None: ...

    async def reserve_volume(self, branch_id: int, volume: Decimal) -> bool: ...

    async def get_default_slot_capacity(self, branch_id: int) -> SlotCapacity | None: ...

    async def get_slot_capacity(self, branch_id: int, on: date) -> SlotCapacity | None: ...

    async def list_slot_capacity_overrides(
        self,
        branch_id: int,
        start: date,
        end: date,
    ) -> dict[date, SlotCapacity]: ...


class AppointmentRepository(Protocol):
    async def count_active(self, branch_id: int, on: date, time_slot: TimeSlot) -> int: ...

    async def count_active_by_day(
        self,
        branch_id: int,
        start: date,
        end: date,
    ) -> dict[tuple[date, TimeSlot], int]: ...

    async def create(self, booking: ValidatedBooking, *, reference_number: str) -> Appointment: ...

    async def get_by_reference(self, reference_number: str) -> Appointment | None: ...


class HolidayRepository(Protocol):
    async def list_dates(self, branch_id: int, start: date, end: date) -> set[date]: ...


class LookupRepository(Protocol):
    async def list_regions(self) -> list[Region]: ...

    async def list_branches(self, region_id: int) -> list[Branch]: ...

    async def list_farmer_types(self) -> list[FarmerType]: ...
