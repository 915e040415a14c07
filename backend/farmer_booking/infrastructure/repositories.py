from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, List, Set, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.errors import InvalidInputError, ReferenceCollisionError
from ..domain.repositories import AppointmentRepository, BranchRepository, HolidayRepository, LookupRepository
from ..domain.services import SlotCapacity
from ..domain.validation import ValidatedBooking
from ..models import (
    Appointment,
    AppointmentStatus,
    Branch,
    BranchSlotCapacity,
    FarmerType,
    Holiday,
    Region,
    TimeSlot,
    VolumeCapacity,
)
from ..utils.time import utc_now_naive

_REFERENCE_CONSTRAINT_MARKERS = ("uq_appointments_reference", "appointments.reference_number")


class SqlAlchemyBranchRepository(BranchRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def exists(self, branch_id: int) -> bool:
        return await self.session.scalar(select(Branch.id).where(Branch.id == branch_id)) is not None

    async def get_volume(self, branch_id: int) -> VolumeCapacity | None:
        result = await self.session.scalar(select(VolumeCapacity).where(VolumeCapacity.branch_id == branch_id))
        return result if isinstance(result, VolumeCapacity) else None

    async def get_volume_for_update(self, branch_id: int) -> VolumeCapacity | None:
        stmt = select(VolumeCapacity).where(VolumeCapacity.branch_id == branch_id).with_for_update()
        result = await self.session.scalar(stmt)
        return result if isinstance(result, VolumeCapacity) else None

    async def reserve_volume(self, branch_id: int, volume: Decimal) -> bool:
        stmt = (
            update(VolumeCapacity)
            .where(
                VolumeCapacity.branch_id == branch_id,
                VolumeCapacity.inventory + volume <= VolumeCapacity.warehouse_capacity,
            )
            .values(
                inventory=VolumeCapacity.inventory + volume,
                version=VolumeCapacity.version + 1,
                updated_at=utc_now_naive(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def get_default_slot_capacity(self, branch_id: int) -> SlotCapacity | None:
        # NULL dates never collide in the unique constraint; the oldest default row wins.
        stmt = (
            select(BranchSlotCapacity)
            .where(
                BranchSlotCapacity.branch_id == branch_id,
                BranchSlotCapacity.date.is_(None),
            )
            .order_by(BranchSlotCapacity.id)
            .limit(1)
        )
        row = await self.session.scalar(stmt)
        return _to_capacity(row) if row is not None else None

    async def get_slot_capacity(self, branch_id: int, on: date) -> SlotCapacity | None:
        stmt = (
            select(BranchSlotCapacity)
            .where(
                BranchSlotCapacity.branch_id == branch_id,
                or_(BranchSlotCapacity.date == on, BranchSlotCapacity.date.is_(None)),
            )
            # dated override before the default row
            .order_by(BranchSlotCapacity.date.is_(None), BranchSlotCapacity.id)
            .limit(1)
        )
        row = await self.session.scalar(stmt)
        return _to_capacity(row) if row is not None else None

    async def list_slot_capacity_overrides(self, branch_id: int, start: date, end: date) -> Dict[date, SlotCapacity]:
        rows = await self.session.scalars(
            select(BranchSlotCapacity).where(
                BranchSlotCapacity.branch_id == branch_id,
                BranchSlotCapacity.date.between(start, end),
            )
        )
        return {row.date: _to_capacity(row) for row in rows if row.date is not None}


class SqlAlchemyAppointmentRepository(AppointmentRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def count_active(self, branch_id: int, on: date, time_slot: TimeSlot) -> int:
        stmt = select(func.count(Appointment.id)).where(
            Appointment.branch_id == branch_id,
            Appointment.date == on,
            Appointment.time_slot == time_slot,
            Appointment.status != AppointmentStatus.CANCELLED,
        )
        return int(await self.session.scalar(stmt) or 0)

    async def count_active_by_day(self, branch_id: int, start: date, end: date) -> Dict[Tuple[date, TimeSlot], int]:
        stmt = (
            select(Appointment.date, Appointment.time_slot, func.count(Appointment.id))
            .where(
                Appointment.branch_id == branch_id,
                Appointment.date.between(start, end),
                Appointment.status != AppointmentStatus.CANCELLED,
            )
            .group_by(Appointment.date, Appointment.time_slot)
        )
        rows = await self.session.execute(stmt)
        return {(day, TimeSlot(time_slot)): int(count) for day, time_slot, count in rows.all()}

    async def create(self, booking: ValidatedBooking, *, reference_number: str) -> Appointment:
        appointment = Appointment(
            branch_id=booking.branch_id,
            date=booking.date,
            time_slot=booking.time_slot,
            first_name=booking.first_name,
            middle_name=booking.middle_name,
            last_name=booking.last_name,
            email=booking.email,
            contact_number=booking.contact_number,
            gender=booking.gender,
            farmer_type_id=booking.farmer_type_id,
            volume=booking.volume,
            status=AppointmentStatus.PENDING,
            reference_number=reference_number,
            created_at=utc_now_naive(),
        )
        # Savepoint so a reference clash can be retried without losing the volume row lock.
        try:
            async with self.session.begin_nested():
                self.session.add(appointment)
                await self.session.flush()
        except IntegrityError as exc:
            if any(marker in str(exc.orig) for marker in _REFERENCE_CONSTRAINT_MARKERS):
                raise ReferenceCollisionError(f"reference number {reference_number} already exists") from exc
            raise InvalidInputError("Booking refers to an unknown branch or farmer type.") from exc
        return appointment

    async def get_by_reference(self, reference_number: str) -> Appointment | None:
        result = await self.session.scalar(
            select(Appointment).where(Appointment.reference_number == reference_number)
        )
        return result if isinstance(result, Appointment) else None


class SqlAlchemyHolidayRepository(HolidayRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_dates(self, branch_id: int, start: date, end: date) -> Set[date]:
        rows = await self.session.scalars(
            select(Holiday.holiday_date).where(
                Holiday.holiday_date.between(start, end),
                or_(Holiday.branch_id.is_(None), Holiday.branch_id == branch_id),
            )
        )
        return set(rows)


class SqlAlchemyLookupRepository(LookupRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_regions(self) -> List[Region]:
        return list(await self.session.scalars(select(Region).order_by(Region.name)))

    async def list_branches(self, region_id: int) -> List[Branch]:
        stmt = select(Branch).where(Branch.region_id == region_id).order_by(Branch.name)
        return list(await self.session.scalars(stmt))

    async def list_farmer_types(self) -> List[FarmerType]:
        return list(await self.session.scalars(select(FarmerType).order_by(FarmerType.name)))


def _to_capacity(row: BranchSlotCapacity) -> SlotCapacity:
    return SlotCapacity(am=row.capacity_am, pm=row.capacity_pm)
