import datetime as dt
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .domain.services import DayAvailability, SlotCapacity, VolumeSnapshot
from .domain.validation import BookingCandidate
from .models import Appointment, AppointmentStatus, Branch, FarmerType, Region, TimeSlot


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DayAvailabilityRead(CamelModel):
    am_remaining: int
    pm_remaining: int
    am_capacity: int
    pm_capacity: int
    is_disabled: bool

    @classmethod
    def from_domain(cls, day: DayAvailability) -> "DayAvailabilityRead":
        return cls(
            am_remaining=day.am_remaining,
            pm_remaining=day.pm_remaining,
            am_capacity=day.am_capacity,
            pm_capacity=day.pm_capacity,
            is_disabled=day.is_disabled,
        )


class VolumeInfoRead(CamelModel):
    total_capacity: float
    inventory: float
    available_volume: float

    @classmethod
    def from_domain(cls, volume: VolumeSnapshot) -> "VolumeInfoRead":
        return cls(
            total_capacity=float(volume.warehouse_capacity),
            inventory=float(volume.inventory),
            available_volume=float(volume.available),
        )


class SlotCapacityRead(CamelModel):
    capacity_am: int
    capacity_pm: int

    @classmethod
    def from_domain(cls, capacity: SlotCapacity) -> "SlotCapacityRead":
        return cls(capacity_am=capacity.am, capacity_pm=capacity.pm)


class BranchInfoRead(CamelModel):
    capacity_info: VolumeInfoRead
    default_slot_capacity: SlotCapacityRead
    daily_availability: dict[str, DayAvailabilityRead]


class BookingCreate(CamelModel):
    branch_id: int
    date: dt.date
    time_slot: str
    first_name: str = ""
    middle_name: Optional[str] = None
    last_name: str = ""
    email: str = ""
    contact: str = ""
    gender: Optional[str] = None
    volume: Decimal
    farmer_type_id: Optional[int] = None

    def to_candidate(self) -> BookingCandidate:
        return BookingCandidate(
            branch_id=self.branch_id,
            date=self.date,
            time_slot=self.time_slot,
            volume=self.volume,
            first_name=self.first_name,
            middle_name=self.middle_name,
            last_name=self.last_name,
            email=self.email,
            contact_number=self.contact,
            gender=self.gender,
            farmer_type_id=self.farmer_type_id,
        )


class BookingSuccess(CamelModel):
    success: Literal[True] = True
    reference_number: str


class BookingFailure(CamelModel):
    success: Literal[False] = False
    error_kind: str
    message: str
    field: Optional[str] = None


class BookingRead(CamelModel):
    reference_number: str
    branch_id: int
    date: dt.date
    time_slot: TimeSlot
    volume: float
    status: AppointmentStatus

    @classmethod
    def from_db(cls, *, appointment: Appointment) -> "BookingRead":
        return cls(
            reference_number=appointment.reference_number,
            branch_id=appointment.branch_id,
            date=appointment.date,
            time_slot=appointment.time_slot,
            volume=float(appointment.volume),
            status=appointment.status,
        )


class RegionRead(CamelModel):
    region_id: int
    region_name: str

    @classmethod
    def from_db(cls, region: Region) -> "RegionRead":
        return cls(region_id=region.id, region_name=region.name)


class BranchRead(CamelModel):
    branch_id: int
    branch_name: str

    @classmethod
    def from_db(cls, branch: Branch) -> "BranchRead":
        return cls(branch_id=branch.id, branch_name=branch.name)


class FarmerTypeRead(CamelModel):
    farmer_type_id: int
    type_name: str

    @classmethod
    def from_db(cls, farmer_type: FarmerType) -> "FarmerTypeRead":
        return cls(farmer_type_id=farmer_type.id, type_name=farmer_type.name)
