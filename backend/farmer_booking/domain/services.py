from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from ..models import TimeSlot
from .calendar import is_weekend
from .errors import SlotFullError, VolumeExceededError


@dataclass(frozen=True)
class SlotCapacity:
    am: int
    pm: int

    def for_slot(self, slot: TimeSlot) -> int:
        return self.am if slot == TimeSlot.AM else self.pm


NO_CAPACITY = SlotCapacity(am=0, pm=0)


@dataclass(frozen=True)
class DayAvailability:
    am_remaining: int
    pm_remaining: int
    am_capacity: int
    pm_capacity: int
    is_disabled: bool


@dataclass(frozen=True)
class VolumeSnapshot:
    warehouse_capacity: Decimal
    inventory: Decimal

    @property
    def available(self) -> Decimal:
        return max(Decimal("0"), self.warehouse_capacity - self.inventory)


@dataclass(frozen=True)
class BookingSnapshot:
    slot_capacity: int
    booked: int
    volume: VolumeSnapshot


def compute_day_availability(
    day: date,
    *,
    capacity: SlotCapacity,
    booked_am: int,
    booked_pm: int,
    is_holiday: bool,
) -> DayAvailability:
    am_remaining = max(0, capacity.am - booked_am)
    pm_remaining = max(0, capacity.pm - booked_pm)
    is_full = am_remaining == 0 and pm_remaining == 0
    return DayAvailability(
        am_remaining=am_remaining,
        pm_remaining=pm_remaining,
        am_capacity=capacity.am,
        pm_capacity=capacity.pm,
        is_disabled=is_weekend(day) or is_holiday or is_full,
    )


def validate_booking(snapshot: BookingSnapshot, *, volume: Decimal) -> Decimal:
    """
    Pure validation of a candidate against live capacity read inside the commit.
    Returns the inventory after booking if OK. Raises domain errors otherwise.
    """
    if snapshot.booked >= snapshot.slot_capacity:
        raise SlotFullError("The selected time slot is already fully booked.")

    inventory_after = snapshot.volume.inventory + volume
    if inventory_after > snapshot.volume.warehouse_capacity:
        raise VolumeExceededError(
            f"The branch can only accept {snapshot.volume.available} kg more; requested {volume} kg."
        )
    return inventory_after
